from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.services.identity import ensure_user, normalize_email


_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    email: str


def get_auth_context(
    db: Session = Depends(get_db),
    x_forwarded_user: str | None = Header(default=None, alias="X-Forwarded-User"),
    x_dev_user: str | None = Header(default=None, alias="X-Dev-User"),
) -> AuthContext:
    """
    Auth boundary.

    In prod, requests are expected to be behind Traefik Forward Auth, which injects
    X-Forwarded-User (email). In dev/tests, X-Dev-User is accepted as well. A user
    seen for the first time is registered here; nothing past this point creates users.
    """
    email = x_forwarded_user
    if not email and settings.auth_mode == "dev":
        email = x_dev_user
    if not email or not email.strip():
        raise HTTPException(status_code=401, detail="missing auth header (X-Forwarded-User)")
    try:
        email = normalize_email(_email_adapter.validate_python(email.strip()))
    except ValidationError:
        raise HTTPException(status_code=401, detail="auth header is not an email address") from None
    return AuthContext(user_id=ensure_user(db, email), email=email)
