from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.db import conditional_insert
from app.core.errors import IdentityNotFoundError
from app.models.entities import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def ensure_user(db: Session, email: str) -> str:
    """
    Return the id of the user registered under `email`, registering it on first sight.

    Only the authentication boundary calls this; membership code never creates users.
    """
    email = normalize_email(email)
    db.execute(
        conditional_insert(db, User)
        .values(email=email)
        .on_conflict_do_nothing(index_elements=[User.email])
    )
    db.commit()
    return db.execute(select(User.id).where(User.email == email)).scalar_one()


class IdentityResolver:
    def __init__(self, db: Session):
        self.db = db

    def resolve_by_email(self, email: str) -> str:
        user_id = self.db.execute(
            select(User.id).where(User.email == normalize_email(email))
        ).scalar_one_or_none()
        if user_id is None:
            raise IdentityNotFoundError(email)
        return user_id


class TokenRegistry:
    """Device delivery address per user. Last write wins."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> str | None:
        token = self.db.execute(select(User.device_token).where(User.id == user_id)).scalar_one_or_none()
        return token or None

    def get_many(self, user_ids: Iterable[str]) -> dict[str, str | None]:
        """One query for a whole recipient set; users without a token map to None."""
        user_ids = list(user_ids)
        if not user_ids:
            return {}
        rows = self.db.execute(select(User.id, User.device_token).where(User.id.in_(user_ids))).all()
        found = {user_id: token or None for user_id, token in rows}
        return {user_id: found.get(user_id) for user_id in user_ids}

    def set(self, user_id: str, address: str) -> None:
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(device_token=address, device_token_updated_at=datetime.now(timezone.utc))
        )
        self.db.commit()
        logger.info("device token updated", extra={"user_id": user_id})
