from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.models.entities import User
from app.routers.families import lookup_response
from app.schemas.families import MeResponse
from app.schemas.messaging import DeviceTokenResponse, DeviceTokenUpdate
from app.services.identity import TokenRegistry
from app.services.membership import find_family_by_member

router = APIRouter(prefix="/v1", tags=["auth"])


@router.get("/me", response_model=MeResponse)
def get_me(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Returns the authenticated user, whether a device is registered, and their family."""
    user = db.get(User, ctx.user_id)
    return MeResponse(
        user_id=user.id,
        email=user.email,
        has_device_token=bool(user.device_token),
        family=lookup_response(db, find_family_by_member(db, ctx.user_id)),
        created_at=user.created_at,
    )


@router.put("/me/device-token", response_model=DeviceTokenResponse)
def update_device_token(
    payload: DeviceTokenUpdate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    TokenRegistry(db).set(ctx.user_id, payload.device_token)
    return DeviceTokenResponse()


@router.post("/logout")
def logout(_: AuthContext = Depends(get_auth_context)):
    # With forward-auth, logout is handled by the IdP/proxy; the app doesn't hold a session.
    return {"ok": True}
