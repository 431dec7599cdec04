from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.schemas.messaging import AcceptInviteResponse, InviteAccept, InviteCreate, InviteResponse
from app.services.invitations import accept_invite, send_invite
from app.services.push import PushClient, get_push_client

router = APIRouter(prefix="/v1/invitations", tags=["invitations"])


@router.post("", response_model=InviteResponse)
async def invite(
    payload: InviteCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    push: PushClient = Depends(get_push_client),
):
    result = await send_invite(db, ctx.user_id, ctx.email, str(payload.invitee_email), push)
    return InviteResponse(
        result=result.status.value,
        delivery_id=result.delivery_id,
        reason=result.reason.value if result.reason else None,
        detail=result.detail,
    )


@router.post("/accept", response_model=AcceptInviteResponse)
async def accept(
    payload: InviteAccept,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    push: PushClient = Depends(get_push_client),
):
    result = await accept_invite(db, ctx.user_id, ctx.email, str(payload.inviting_email), push)
    return AcceptInviteResponse(
        result=result.status.value,
        family_id=result.family_id,
        delivery_id=result.delivery_id,
        reason=result.reason.value if result.reason else None,
        detail=result.detail,
    )
