from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.schemas.messaging import BroadcastResponse, DeliveryOutcomeResponse, LocationCreate
from app.services.broadcast import broadcast_to_family
from app.services.events import LocationEvent, LocationPayload
from app.services.membership import LookupStatus, find_family_by_member
from app.services.push import PushClient, get_push_client

router = APIRouter(prefix="/v1/locations", tags=["locations"])


@router.post("", response_model=BroadcastResponse)
async def share_location(
    payload: LocationCreate,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
    push: PushClient = Depends(get_push_client),
):
    lookup = find_family_by_member(db, ctx.user_id)
    if lookup.status == LookupStatus.none:
        return BroadcastResponse(result="no_family")
    if lookup.status == LookupStatus.ambiguous:
        return BroadcastResponse(result="multiple_families")

    event = LocationEvent(
        payload=LocationPayload(
            latitude=payload.latitude,
            longitude=payload.longitude,
            accuracy=payload.accuracy,
            recorded_at=payload.recorded_at,
        ),
        sender_id=ctx.user_id,
    )
    result = await broadcast_to_family(db, ctx.user_id, lookup.family.id, event, push)
    return BroadcastResponse(
        result=result.status.value,
        family_id=lookup.family.id,
        outcomes=[
            DeliveryOutcomeResponse(
                recipient_id=o.recipient_id,
                result=o.status.value,
                delivery_id=o.delivery_id,
                reason=o.reason.value if o.reason else None,
                detail=o.detail,
            )
            for o in result.outcomes
        ],
    )
