from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class DeviceTokenUpdate(BaseModel):
    device_token: str = Field(min_length=1, max_length=4096)


class DeviceTokenResponse(BaseModel):
    result: Literal["ok"] = "ok"


class InviteCreate(BaseModel):
    invitee_email: EmailStr


class InviteResponse(BaseModel):
    result: Literal["sent", "not_sent"]
    delivery_id: str | None = None
    reason: Literal["no_address", "delivery_failed"] | None = None
    detail: str | None = None


class InviteAccept(BaseModel):
    inviting_email: EmailStr


class AcceptInviteResponse(BaseModel):
    result: Literal["joined", "joined_but_not_confirmed", "no_family", "multiple_families"]
    family_id: str | None = None
    delivery_id: str | None = None
    reason: Literal["no_address", "delivery_failed"] | None = None
    detail: str | None = None


class LocationCreate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)
    recorded_at: datetime | None = None


class DeliveryOutcomeResponse(BaseModel):
    recipient_id: str
    result: Literal["sent", "not_sent"]
    delivery_id: str | None = None
    reason: Literal["no_address", "delivery_failed"] | None = None
    detail: str | None = None


class BroadcastResponse(BaseModel):
    result: Literal["all_sent", "some_sent", "none_sent", "no_recipients", "no_family", "multiple_families"]
    family_id: str | None = None
    outcomes: list[DeliveryOutcomeResponse] = []
