"""Events relayed between family members. Never persisted."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LocationPayload:
    latitude: float
    longitude: float
    accuracy: float | None = None
    recorded_at: datetime | None = None


@dataclass(frozen=True)
class LocationEvent:
    payload: LocationPayload
    sender_id: str

    def to_payload(self) -> dict[str, str]:
        data = {
            "type": "location",
            "sender_id": self.sender_id,
            "latitude": repr(self.payload.latitude),
            "longitude": repr(self.payload.longitude),
        }
        if self.payload.accuracy is not None:
            data["accuracy"] = repr(self.payload.accuracy)
        if self.payload.recorded_at is not None:
            data["recorded_at"] = self.payload.recorded_at.isoformat()
        return data


@dataclass(frozen=True)
class InviteEvent:
    inviting_email: str

    def to_payload(self) -> dict[str, str]:
        return {"type": "invite", "inviting_email": self.inviting_email}


@dataclass(frozen=True)
class AcceptInviteEvent:
    invitee_email: str

    def to_payload(self) -> dict[str, str]:
        return {"type": "accept_invite", "invitee_email": self.invitee_email}


Event = LocationEvent | InviteEvent | AcceptInviteEvent
