"""
Two-step invitation handshake.

An invite only notifies the invitee; nothing is persisted. Accepting adds the
invitee to the inviter's family and then pushes a confirmation back. The join is
committed before the confirmation is attempted, so a failed confirmation is
reported as a degraded result and never undoes the join.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session

from app.services.broadcast import DeliveryOutcome, DeliveryStatus, NotSentReason, Sender, deliver
from app.services.events import AcceptInviteEvent, InviteEvent
from app.services.identity import IdentityResolver, TokenRegistry
from app.services.membership import LookupStatus, MemberChangeStatus, add_member, find_family_by_creator

logger = logging.getLogger(__name__)


class InviteStatus(str, Enum):
    sent = "sent"
    not_sent = "not_sent"


class AcceptInviteStatus(str, Enum):
    joined = "joined"
    joined_but_not_confirmed = "joined_but_not_confirmed"
    no_family = "no_family"
    multiple_families = "multiple_families"


@dataclass(frozen=True)
class SendInviteResult:
    status: InviteStatus
    delivery_id: str | None = None
    reason: NotSentReason | None = None
    detail: str | None = None


@dataclass(frozen=True)
class AcceptInviteResult:
    status: AcceptInviteStatus
    family_id: str | None = None
    delivery_id: str | None = None
    reason: NotSentReason | None = None
    detail: str | None = None


async def send_invite(
    db: Session,
    caller_id: str,
    caller_email: str,
    invitee_email: str,
    push: Sender,
) -> SendInviteResult:
    invitee_id = IdentityResolver(db).resolve_by_email(invitee_email)
    outcome = await deliver(
        push, invitee_id, TokenRegistry(db).get(invitee_id), InviteEvent(inviting_email=caller_email)
    )
    logger.info("invite %s", outcome.status.value, extra={"user_id": caller_id, "recipient_id": invitee_id})
    if outcome.status == DeliveryStatus.sent:
        return SendInviteResult(status=InviteStatus.sent, delivery_id=outcome.delivery_id)
    return SendInviteResult(status=InviteStatus.not_sent, reason=outcome.reason, detail=outcome.detail)


async def accept_invite(
    db: Session,
    caller_id: str,
    caller_email: str,
    inviting_email: str,
    push: Sender,
) -> AcceptInviteResult:
    inviter_id = IdentityResolver(db).resolve_by_email(inviting_email)

    lookup = find_family_by_creator(db, inviter_id)
    if lookup.status == LookupStatus.none:
        return AcceptInviteResult(status=AcceptInviteStatus.no_family)
    if lookup.status == LookupStatus.ambiguous:
        logger.error(
            "inviter owns more than one family",
            extra={"user_id": inviter_id, "error_code": "MULTIPLE_FAMILIES"},
        )
        return AcceptInviteResult(status=AcceptInviteStatus.multiple_families)

    family_id = lookup.family.id
    if add_member(db, family_id, caller_id) == MemberChangeStatus.not_found:
        return AcceptInviteResult(status=AcceptInviteStatus.no_family)
    logger.info("invite accepted", extra={"user_id": caller_id, "family_id": family_id})

    outcome: DeliveryOutcome = await deliver(
        push, inviter_id, TokenRegistry(db).get(inviter_id), AcceptInviteEvent(invitee_email=caller_email)
    )
    if outcome.status == DeliveryStatus.sent:
        return AcceptInviteResult(
            status=AcceptInviteStatus.joined, family_id=family_id, delivery_id=outcome.delivery_id
        )
    return AcceptInviteResult(
        status=AcceptInviteStatus.joined_but_not_confirmed,
        family_id=family_id,
        reason=outcome.reason,
        detail=outcome.detail,
    )
