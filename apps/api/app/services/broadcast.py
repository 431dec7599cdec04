from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from sqlalchemy.orm import Session

from app.core.errors import DeliveryError, InvariantViolationError
from app.services.events import Event
from app.services.identity import TokenRegistry
from app.services.membership import family_member_ids

logger = logging.getLogger(__name__)


class DeliveryStatus(str, Enum):
    sent = "sent"
    not_sent = "not_sent"


class NotSentReason(str, Enum):
    no_address = "no_address"
    delivery_failed = "delivery_failed"


class AggregateStatus(str, Enum):
    all_sent = "all_sent"
    some_sent = "some_sent"
    none_sent = "none_sent"
    no_recipients = "no_recipients"


class Sender(Protocol):
    async def send(self, address: str, payload: dict[str, str]) -> str: ...


@dataclass(frozen=True)
class DeliveryOutcome:
    recipient_id: str
    status: DeliveryStatus
    delivery_id: str | None = None
    reason: NotSentReason | None = None
    detail: str | None = None


@dataclass(frozen=True)
class BroadcastResult:
    status: AggregateStatus
    outcomes: list[DeliveryOutcome] = field(default_factory=list)


def reduce_outcomes(outcomes: Iterable[DeliveryOutcome]) -> AggregateStatus:
    """
    Fold per-recipient outcomes into one aggregate.

    An empty set means the sender was the only member. Anything that is neither
    sent nor not_sent is a bug in the dispatch pipeline and is never ignored.
    """
    sent = not_sent = 0
    for outcome in outcomes:
        if outcome.status == DeliveryStatus.sent:
            sent += 1
        elif outcome.status == DeliveryStatus.not_sent:
            not_sent += 1
        else:
            raise InvariantViolationError(f"unrecognized delivery outcome {outcome.status!r}")

    if sent == 0 and not_sent == 0:
        return AggregateStatus.no_recipients
    if not_sent == 0:
        return AggregateStatus.all_sent
    if sent == 0:
        return AggregateStatus.none_sent
    return AggregateStatus.some_sent


async def deliver(push: Sender, recipient_id: str, address: str | None, event: Event) -> DeliveryOutcome:
    """Send the event to one recipient's device and report what happened."""
    if address is None:
        logger.warning("recipient has no device token", extra={"recipient_id": recipient_id})
        return DeliveryOutcome(recipient_id, DeliveryStatus.not_sent, reason=NotSentReason.no_address)

    try:
        delivery_id = await push.send(address, event.to_payload())
    except DeliveryError as exc:
        logger.warning(
            "push delivery failed: %s", exc.reason,
            extra={"recipient_id": recipient_id, "error_code": exc.code},
        )
        return DeliveryOutcome(
            recipient_id, DeliveryStatus.not_sent, reason=NotSentReason.delivery_failed, detail=exc.reason
        )
    return DeliveryOutcome(recipient_id, DeliveryStatus.sent, delivery_id=delivery_id)


async def broadcast_to_family(
    db: Session,
    caller_id: str,
    family_id: str,
    event: Event,
    push: Sender,
) -> BroadcastResult:
    recipients = sorted(family_member_ids(db, family_id) - {caller_id})
    # Addresses are read up front in one query; only the sends run concurrently.
    addresses = TokenRegistry(db).get_many(recipients)

    # Every recipient runs to completion before anything is reported, so one
    # slow or failing device never hides the others.
    results = await asyncio.gather(
        *(deliver(push, recipient_id, addresses[recipient_id], event) for recipient_id in recipients),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    status = reduce_outcomes(results)
    logger.info(
        "broadcast finished to %d recipient(s)", len(recipients),
        extra={"user_id": caller_id, "family_id": family_id, "result": status.value},
    )
    return BroadcastResult(status=status, outcomes=list(results))

