from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.db import conditional_insert
from app.core.errors import ErrorContext, InvariantViolationError, StoreError
from app.models.entities import Family, FamilyMember

logger = logging.getLogger(__name__)


class CreateFamilyStatus(str, Enum):
    created = "created"
    already_exists = "already_exists"


class LookupStatus(str, Enum):
    found = "found"
    none = "none"
    ambiguous = "ambiguous"


class MemberChangeStatus(str, Enum):
    ok = "ok"
    not_found = "not_found"
    creator = "creator"


@dataclass(frozen=True)
class CreateFamilyResult:
    status: CreateFamilyStatus
    family_id: str


@dataclass(frozen=True)
class FamilyLookup:
    status: LookupStatus
    family: Family | None = None
    matches: int = 0


@dataclass(frozen=True)
class FamilyView:
    id: str
    creator_id: str
    member_ids: list[str] = field(default_factory=list)


def _lookup(db: Session, query) -> FamilyLookup:
    # Two rows are enough to tell "one" from "more than one".
    families = db.execute(query.limit(2)).scalars().all()
    if not families:
        return FamilyLookup(status=LookupStatus.none)
    if len(families) > 1:
        return FamilyLookup(status=LookupStatus.ambiguous, matches=len(families))
    return FamilyLookup(status=LookupStatus.found, family=families[0], matches=1)


def find_family_by_creator(db: Session, owner_id: str) -> FamilyLookup:
    return _lookup(db, select(Family).where(Family.creator_id == owner_id).order_by(Family.created_at.asc()))


def find_family_by_member(db: Session, user_id: str) -> FamilyLookup:
    return _lookup(
        db,
        select(Family)
        .join(FamilyMember, FamilyMember.family_id == Family.id)
        .where(FamilyMember.user_id == user_id)
        .order_by(Family.created_at.asc()),
    )


def family_member_ids(db: Session, family_id: str) -> set[str]:
    return set(db.execute(select(FamilyMember.user_id).where(FamilyMember.family_id == family_id)).scalars().all())


def describe_family(db: Session, family: Family) -> FamilyView:
    return FamilyView(id=family.id, creator_id=family.creator_id, member_ids=sorted(family_member_ids(db, family.id)))


def _insert_member(db: Session, family_id: str, user_id: str) -> None:
    db.execute(
        conditional_insert(db, FamilyMember)
        .values(family_id=family_id, user_id=user_id)
        .on_conflict_do_nothing(index_elements=[FamilyMember.family_id, FamilyMember.user_id])
    )


def create_family(db: Session, owner_id: str) -> CreateFamilyResult:
    """
    Create the single family owned by `owner_id`, or report the one that exists.

    The unique index on families.creator_id is the arbiter: when two requests race
    past the lookup, only one INSERT returns a row and the other re-reads the
    winner and reports it as already existing.
    """
    existing = find_family_by_creator(db, owner_id)
    if existing.status == LookupStatus.ambiguous:
        logger.error(
            "user owns more than one family",
            extra={"user_id": owner_id, "error_code": "INVARIANT_VIOLATION"},
        )
        raise InvariantViolationError(
            "User has more than one family",
            ErrorContext(user_id=owner_id, debug_info={"matches": existing.matches}),
        )
    if existing.status == LookupStatus.found:
        return CreateFamilyResult(status=CreateFamilyStatus.already_exists, family_id=existing.family.id)

    family_id = db.execute(
        conditional_insert(db, Family)
        .values(creator_id=owner_id)
        .on_conflict_do_nothing(index_elements=[Family.creator_id])
        .returning(Family.id)
    ).scalar_one_or_none()

    if family_id is None:
        db.rollback()
        winner = find_family_by_creator(db, owner_id)
        if winner.status != LookupStatus.found:
            raise StoreError("family creation conflicted but no family is visible", ErrorContext(user_id=owner_id))
        logger.info(
            "concurrent family creation resolved to existing family",
            extra={"user_id": owner_id, "family_id": winner.family.id},
        )
        return CreateFamilyResult(status=CreateFamilyStatus.already_exists, family_id=winner.family.id)

    _insert_member(db, family_id, owner_id)
    db.commit()
    logger.info("family created", extra={"user_id": owner_id, "family_id": family_id})
    return CreateFamilyResult(status=CreateFamilyStatus.created, family_id=family_id)


def add_member(db: Session, family_id: str, user_id: str) -> MemberChangeStatus:
    if db.get(Family, family_id) is None:
        return MemberChangeStatus.not_found
    _insert_member(db, family_id, user_id)
    db.commit()
    return MemberChangeStatus.ok


def remove_member(db: Session, family_id: str, user_id: str) -> MemberChangeStatus:
    family = db.get(Family, family_id)
    if family is None:
        return MemberChangeStatus.not_found
    if family.creator_id == user_id:
        return MemberChangeStatus.creator
    db.execute(delete(FamilyMember).where(FamilyMember.family_id == family_id, FamilyMember.user_id == user_id))
    db.commit()
    return MemberChangeStatus.ok
