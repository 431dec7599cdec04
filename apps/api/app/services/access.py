from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.entities import Family


def require_family(db: Session, family_id: str) -> Family:
    family = db.get(Family, family_id)
    if family is None:
        raise HTTPException(status_code=404, detail="family not found")
    return family


def require_family_creator(db: Session, family_id: str, user_id: str) -> Family:
    family = require_family(db, family_id)
    if family.creator_id != user_id:
        raise HTTPException(status_code=403, detail="only the family creator can do this")
    return family


def require_creator_or_self(db: Session, family_id: str, caller_id: str, target_user_id: str) -> Family:
    family = require_family(db, family_id)
    if caller_id != target_user_id and family.creator_id != caller_id:
        raise HTTPException(status_code=403, detail="only the family creator can remove other members")
    return family
