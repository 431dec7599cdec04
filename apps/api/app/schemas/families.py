from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr


class FamilyResponse(BaseModel):
    id: str
    creator_id: str
    member_ids: list[str]


class CreateFamilyResponse(BaseModel):
    result: Literal["created", "already_exists"]
    family_id: str


class FamilyLookupResponse(BaseModel):
    result: Literal["found", "none", "ambiguous"]
    family: FamilyResponse | None = None


class FamilyMemberAdd(BaseModel):
    email: EmailStr


class MemberChangeResponse(BaseModel):
    result: Literal["ok", "not_found", "creator"]
    family_id: str
    user_id: str


class MeResponse(BaseModel):
    user_id: str
    email: EmailStr
    has_device_token: bool
    family: FamilyLookupResponse
    created_at: datetime
