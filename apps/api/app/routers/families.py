from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import AuthContext, get_auth_context
from app.core.db import get_db
from app.schemas.families import (
    CreateFamilyResponse,
    FamilyLookupResponse,
    FamilyMemberAdd,
    FamilyResponse,
    MemberChangeResponse,
)
from app.services.access import require_creator_or_self, require_family_creator
from app.services.identity import IdentityResolver
from app.services.membership import (
    CreateFamilyStatus,
    FamilyLookup,
    add_member,
    create_family,
    describe_family,
    find_family_by_creator,
    find_family_by_member,
    remove_member,
)

router = APIRouter(prefix="/v1/families", tags=["families"])


def lookup_response(db: Session, lookup: FamilyLookup) -> FamilyLookupResponse:
    if lookup.family is None:
        return FamilyLookupResponse(result=lookup.status.value)
    view = describe_family(db, lookup.family)
    return FamilyLookupResponse(
        result=lookup.status.value,
        family=FamilyResponse(id=view.id, creator_id=view.creator_id, member_ids=view.member_ids),
    )


@router.post("", response_model=CreateFamilyResponse, status_code=201)
def create(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    result = create_family(db, ctx.user_id)
    body = CreateFamilyResponse(result=result.status.value, family_id=result.family_id)
    if result.status == CreateFamilyStatus.already_exists:
        return JSONResponse(status_code=200, content=body.model_dump())
    return body


@router.get("/mine", response_model=FamilyLookupResponse)
def my_family(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return lookup_response(db, find_family_by_member(db, ctx.user_id))


@router.get("/owned", response_model=FamilyLookupResponse)
def owned_family(
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    return lookup_response(db, find_family_by_creator(db, ctx.user_id))


@router.post("/{family_id}/members", response_model=MemberChangeResponse)
def add_family_member(
    family_id: str,
    payload: FamilyMemberAdd,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    require_family_creator(db, family_id, ctx.user_id)
    user_id = IdentityResolver(db).resolve_by_email(str(payload.email))
    status = add_member(db, family_id, user_id)
    return MemberChangeResponse(result=status.value, family_id=family_id, user_id=user_id)


@router.delete("/{family_id}/members/{user_id}", response_model=MemberChangeResponse)
def remove_family_member(
    family_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_auth_context),
):
    require_creator_or_self(db, family_id, ctx.user_id, user_id)
    status = remove_member(db, family_id, user_id)
    return MemberChangeResponse(result=status.value, family_id=family_id, user_id=user_id)
