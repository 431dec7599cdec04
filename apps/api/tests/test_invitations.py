import asyncio

import pytest
from sqlalchemy import text

from app.core.errors import IdentityNotFoundError
from app.models.entities import Family
from app.services.broadcast import NotSentReason
from app.services.invitations import AcceptInviteStatus, InviteStatus, accept_invite, send_invite
from app.services.membership import create_family, family_member_ids, find_family_by_member


def test_send_invite_pushes_to_invitee(db_session, make_user, push):
    parent = make_user("parent@example.com")
    make_user("kid@example.com")

    result = asyncio.run(send_invite(db_session, parent, "parent@example.com", "Kid@Example.com", push))

    assert result.status == InviteStatus.sent
    assert result.delivery_id == "msg-1"
    assert push.sent == [("token-kid@example.com", {"type": "invite", "inviting_email": "parent@example.com"})]


def test_send_invite_does_not_touch_membership(db_session, make_user, push):
    parent = make_user("parent@example.com")
    kid = make_user("kid@example.com")
    family_id = create_family(db_session, parent).family_id

    asyncio.run(send_invite(db_session, parent, "parent@example.com", "kid@example.com", push))

    assert family_member_ids(db_session, family_id) == {parent}
    assert kid not in family_member_ids(db_session, family_id)


def test_send_invite_unknown_email(db_session, make_user, push):
    parent = make_user("parent@example.com")
    with pytest.raises(IdentityNotFoundError):
        asyncio.run(send_invite(db_session, parent, "parent@example.com", "nobody@example.com", push))
    assert push.attempts == []


def test_send_invite_without_device_token_is_not_sent(db_session, make_user, push):
    parent = make_user("parent@example.com")
    make_user("kid@example.com", token=None)

    result = asyncio.run(send_invite(db_session, parent, "parent@example.com", "kid@example.com", push))

    assert result.status == InviteStatus.not_sent
    assert result.reason == NotSentReason.no_address
    assert push.attempts == []


def test_send_invite_delivery_failure_is_not_sent(db_session, make_user, push):
    parent = make_user("parent@example.com")
    make_user("kid@example.com")
    push.failures["token-kid@example.com"] = "InvalidRegistration"

    result = asyncio.run(send_invite(db_session, parent, "parent@example.com", "kid@example.com", push))

    assert result.status == InviteStatus.not_sent
    assert result.reason == NotSentReason.delivery_failed
    assert result.detail == "InvalidRegistration"


def test_accept_invite_joins_and_confirms(db_session, make_user, push):
    parent = make_user("parent@example.com")
    kid = make_user("kid@example.com")
    family_id = create_family(db_session, parent).family_id

    result = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))

    assert result.status == AcceptInviteStatus.joined
    assert result.family_id == family_id
    assert family_member_ids(db_session, family_id) == {parent, kid}
    assert push.sent == [("token-parent@example.com", {"type": "accept_invite", "invitee_email": "kid@example.com"})]


def test_accept_invite_keeps_join_when_confirmation_fails(db_session, make_user, push):
    parent = make_user("parent@example.com")
    kid = make_user("kid@example.com")
    family_id = create_family(db_session, parent).family_id
    push.failures["token-parent@example.com"] = "Unavailable"

    result = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))

    assert result.status == AcceptInviteStatus.joined_but_not_confirmed
    assert result.reason == NotSentReason.delivery_failed
    assert kid in family_member_ids(db_session, family_id)


def test_accept_invite_inviter_without_token(db_session, make_user, push):
    parent = make_user("parent@example.com", token=None)
    kid = make_user("kid@example.com")
    family_id = create_family(db_session, parent).family_id

    result = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))

    assert result.status == AcceptInviteStatus.joined_but_not_confirmed
    assert result.reason == NotSentReason.no_address
    assert kid in family_member_ids(db_session, family_id)


def test_accept_invite_inviter_without_family(db_session, make_user, push):
    make_user("parent@example.com")
    kid = make_user("kid@example.com")

    result = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))

    assert result.status == AcceptInviteStatus.no_family
    assert push.attempts == []


def test_accept_invite_is_idempotent(db_session, make_user, push):
    parent = make_user("parent@example.com")
    kid = make_user("kid@example.com")
    family_id = create_family(db_session, parent).family_id

    first = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))
    second = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))

    assert first.status == second.status == AcceptInviteStatus.joined
    assert family_member_ids(db_session, family_id) == {parent, kid}


def test_accept_invite_unknown_inviter(db_session, make_user, push):
    kid = make_user("kid@example.com")
    with pytest.raises(IdentityNotFoundError):
        asyncio.run(accept_invite(db_session, kid, "kid@example.com", "ghost@example.com", push))


def test_accept_invite_when_inviter_owns_two_families(db_session, make_user, push):
    parent = make_user("parent@example.com")
    kid = make_user("kid@example.com")
    db_session.execute(text("DROP INDEX uq_families_creator_id"))
    db_session.add_all([Family(creator_id=parent), Family(creator_id=parent)])
    db_session.commit()

    result = asyncio.run(accept_invite(db_session, kid, "kid@example.com", "parent@example.com", push))

    assert result.status == AcceptInviteStatus.multiple_families
    assert result.family_id is None
    assert find_family_by_member(db_session, kid).status.value == "none"
    assert push.attempts == []
