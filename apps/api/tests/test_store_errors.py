import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.models.entities import Family
from app.routers import families as families_router
from app.services.broadcast import broadcast_to_family
from app.services.events import LocationEvent, LocationPayload
from app.services.identity import TokenRegistry
from app.services.membership import add_member, create_family


def _headers(email):
    return {"X-Dev-User": email}


def _locked(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


def test_store_failure_is_rolled_back_and_reported(client, real_get_db, monkeypatch, db_session):
    monkeypatch.setattr(families_router, "create_family", _locked)

    response = client.post("/v1/families", headers=_headers("u1@example.com"))

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORE_ERROR"
    assert db_session.execute(select(Family)).scalars().all() == []


def test_token_read_failure_fails_the_whole_broadcast(db_session, make_user, push, monkeypatch):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    family_id = create_family(db_session, a).family_id
    add_member(db_session, family_id, b)
    monkeypatch.setattr(TokenRegistry, "get_many", _locked)

    event = LocationEvent(payload=LocationPayload(latitude=1.0, longitude=2.0), sender_id=a)
    with pytest.raises(OperationalError):
        asyncio.run(broadcast_to_family(db_session, a, family_id, event, push))
    assert push.attempts == []


def test_token_read_failure_on_location_share_is_store_error(client, real_get_db, push, monkeypatch):
    client.post("/v1/families", headers=_headers("u1@example.com"))
    client.post("/v1/invitations/accept", json={"inviting_email": "u1@example.com"}, headers=_headers("u2@example.com"))
    monkeypatch.setattr(TokenRegistry, "get_many", _locked)

    response = client.post("/v1/locations", json={"latitude": 1.0, "longitude": 2.0}, headers=_headers("u1@example.com"))

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORE_ERROR"
    assert push.attempts == []
