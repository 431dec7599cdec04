from sqlalchemy import select

from app.core.config import settings
from app.models.entities import User


def test_first_request_registers_user(client, db_session):
    response = client.get("/v1/me", headers={"X-Dev-User": "New.User@Example.com"})
    assert response.status_code == 200
    body = response.json()
    assert body["email"] == "new.user@example.com"
    assert body["has_device_token"] is False
    assert body["family"] == {"result": "none", "family": None}

    again = client.get("/v1/me", headers={"X-Forwarded-User": "new.user@example.com"})
    assert again.json()["user_id"] == body["user_id"]

    users = db_session.execute(select(User).where(User.email == "new.user@example.com")).scalars().all()
    assert len(users) == 1


def test_device_token_last_write_wins(client, db_session):
    headers = {"X-Dev-User": "parent@example.com"}
    assert client.put("/v1/me/device-token", json={"device_token": "first"}, headers=headers).json() == {"result": "ok"}
    assert client.put("/v1/me/device-token", json={"device_token": "second"}, headers=headers).status_code == 200

    token = db_session.execute(
        select(User.device_token).where(User.email == "parent@example.com")
    ).scalar_one()
    assert token == "second"
    assert client.get("/v1/me", headers=headers).json()["has_device_token"] is True


def test_device_token_must_not_be_empty(client):
    response = client.put("/v1/me/device-token", json={"device_token": ""}, headers={"X-Dev-User": "p@example.com"})
    assert response.status_code == 400


def test_forwardauth_mode_ignores_dev_header(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_mode", "forwardauth")
    assert client.get("/v1/me", headers={"X-Dev-User": "p@example.com"}).status_code == 401
    assert client.get("/v1/me", headers={"X-Forwarded-User": "p@example.com"}).status_code == 200


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/ready").json() == {"status": "ready"}


def test_auth_header_must_be_an_email(client, db_session):
    response = client.get("/v1/me", headers={"X-Dev-User": "not-an-email"})
    assert response.status_code == 401
    assert db_session.execute(select(User)).scalars().all() == []
