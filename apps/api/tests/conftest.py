import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import db as core_db
from app.core.db import get_db
from app.core.errors import DeliveryError
from app.main import app
from app.models.base import Base
from app.models import entities  # noqa: F401
from app.services.identity import TokenRegistry, ensure_user
from app.services.push import get_push_client


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


class FakePushClient:
    """Records every send; per-address failures and delays are configurable."""

    def __init__(self):
        self.attempts: list[str] = []
        self.sent: list[tuple[str, dict[str, str]]] = []
        self.failures: dict[str, str] = {}
        self.delays: dict[str, float] = {}

    async def send(self, address: str, payload: dict[str, str]) -> str:
        self.attempts.append(address)
        delay = self.delays.get(address)
        if delay:
            await asyncio.sleep(delay)
        if address in self.failures:
            raise DeliveryError(self.failures[address])
        self.sent.append((address, payload))
        return f"msg-{len(self.sent)}"

    def addresses(self) -> set[str]:
        return {address for address, _ in self.sent}


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def push():
    fake = FakePushClient()

    async def override_get_push_client():
        yield fake

    app.dependency_overrides[get_push_client] = override_get_push_client
    yield fake
    app.dependency_overrides.pop(get_push_client, None)


@pytest.fixture
def client(push):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    """Register a user and, unless token=None, a device token named after the email."""

    def _make(email: str, token: str | None = "default") -> str:
        user_id = ensure_user(db_session, email)
        if token == "default":
            token = f"token-{email}"
        if token is not None:
            TokenRegistry(db_session).set(user_id, token)
        return user_id

    return _make



@pytest.fixture
def real_get_db(monkeypatch):
    """Serve requests through the production get_db, bound to the test database."""
    monkeypatch.setattr(core_db, "SessionLocal", TestingSessionLocal)
    monkeypatch.delitem(app.dependency_overrides, get_db)
