from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.errors import StoreError

logger = logging.getLogger(__name__)

engine = create_engine(settings.database_url, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("store failure, transaction rolled back: %s", exc)
        raise StoreError("persistence layer failure") from exc
    finally:
        db.close()


def conditional_insert(db: Session, model):
    """
    Dialect-specific INSERT that supports ON CONFLICT DO NOTHING.

    Membership writes go through this so a duplicate (family, user) pair or a
    second family for the same creator is rejected by the database itself.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise StoreError(f"conditional insert not supported on dialect {dialect!r}")
