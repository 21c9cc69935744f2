from __future__ import annotations

from functools import lru_cache
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _connect_args(dsn: str, timeout_seconds: float) -> dict:
    if dsn.startswith("sqlite"):
        return {"timeout": timeout_seconds, "check_same_thread": False}
    if dsn.startswith("postgresql"):
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return {}


@lru_cache(maxsize=4)
def get_engine(dsn: str, timeout_seconds: float = 5.0):
    kwargs = {"future": True, "pool_pre_ping": True, "connect_args": _connect_args(dsn, timeout_seconds)}
    if ":memory:" not in dsn:
        kwargs["pool_timeout"] = timeout_seconds
    return create_engine(dsn, **kwargs)


def init_schema(engine) -> None:
    from auth_service.infrastructure.db.models import auth  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("db: schema_initialized dialect=%s", engine.dialect.name)
