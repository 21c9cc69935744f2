from __future__ import annotations

from contextlib import contextmanager
import logging

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from auth_service.domain.exceptions import PersistenceFailureError, UpstreamTimeoutError


logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = ("timeout", "timed out", "database is locked", "statement timeout")


@contextmanager
def translate_db_errors(operation: str):
    try:
        yield
    except PoolTimeoutError as exc:
        logger.warning("db: timeout operation=%s error=%s", operation, type(exc).__name__)
        raise UpstreamTimeoutError("Persistence deadline exceeded.", operation=operation) from exc
    except OperationalError as exc:
        message = str(exc.orig).lower() if exc.orig is not None else ""
        if any(marker in message for marker in _TIMEOUT_MARKERS):
            logger.warning("db: timeout operation=%s", operation)
            raise UpstreamTimeoutError("Persistence deadline exceeded.", operation=operation) from exc
        logger.warning("db: operational_error operation=%s", operation)
        raise PersistenceFailureError("Persistence failure.", operation=operation) from exc
    except SQLAlchemyError as exc:
        logger.warning("db: failure operation=%s error=%s", operation, type(exc).__name__)
        raise PersistenceFailureError("Persistence failure.", operation=operation) from exc
