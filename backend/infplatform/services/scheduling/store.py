# backend/infplatform/services/scheduling/store.py
"""
Store round-trip helpers.

Transient failures (lost connection, locked database) are retried
automatically; a repeated failure surfaces as TransientStoreError, distinct
from business rejections.
"""

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.orm import Session

from .errors import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS = (OperationalError, DisconnectionError)


def run_with_retry(
    db: Session,
    operation: Callable[[], T],
    retries: int = 1,
    description: str = "store operation",
) -> T:
    """
    Run a transactional operation, retrying on transient store errors.

    The session is rolled back before each retry and on any other error;
    `operation` must redo all of its reads.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except TRANSIENT_ERRORS as e:
            db.rollback()
            if attempt >= retries:
                logger.error(f"{description} failed after {attempt + 1} attempt(s): {e}")
                raise TransientStoreError(
                    f"{description} failed, store unavailable"
                ) from e
            attempt += 1
            logger.warning(f"{description}: transient store error, retrying ({e})")
        except Exception:
            db.rollback()
            raise
