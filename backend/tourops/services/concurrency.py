# Overview: Row locking and retry helpers for services that read-then-write under concurrent requests.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def locked_get(model, pk):
    """
    Load one row by primary key with SELECT ... FOR UPDATE.

    Status-transition checks compare the old and new value, so the row must
    not change between the read and the commit. SQLite ignores the lock.
    """
    return db.session.query(model).filter(model.id == pk).with_for_update().first()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run `func` and retry on lock waits, deadlocks and stale rows.

    The session is rolled back before each retry, so `func` must redo all of
    its reads. The last failure propagates.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            delay = backoff_base * (2 ** (attempt - 1))
            logger.warning("Retrying after %s (attempt %d of %d)", type(exc).__name__, attempt, attempts)
            time.sleep(delay)
