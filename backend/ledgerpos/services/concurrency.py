# Overview: Row locking, write-transaction start and retry of transient database conflicts.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrentUpdateError
from ..extensions import db

RETRYABLE_ERRORS = (OperationalError, StaleDataError, ConcurrentUpdateError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the whole write is
    serialized by begin_write_transaction() instead. populate_existing()
    makes sure the locked read replaces any stale copy in the identity map.
    """
    return query.with_for_update().populate_existing()


def begin_write_transaction() -> None:
    """
    Start the current transaction as a writer.

    On SQLite this takes the RESERVED lock up front (BEGIN IMMEDIATE) so two
    writers can never both read a row and then race to update it. Other
    dialects rely on lock_for_update().
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks), StaleDataError
    (optimistic locking conflicts) and ConcurrentUpdateError (lost
    compare-and-set). Any other exception rolls the session back and
    propagates unchanged, so a rejected operation leaves nothing behind.
    """
    if attempts is None:
        attempts = current_app.config.get("DB_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("DB_RETRY_BACKOFF_SECONDS", 0.1)

    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.debug("Retrying after %s (attempt %d)", type(exc).__name__, attempt + 1)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc
