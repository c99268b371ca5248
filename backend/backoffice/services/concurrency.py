# Overview: Transaction and locking helpers shared by every mutating service.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() takes the
    database write lock up front instead.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Start the write transaction before the first read.

    On SQLite this issues BEGIN IMMEDIATE so that validation reads and the
    writes that follow them happen under one RESERVED lock; a second writer
    waits (busy timeout) and then sees the first writer's committed rows.
    Other databases rely on lock_for_update() and conditional UPDATEs.

    If the connection already has a transaction open (the caller flushed
    writes without committing), the write joins it: SQLite already holds
    the write lock for that transaction and refuses a nested BEGIN.
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_connection = db.session.connection().connection.dbapi_connection
    if not dbapi_connection.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_write_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func inside one write transaction and commit it.

    Any exception rolls the whole transaction back before propagating, so
    a failed operation never leaves partial writes (or a held SQLite lock)
    behind. Concurrency failures are retried via run_with_retry.
    """
    def _op():
        begin_write()
        try:
            result = func()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result

    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
