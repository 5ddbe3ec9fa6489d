# Overview: Service-layer concurrency primitives; one store lock and scoped units of work.

from __future__ import annotations

import threading
from contextlib import contextmanager
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db


class PersistenceError(Exception):
    """Raised when the underlying storage rejects an operation."""
    pass


# Held for the whole of each service operation. Re-entrant so an operation
# may call another serialized operation.
store_lock = threading.RLock()


def serialized(func):
    """
    Run a service operation while holding the store lock.

    Storage errors raised outside atomic(), typically from plain reads, are
    rolled back and surface as PersistenceError like write failures do.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        with store_lock:
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise PersistenceError(str(exc)) from exc
    return wrapper


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    All-or-nothing unit of work on the shared session.

    Commits when the block exits cleanly. Any exception rolls back every
    statement issued inside the block; SQLAlchemy errors surface as
    PersistenceError.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError(str(exc)) from exc
    except Exception:
        db.session.rollback()
        raise
