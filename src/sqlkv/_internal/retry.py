"""Bounded, immediate retry of database operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError

log = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE serialization_failure / deadlock_detected
_SERIALIZATION_SQLSTATES = frozenset({"40001", "40P01"})
# ER_LOCK_DEADLOCK
_MYSQL_DEADLOCK = 1213


def sqlstate(exc: DBAPIError) -> str | None:
    """Return the SQLSTATE reported by the driver, when it reports one."""
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def any_backend_error(exc: DBAPIError) -> bool:
    return True


def is_serialization_failure(exc: DBAPIError) -> bool:
    """Return ``True`` if *exc* reports a deadlock or serialization failure."""
    if sqlstate(exc) in _SERIALIZATION_SQLSTATES:
        return True
    args = getattr(exc.orig, "args", ())
    return bool(args) and args[0] == _MYSQL_DEADLOCK


def is_data_exception(exc: DBAPIError) -> bool:
    """Return ``True`` for SQLSTATE class 22 (bad casts, invalid text, ...)."""
    state = sqlstate(exc)
    return bool(state) and state.startswith("22")


async def retry(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    when: Callable[[DBAPIError], bool] = any_backend_error,
    name: str = "operation",
) -> T:
    """Await *operation* until it succeeds, at most *attempts* times.

    Only :class:`~sqlalchemy.exc.DBAPIError` instances accepted by *when*
    are retried, immediately and without backoff.  Anything else, or the
    error of the final attempt, propagates unmodified.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except DBAPIError as exc:
            if attempt >= attempts or not when(exc):
                raise
            log.debug("%s failed (attempt %d/%d), retrying: %s", name, attempt, attempts, exc)
