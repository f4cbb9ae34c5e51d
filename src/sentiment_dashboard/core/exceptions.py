# src/sentiment_dashboard/core/exceptions.py

# Domain errors raised by services and repositories. main.py maps each of them
# to an HTTP status; "not found or denied" is never raised, readers return None.

import functools
from typing import Iterable, List, Optional

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError


class DashboardError(Exception):
    """Base class for all domain errors of the API."""


class InvalidRequestError(DashboardError):
    """A required field is missing or malformed (e.g. a bulk grant without users)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class MissingReferenceError(DashboardError):
    """
    A grant references auth users or posts that do not exist.
    The whole operation is rejected; nothing is written.
    """

    def __init__(self, missing_users: Optional[Iterable] = None, missing_posts: Optional[Iterable] = None):
        self.missing_users: List[str] = [str(u) for u in (missing_users or [])]
        self.missing_posts: List[str] = [str(p) for p in (missing_posts or [])]
        parts = []
        if self.missing_users:
            parts.append(f"unknown users: {', '.join(self.missing_users)}")
        if self.missing_posts:
            parts.append(f"unknown posts: {', '.join(self.missing_posts)}")
        super().__init__("Invalid reference(s) - " + "; ".join(parts))


class UpstreamError(DashboardError):
    """The data store failed for infrastructure reasons (connection loss, timeout)."""


# Failures of the store itself, as opposed to bad statements or constraint violations.
_STORE_FAILURES = (OperationalError, InterfaceError, PoolTimeoutError)


def translate_store_errors(func):
    """Re-raises connection/timeout failures of the data store as UpstreamError."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except _STORE_FAILURES as exc:
            raise UpstreamError("The data store is unavailable, try again later.") from exc
    return wrapper
