"""
Subnetly error hierarchy.

Every error carries an HTTP status and a stable error code so routers and the
application-level exception handler can render it without knowing the type.
"""
from typing import Any, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError


class SubnetlyError(Exception):
    """
    Base error for the inventory engine.

    Attributes:
        message: Human-readable message, safe to return to API callers.
        status_code: HTTP status the error maps to.
        error_code: Stable machine-readable code.
        details: Optional structured detail (validation errors, ids ...).
    """

    status_code: int = 400
    error_code: str = "subnetly_error"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Any] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class InvalidAddress(SubnetlyError):
    """Malformed dotted-quad IPv4 string or prefix length."""

    error_code = "invalid_address"


class InvalidSnapshot(SubnetlyError):
    """Backup document is missing required fields or fails validation."""

    error_code = "invalid_snapshot"


class NotFound(SubnetlyError):
    status_code = 404
    error_code = "not_found"


class Conflict(SubnetlyError):
    """Concurrent import for the same site, or a duplicate unique key."""

    status_code = 409
    error_code = "conflict"


class StorageFailure(SubnetlyError):
    status_code = 500
    error_code = "storage_failure"


class StorageTimeout(StorageFailure):
    status_code = 503
    error_code = "storage_timeout"


_TIMEOUT_MARKERS = ("querycanceled", "statement timeout", "canceling statement", "timeout")


def _is_timeout(exc: DBAPIError) -> bool:
    orig = getattr(exc, "orig", None)
    text = f"{type(orig).__name__} {orig}".lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


def translate_db_error(exc: SQLAlchemyError) -> SubnetlyError:
    """Map a SQLAlchemy error onto the engine's error taxonomy."""
    if isinstance(exc, IntegrityError):
        return Conflict("Duplicate or conflicting record", details=str(exc.orig))
    if isinstance(exc, PoolTimeoutError):
        return StorageTimeout("Timed out waiting for a database connection")
    if isinstance(exc, DBAPIError) and _is_timeout(exc):
        return StorageTimeout("Database statement timed out")
    return StorageFailure("Database error", details=str(exc))
