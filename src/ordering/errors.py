"""Error taxonomy and typed results for the ordering application services.

Services raise ``OrderingError`` subclasses internally so that an active
``UnitOfWork`` rolls back, and their public operations are wrapped with
``returns_result``, which turns those errors into ``Result`` values. The
HTTP layer picks a status code from ``Result.kind`` alone.
"""

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError

logger = structlog.get_logger(__name__)


class ErrorKind(Enum):
    VALIDATION = "Validation"
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    CONFLICT = "Conflict"
    UNAUTHORIZED = "Unauthorized"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    INTERNAL = "Internal"


HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.UPSTREAM_UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


class OrderingError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(OrderingError):
    kind = ErrorKind.VALIDATION


class NotFound(OrderingError):
    kind = ErrorKind.NOT_FOUND


class Forbidden(OrderingError):
    kind = ErrorKind.FORBIDDEN


class Conflict(OrderingError):
    kind = ErrorKind.CONFLICT


class InvalidTransition(Conflict):
    """Raised by ``Order`` when a status change is not allowed."""


class Unauthorized(OrderingError):
    kind = ErrorKind.UNAUTHORIZED


class UpstreamUnavailable(OrderingError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class InternalFailure(OrderingError):
    kind = ErrorKind.INTERNAL


@dataclass(frozen=True)
class Result:
    """Outcome of an application-service operation."""

    ok: bool
    value: Any = None
    kind: ErrorKind | None = None
    message: str = ""
    warning: str | None = None

    @classmethod
    def success(cls, value: Any = None, message: str = "", warning: str | None = None) -> "Result":
        return cls(ok=True, value=value, message=message, warning=warning)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result":
        return cls(ok=False, kind=kind, message=message)

    @property
    def status_code(self) -> int:
        if self.ok:
            return 200
        return HTTP_STATUS[self.kind]


def _flatten(messages: dict) -> str:
    parts = []
    for field, errors in messages.items():
        for error in errors if isinstance(errors, list) else [errors]:
            parts.append(f"{field}: {error}")
    return "; ".join(parts)


def returns_result(func):
    """Convert expected domain failures raised by ``func`` into ``Result`` values.

    A Protean ``ExpectedVersionError`` means another request changed the
    same aggregate first and is reported as a conflict. Anything else that
    is not an ``OrderingError`` or a Protean ``ValidationError`` propagates
    unchanged to the boundary's 500 handler.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            outcome = func(*args, **kwargs)
        except OrderingError as exc:
            logger.info("operation_rejected", operation=func.__qualname__, kind=exc.kind.value, reason=exc.message)
            return Result.failure(exc.kind, exc.message)
        except ValidationError as exc:
            message = _flatten(exc.messages)
            logger.info("operation_rejected", operation=func.__qualname__, kind="Validation", reason=message)
            return Result.failure(ErrorKind.VALIDATION, message)
        except ExpectedVersionError as exc:
            logger.warning("concurrent_modification", operation=func.__qualname__, error=str(exc))
            return Result.failure(ErrorKind.CONFLICT, "Another request changed this record first; try again")

        if isinstance(outcome, Result):
            return outcome
        return Result.success(outcome)

    return wrapper
