"""Error model for the Iconforge service.

Every failure the service anticipates is an :class:`AppError` tagged with an
:class:`ErrorKind`.  The kind decides the default HTTP status; the error also
carries a human-readable message and an optional ``context`` dictionary
(offending field and value, upstream status, raw upstream body, ...).

Errors are constructed where the failure is detected, propagated unchanged,
and serialised exactly once by :func:`to_error_response` at the HTTP
boundary.

Kinds
-----
========================  ======  ==========================================
Kind                      Status  Raised for
========================  ======  ==========================================
``VALIDATION``            400     Malformed client input
``NOT_FOUND``             404     Unknown style identifier or route
``REMOTE_SERVICE``        502     Upstream transport or logical failure
``SERVER``                500     Anything unanticipated
========================  ======  ==========================================

``REMOTE_SERVICE`` errors use the upstream's own status code when one is
available, and 500 when the client itself is misconfigured.
"""

from __future__ import annotations

import traceback
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Category of an :class:`AppError`."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    REMOTE_SERVICE = "remote_service"
    SERVER = "server"

    @property
    def default_status(self) -> int:
        return _DEFAULT_STATUS[self]


_DEFAULT_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.REMOTE_SERVICE: 502,
    ErrorKind.SERVER: 500,
}


class AppError(Exception):
    """An anticipated failure with a kind, status code and context.

    Attributes:
        kind: Category of the failure.
        message: Message shown to the API caller.
        status_code: HTTP status used when the error is serialised.
        context: Optional structured details for the caller.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code or kind.default_status
        self.context = context

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, status_code={self.status_code}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body for this error (without stack trace)."""
        body: dict[str, Any] = {"error": self.message, "statusCode": self.status_code}
        if self.context:
            body["context"] = self.context
        return body


def validation_error(message: str, field: str | None = None, value: Any = None) -> AppError:
    """Build a ``VALIDATION`` error naming the offending field and value."""
    return AppError(
        ErrorKind.VALIDATION,
        message,
        context={"field": field, "value": value},
    )


def not_found_error(resource: str, identifier: str | None = None) -> AppError:
    """Build a ``NOT_FOUND`` error for *resource*, optionally with its identifier."""
    if identifier:
        message = f"{resource} with identifier '{identifier}' not found"
    else:
        message = f"{resource} not found"
    context: dict[str, Any] = {"resource": resource}
    if identifier:
        context["identifier"] = identifier
    return AppError(ErrorKind.NOT_FOUND, message, context=context)


def remote_service_error(
    message: str,
    status_code: int | None = None,
    original_error: str | None = None,
    context: dict[str, Any] | None = None,
) -> AppError:
    """Build a ``REMOTE_SERVICE`` error.

    Args:
        message: Summary of what went wrong upstream.
        status_code: Upstream (or local) status; defaults to 502.
        original_error: Raw error text returned by the upstream, if any.
        context: Extra details merged into the error context.
    """
    merged: dict[str, Any] = dict(context or {})
    if original_error:
        merged["originalError"] = original_error
    return AppError(
        ErrorKind.REMOTE_SERVICE,
        message,
        status_code=status_code,
        context=merged or None,
    )


def server_error(message: str = "Internal server error", context: dict[str, Any] | None = None) -> AppError:
    """Build a ``SERVER`` error."""
    return AppError(ErrorKind.SERVER, message, context=context)


def to_error_response(exc: BaseException, *, include_stack: bool = False) -> tuple[int, dict[str, Any]]:
    """Serialise any exception into ``(status_code, body)``.

    Exceptions that are not :class:`AppError` become a 500 carrying the
    exception's message.

    Args:
        exc: The exception that reached the HTTP boundary.
        include_stack: Attach the formatted traceback under ``stack``.

    Returns:
        Tuple of HTTP status code and JSON-serialisable response body.
    """
    if isinstance(exc, AppError):
        status_code = exc.status_code
        body = exc.to_dict()
    else:
        status_code = 500
        body = {"error": str(exc) or "Internal server error", "statusCode": status_code}

    if include_stack:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return status_code, body
