"""Typed exception hierarchy for the Camb.ai connector.

WHY: Callers need to tell an invalid API key from a rate limit, a rejected
request, a failed task, or bad input, without parsing message strings.

HOW: Every error derives from CambError. HTTP failures are ApiError
subclasses chosen by status code (see classify_status). Poller failures
are TaskError with a TaskFailureReason. Input problems are
ValidationError, raised before any network call.

RULES:
- NotFoundError is a GenericApiError; only the task poller treats it as
  non-fatal
- ValidationError also subclasses ValueError so config/input errors can be
  handled together
- Messages are human-readable and never contain credentials
"""

from __future__ import annotations

import enum
from typing import Optional


class CambError(Exception):
    """Base class for all connector errors."""


class ApiError(CambError):
    """An HTTP call against the Camb.ai API failed.

    Attributes:
        status_code: HTTP status of the failed response, or None when the
                     request never produced one (connect error, timeout).
        message: Human-readable summary.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class AuthError(ApiError):
    """401: the API key was rejected."""


class RateLimitError(ApiError):
    """429: too many requests."""


class BadRequestError(ApiError):
    """400: the API rejected the request parameters."""


class GenericApiError(ApiError):
    """Any other HTTP or transport failure."""


class NotFoundError(GenericApiError):
    """404: the requested record does not exist (yet)."""


class TaskFailureReason(str, enum.Enum):
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    PAYMENT_REQUIRED = "payment_required"


class TaskError(CambError):
    """A submitted task reached a failure terminal state."""

    def __init__(
        self,
        reason: TaskFailureReason,
        message: str,
        task_id: Optional[str] = None,
    ) -> None:
        self.reason = reason
        self.message = message
        self.task_id = task_id
        super().__init__(message)


class ValidationError(CambError, ValueError):
    """Input violates a length/format constraint."""


_AUTH_MESSAGE = "Invalid API key. Please check your Camb.ai credentials."
_RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait before making more requests."


def classify_status(status_code: int, upstream_message: str) -> ApiError:
    """Map an HTTP error status to the matching ApiError subclass.

    Args:
        status_code: HTTP status of the failed response.
        upstream_message: Error text extracted from the response body.

    Returns:
        An exception instance ready to be raised.
    """
    if status_code == 401:
        return AuthError(_AUTH_MESSAGE, status_code)
    if status_code == 429:
        return RateLimitError(_RATE_LIMIT_MESSAGE, status_code)
    if status_code == 400:
        return BadRequestError(
            "Bad request: {}".format(upstream_message or "Invalid parameters"),
            status_code,
        )
    if status_code == 404:
        return NotFoundError(
            "Not found: {}".format(upstream_message or "resource does not exist"),
            status_code,
        )
    return GenericApiError(
        "Camb.ai API error {}: {}".format(status_code, upstream_message),
        status_code,
    )
