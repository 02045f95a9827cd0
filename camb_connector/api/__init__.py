"""Camb.ai API package: async HTTP client, task poller, wire models, errors.

WHY: Every operation talks to the same remote API. This package keeps all
HTTP, authentication, status-code classification and task polling behind
CambClient and poll_task, so operations only describe what to call.

RULES:
- All HTTP calls go through CambClient (no direct httpx usage elsewhere)
- Authentication is the x-api-key header from config
- Only the poller tolerates 404; nothing here retries on its own
"""

from camb_connector.api.client import CambClient
from camb_connector.api.errors import (
    ApiError,
    AuthError,
    BadRequestError,
    CambError,
    GenericApiError,
    NotFoundError,
    RateLimitError,
    TaskError,
    TaskFailureReason,
    ValidationError,
)
from camb_connector.api.models import (
    RequestDescriptor,
    RequestOptions,
    TaskHandle,
    TaskStatus,
    TaskStatusEnvelope,
)
from camb_connector.api.poller import poll_task

__all__ = [
    "ApiError",
    "AuthError",
    "BadRequestError",
    "CambClient",
    "CambError",
    "GenericApiError",
    "NotFoundError",
    "RateLimitError",
    "RequestDescriptor",
    "RequestOptions",
    "TaskError",
    "TaskFailureReason",
    "TaskHandle",
    "TaskStatus",
    "TaskStatusEnvelope",
    "ValidationError",
    "poll_task",
]
