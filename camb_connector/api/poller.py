"""Task poller: wait for an asynchronous Camb.ai task to reach a terminal state.

WHY: Long-running capabilities (translation, transcription, sound
generation, separation, voice design) return a task_id immediately. The
result only exists once GET <status_path> reports SUCCESS, at which point
the envelope carries the run_id used to fetch the artifact.

HOW: A fixed-interval loop. Each iteration issues one status request
through CambClient and maps the normalized TaskStatus to "keep polling",
"return", or a TaskError. A 404 means the status record is not queryable
yet and is treated like PENDING; every other API error ends the loop.

RULES:
- Fixed interval, no backoff; the sleep happens only between non-terminal
  iterations
- No iteration cap; max_duration_s=None polls until a terminal state
- Only NotFoundError is tolerated; other ApiErrors propagate unchanged
- sleep is injectable so tests can count intervals without waiting
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Optional

from camb_connector.api.client import CambClient
from camb_connector.api.errors import NotFoundError, TaskError, TaskFailureReason
from camb_connector.api.models import TaskStatus, TaskStatusEnvelope
from camb_connector.config import POLL_INTERVAL_S, POLL_MAX_DURATION_S

logger = logging.getLogger(__name__)

_TIMEOUT_MESSAGE = "Task timed out on the server. Retry or reduce the input size."
_PAYMENT_MESSAGE = "Insufficient account balance. Top up your Camb.ai credits and retry."


def _failure(envelope: TaskStatusEnvelope, task_id: Optional[str]) -> Optional[TaskError]:
    """Return the TaskError for a failure terminal, or None if not one."""
    status = envelope.status
    if status in (TaskStatus.ERROR, TaskStatus.FAILED):
        return TaskError(
            TaskFailureReason.FAILED,
            "Task failed: {}".format(envelope.message or "no reason given"),
            task_id,
        )
    if status is TaskStatus.TIMEOUT:
        return TaskError(TaskFailureReason.TIMED_OUT, _TIMEOUT_MESSAGE, task_id)
    if status is TaskStatus.PAYMENT_REQUIRED:
        return TaskError(TaskFailureReason.PAYMENT_REQUIRED, _PAYMENT_MESSAGE, task_id)
    return None


async def poll_task(
    client: CambClient,
    status_path: str,
    *,
    interval_s: float = POLL_INTERVAL_S,
    max_duration_s: Optional[float] = POLL_MAX_DURATION_S,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_status: Optional[Callable[[str], None]] = None,
    task_id: Optional[str] = None,
) -> TaskStatusEnvelope:
    """Poll a task-status endpoint until the task is terminal.

    Args:
        client: An entered CambClient.
        status_path: Status endpoint of the task, e.g. "/translate/<task_id>".
        task_id: Id of the polled task, recorded on any TaskError raised.
        interval_s: Seconds to wait between polls.
        max_duration_s: Optional local deadline. None polls forever.
        sleep: Coroutine used to wait between polls.
        on_status: Optional callback for human-readable progress.

    Returns:
        The SUCCESS envelope; its run_id identifies the result artifact.

    Raises:
        TaskError: the task reached ERROR/FAILED, TIMEOUT or
            PAYMENT_REQUIRED, or the local deadline passed.
        ApiError: any non-404 failure of the status request.
    """
    start_time = time.monotonic()
    last_status: Optional[TaskStatus] = None

    while True:
        try:
            data = await client.request("GET", status_path)
        except NotFoundError:
            logger.info("Task status %s not queryable yet, retrying", status_path)
            envelope = TaskStatusEnvelope(status=TaskStatus.PENDING)
        else:
            envelope = TaskStatusEnvelope.from_dict(data)

        if envelope.status is not last_status:
            logger.debug("Task %s status: %s", status_path, envelope.status.value)
            if on_status:
                on_status("Task status: {}".format(envelope.status.value))
            last_status = envelope.status

        if envelope.status is TaskStatus.SUCCESS:
            return envelope

        error = _failure(envelope, task_id)
        if error is not None:
            raise error

        if max_duration_s is not None:
            elapsed = time.monotonic() - start_time
            if elapsed >= max_duration_s:
                raise TaskError(
                    TaskFailureReason.TIMED_OUT,
                    "Gave up waiting for task {} after {:.0f}s (limit: {:.0f}s)".format(
                        status_path, elapsed, max_duration_s
                    ),
                    task_id,
                )

        await sleep(interval_s)
