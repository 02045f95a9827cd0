"""Operation kinds, execution context, and the two orchestration shapes.

WHY: Every capability is a fixed pipeline of HTTP calls, but they all come
in one of two shapes. Synchronous operations make one call (or a few) and
return. Asynchronous operations submit a task, poll it to SUCCESS, then
fetch the artifact with the run_id. Capturing the asynchronous shape once
in TaskOperation keeps each concrete operation down to "what to submit"
and "how to collect the result".

HOW: OperationKind enumerates every (resource, operation) pair. Concrete
classes subclass BaseOperation (synchronous) or TaskOperation (submit,
poll, collect) and are registered by kind in operations/__init__.py.
OperationContext carries the entered client and the poller settings.

To add a new operation:
1. Add a member to OperationKind
2. Subclass BaseOperation or TaskOperation in a module of this package
3. Register it in OPERATIONS in operations/__init__.py

RULES:
- validate() runs before any network call and raises ValidationError
- A task that succeeds without a run_id is a GenericApiError
- Failures after submission are fatal; nothing is retried or cleaned up
- Asynchronous results always carry taskId and runId in their json
"""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from camb_connector.api.client import CambClient
from camb_connector.api.errors import GenericApiError, ValidationError
from camb_connector.api.models import RequestDescriptor, TaskHandle, TaskStatusEnvelope
from camb_connector.api.poller import poll_task
from camb_connector.config import POLL_INTERVAL_S, POLL_MAX_DURATION_S
from camb_connector.core.items import BinaryData, Item, ItemResult

logger = logging.getLogger(__name__)


class OperationKind(enum.Enum):
    """Every supported (resource, operation) pair."""

    VOICE_LIST = ("voice", "list")
    VOICE_CREATE_CUSTOM = ("voice", "create_custom")
    VOICE_TEXT_TO_VOICE = ("voice", "text_to_voice")
    SPEECH_SYNTHESIZE = ("speech", "synthesize")
    SPEECH_TRANSLATED_TTS = ("speech", "translated_tts")
    SOUND_GENERATE = ("sound", "generate")
    AUDIO_SEPARATE = ("audio", "separate")
    TRANSCRIPTION_TRANSCRIBE = ("transcription", "transcribe")
    TRANSLATION_TRANSLATE = ("translation", "translate")
    LANGUAGE_LIST_SOURCE = ("language", "list_source")
    LANGUAGE_LIST_TARGET = ("language", "list_target")

    @property
    def resource(self) -> str:
        return self.value[0]

    @property
    def operation(self) -> str:
        return self.value[1]

    @classmethod
    def lookup(cls, resource: str, operation: str) -> OperationKind:
        try:
            return cls((resource, operation))
        except ValueError:
            raise ValidationError(
                "Unknown operation '{} {}'".format(resource, operation)
            ) from None


@dataclass
class OperationContext:
    """Shared, read-only state for executing operations against one client."""

    client: CambClient
    interval_s: float = POLL_INTERVAL_S
    max_duration_s: Optional[float] = POLL_MAX_DURATION_S
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)
    on_status: Optional[Callable[[str], None]] = None

    def status(self, message: str) -> None:
        if self.on_status:
            self.on_status(message)

    async def poll(self, status_path: str, task_id: Optional[str] = None) -> TaskStatusEnvelope:
        return await poll_task(
            self.client,
            status_path,
            interval_s=self.interval_s,
            max_duration_s=self.max_duration_s,
            sleep=self.sleep,
            on_status=self.on_status,
            task_id=task_id,
        )


class BaseOperation(ABC):
    """One capability, executed once per input item."""

    kind: ClassVar[OperationKind]

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        """Reject invalid input before any network call. Default: no checks."""

    @abstractmethod
    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        """Run the operation for one item and return its output record."""


Collected = Tuple[Dict[str, Any], Dict[str, BinaryData]]


class TaskOperation(BaseOperation):
    """Asynchronous shape: submit, poll to SUCCESS, collect the artifact.

    Subclasses set submit_path and implement build_submit() and collect().
    The task-status endpoint defaults to "<submit_path>/<task_id>".
    """

    submit_path: ClassVar[str]

    @abstractmethod
    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        """Describe the task submission request."""

    @abstractmethod
    async def collect(
        self,
        ctx: OperationContext,
        params: Mapping[str, Any],
        envelope: TaskStatusEnvelope,
    ) -> Collected:
        """Fetch and assemble the artifact once the task has succeeded."""

    def status_path(self, handle: TaskHandle) -> str:
        return "{}/{}".format(self.submit_path, handle.task_id)

    async def submit(self, ctx: OperationContext, params: Mapping[str, Any], item: Item) -> TaskHandle:
        data = await ctx.client.issue(self.build_submit(params, item))
        if not isinstance(data, Mapping) or "task_id" not in data:
            raise GenericApiError(
                "Task submission to {} returned no task_id".format(self.submit_path)
            )
        return TaskHandle.from_dict(data)

    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        params = item.json
        self.validate(params, item)

        handle = await self.submit(ctx, params, item)
        logger.info("Submitted %s task %s", self.submit_path, handle.task_id)
        ctx.status("Submitted task {}".format(handle.task_id))

        envelope = await ctx.poll(self.status_path(handle), handle.task_id)
        if not envelope.run_id:
            raise GenericApiError(
                "Task {} succeeded without a run_id".format(handle.task_id)
            )

        ctx.status("Fetching result for run {}".format(envelope.run_id))
        json_out, binary_out = await self.collect(ctx, params, envelope)
        json_out = dict(json_out)
        json_out["taskId"] = handle.task_id
        json_out["runId"] = envelope.run_id
        return ItemResult(json=json_out, binary=binary_out, paired_item=index)
