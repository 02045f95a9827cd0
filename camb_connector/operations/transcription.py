"""Transcription: speech-to-text with speaker labels for an uploaded recording."""

from __future__ import annotations

from typing import Any, Mapping

from camb_connector.api.models import (
    RequestDescriptor,
    RequestOptions,
    TaskStatusEnvelope,
    parse_segments,
)
from camb_connector.config import TTS_TIMEOUT_S
from camb_connector.core.items import Item
from camb_connector.operations.base import Collected, OperationContext, OperationKind, TaskOperation
from camb_connector.operations.params import as_file_part, input_binary, require_int


class TranscribeOperation(TaskOperation):
    """Upload media, wait for the transcript, return its segments.

    The result endpoint lives under a different name than the submit path
    (/transcribe vs /transcription-result).
    """

    kind = OperationKind.TRANSCRIPTION_TRANSCRIBE
    submit_path = "/transcribe"

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        require_int(params, "language")
        input_binary(item, params)

    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        media = input_binary(item, params)
        return RequestDescriptor(
            method="POST",
            target=self.submit_path,
            body={"language": int(params["language"])},
            files={"media_file": as_file_part(media)},
            options=RequestOptions(timeout_s=TTS_TIMEOUT_S, as_form=True),
        )

    async def collect(
        self,
        ctx: OperationContext,
        params: Mapping[str, Any],
        envelope: TaskStatusEnvelope,
    ) -> Collected:
        payload = await ctx.client.request(
            "GET", "/transcription-result/{}".format(envelope.run_id)
        )
        segments = parse_segments(payload)
        return (
            {
                "segments": [s.to_dict() for s in segments],
                "text": " ".join(s.text.strip() for s in segments if s.text.strip()),
            },
            {},
        )
