"""Text-to-sound: generate a sound effect or music clip from a prompt."""

from __future__ import annotations

from typing import Any, Mapping

from camb_connector.api.errors import ValidationError
from camb_connector.api.models import RequestDescriptor, RequestOptions, TaskStatusEnvelope
from camb_connector.config import SOUND_MAX_DURATION_S, TTS_TIMEOUT_S
from camb_connector.core.audio import sniff_audio_format
from camb_connector.core.items import BinaryData, Item
from camb_connector.operations.base import Collected, OperationContext, OperationKind, TaskOperation
from camb_connector.operations.params import check_choice, optional, optional_float, require

AUDIO_TYPES = ("sound", "music")


class GenerateSoundOperation(TaskOperation):
    kind = OperationKind.SOUND_GENERATE
    submit_path = "/text-to-sound"

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        require(params, "prompt")
        duration = optional_float(params, "duration")
        if duration is not None:
            if not 0 < duration <= SOUND_MAX_DURATION_S:
                raise ValidationError(
                    "Duration must be greater than 0 and at most {}s (got {})".format(
                        SOUND_MAX_DURATION_S, duration
                    )
                )
        check_choice(optional(params, "audio_type", "sound"), AUDIO_TYPES, "audio type")

    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        body = {
            "prompt": params["prompt"],
            "audio_type": optional(params, "audio_type", "sound"),
        }
        duration = optional_float(params, "duration")
        if duration is not None:
            body["duration"] = duration
        return RequestDescriptor(method="POST", target=self.submit_path, body=body)

    async def collect(
        self,
        ctx: OperationContext,
        params: Mapping[str, Any],
        envelope: TaskStatusEnvelope,
    ) -> Collected:
        audio = await ctx.client.issue(
            RequestDescriptor(
                method="GET",
                target="/text-to-sound-result/{}".format(envelope.run_id),
                options=RequestOptions(timeout_s=TTS_TIMEOUT_S, binary_response=True),
            )
        )
        fmt = sniff_audio_format(audio)
        file_name = optional(params, "file_name") or "sound.{}".format(fmt.extension)
        binary_property = optional(params, "binary_property_name", "data")
        return (
            {"prompt": params["prompt"], "fileName": file_name, "size": len(audio)},
            {binary_property: BinaryData(audio, file_name, fmt.mime_type)},
        )
