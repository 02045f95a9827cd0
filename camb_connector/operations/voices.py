"""Voice operations: list voices, clone a custom voice, design a voice from text.

WHY: Voices are the one resource with both shapes. Listing and cloning are
single synchronous calls; designing a voice from a description is a task
whose result is a pair of preview samples hosted at pre-authorized URLs.

RULES:
- Custom voice cloning uploads the reference audio as a multipart form
- Text-to-voice needs text (3..3000 chars) and a description of at least
  VOICE_DESCRIPTION_MIN_CHARS characters
- Preview samples are stored under caller-chosen names
  (default preview_1, preview_2)
"""

from __future__ import annotations

from typing import Any, Mapping

from camb_connector.api.errors import GenericApiError, ValidationError
from camb_connector.api.models import RequestDescriptor, RequestOptions, TaskStatusEnvelope
from camb_connector.config import TTS_TIMEOUT_S, VOICE_DESCRIPTION_MIN_CHARS
from camb_connector.core.audio import sniff_audio_format
from camb_connector.core.items import BinaryData, Item, ItemResult
from camb_connector.operations.base import (
    BaseOperation,
    Collected,
    OperationContext,
    OperationKind,
    TaskOperation,
)
from camb_connector.operations.params import (
    as_file_part,
    input_binary,
    optional,
    optional_int,
    output_names,
    require,
    require_int,
    require_text,
)

_PREVIEW_NAMES = ["preview_1", "preview_2"]


class ListVoicesOperation(BaseOperation):
    kind = OperationKind.VOICE_LIST

    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        voices = await ctx.client.list_voices()
        return ItemResult(
            json={"voices": [v.to_dict() for v in voices], "count": len(voices)},
            paired_item=index,
        )


class CreateCustomVoiceOperation(BaseOperation):
    """Clone a voice from a reference recording."""

    kind = OperationKind.VOICE_CREATE_CUSTOM

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        require(params, "voice_name")
        require_int(params, "gender")
        optional_int(params, "age")
        input_binary(item, params)

    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        params = item.json
        self.validate(params, item)
        media = input_binary(item, params)

        body = {
            "voice_name": params["voice_name"],
            "gender": require_int(params, "gender"),
            "age": optional_int(params, "age"),
            "description": optional(params, "description"),
            "language": optional(params, "language"),
        }
        data = await ctx.client.issue(
            RequestDescriptor(
                method="POST",
                target="/create-custom-voice",
                body=body,
                files={"file": as_file_part(media)},
                options=RequestOptions(timeout_s=TTS_TIMEOUT_S, as_form=True),
            )
        )
        voice_id = (data or {}).get("voice_id")
        if voice_id is None:
            raise GenericApiError("Custom voice creation returned no voice_id")
        return ItemResult(
            json={"voiceId": voice_id, "voiceName": params["voice_name"]},
            paired_item=index,
        )


class TextToVoiceOperation(TaskOperation):
    """Design a new voice from a written description."""

    kind = OperationKind.VOICE_TEXT_TO_VOICE
    submit_path = "/text-to-voice"

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        require_text(params)
        description = str(require(params, "voice_description"))
        if len(description) < VOICE_DESCRIPTION_MIN_CHARS:
            raise ValidationError(
                "Voice description must be at least {} characters (got {})".format(
                    VOICE_DESCRIPTION_MIN_CHARS, len(description)
                )
            )

    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        return RequestDescriptor(
            method="POST",
            target=self.submit_path,
            body={
                "text": require_text(params),
                "voice_description": str(params["voice_description"]),
            },
        )

    async def collect(
        self,
        ctx: OperationContext,
        params: Mapping[str, Any],
        envelope: TaskStatusEnvelope,
    ) -> Collected:
        result = await ctx.client.request(
            "GET", "/text-to-voice-result/{}".format(envelope.run_id)
        ) or {}
        previews = list(result.get("previews") or [])
        if not previews:
            raise GenericApiError("Voice design result {} has no previews".format(envelope.run_id))

        names = output_names(params, "output_names", _PREVIEW_NAMES)
        json_out: dict = {"previews": {}}
        binary_out = {}
        for number, (url, name) in enumerate(zip(previews, names), start=1):
            audio = await ctx.client.download(url, timeout_s=TTS_TIMEOUT_S)
            fmt = sniff_audio_format(audio)
            file_name = "voice_preview_{}.{}".format(number, fmt.extension)
            binary_out[name] = BinaryData(audio, file_name, fmt.mime_type)
            json_out["previews"][name] = {"fileName": file_name, "size": len(audio)}
        return json_out, binary_out
