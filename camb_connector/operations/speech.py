"""Speech operations: streaming synthesis and translated text-to-speech.

WHY: Synthesis is the one synchronous capability that returns audio
directly. It is also where raw PCM needs a WAV header: the stream carries
no container, and the sample rate depends on the model that produced it.

HOW: SynthesizeOperation posts to /tts-stream with a 60s timeout and binary
decoding, wraps pcm_s16le output with the model's sample rate, and names
the file by output format. TranslatedTtsOperation follows the task shape
and downloads the finished audio from /tts-result/<run_id>.

RULES:
- Text must be 3..3000 characters (inclusive)
- pcm_s16le is delivered as audio/wav after wrapping
- Default file name is tts_output.<ext>
"""

from __future__ import annotations

from typing import Any, Mapping

from camb_connector.api.models import RequestDescriptor, RequestOptions, TaskStatusEnvelope
from camb_connector.config import (
    DEFAULT_TTS_MODEL,
    SPEED_RANGE,
    TTS_MODELS,
    TTS_TIMEOUT_S,
    sample_rate_for_model,
)
from camb_connector.core.audio import AUDIO_FORMATS, PCM_FORMAT, audio_format, sniff_audio_format, wrap_pcm
from camb_connector.core.items import BinaryData, Item, ItemResult
from camb_connector.operations.base import (
    BaseOperation,
    Collected,
    OperationContext,
    OperationKind,
    TaskOperation,
)
from camb_connector.operations.params import (
    check_choice,
    check_range,
    optional,
    optional_float,
    optional_int,
    require,
    require_int,
    require_text,
)

_VOICE_TRAITS = ("age", "gender")


class SynthesizeOperation(BaseOperation):
    """Convert text to speech audio via the streaming endpoint."""

    kind = OperationKind.SPEECH_SYNTHESIZE

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        require_text(params)
        require(params, "voice")
        check_choice(optional(params, "model", DEFAULT_TTS_MODEL), TTS_MODELS, "model")
        check_choice(optional(params, "output_format", "wav"), tuple(AUDIO_FORMATS), "output format")
        speed = optional_float(params, "speed")
        if speed is not None:
            check_range(speed, SPEED_RANGE[0], SPEED_RANGE[1], "Speed")

    def build_request(self, params: Mapping[str, Any]) -> RequestDescriptor:
        body = {
            "text": require_text(params),
            "voice": params["voice"],
            "model": optional(params, "model", DEFAULT_TTS_MODEL),
            "output_format": optional(params, "output_format", "wav"),
        }
        speed = optional_float(params, "speed")
        if speed is not None:
            body["speed"] = speed
        language = optional(params, "language")
        if language:
            body["language"] = language
        instructions = optional(params, "user_instructions")
        if instructions:
            body["user_instructions"] = instructions

        return RequestDescriptor(
            method="POST",
            target="/tts-stream",
            body=body,
            options=RequestOptions(timeout_s=TTS_TIMEOUT_S, binary_response=True),
        )

    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        params = item.json
        self.validate(params, item)
        request = self.build_request(params)
        text = request.body["text"]
        model = request.body["model"]
        output_format = request.body["output_format"]

        ctx.status("Synthesizing {} characters with {}".format(len(text), model))
        audio = await ctx.client.issue(request)

        if output_format == PCM_FORMAT:
            audio = wrap_pcm(audio, sample_rate_for_model(model))

        fmt = audio_format(output_format)
        file_name = optional(params, "file_name") or "tts_output.{}".format(fmt.extension)
        binary_property = optional(params, "binary_property_name", "data")

        return ItemResult(
            json={
                "text": text,
                "voice": params["voice"],
                "model": model,
                "outputFormat": output_format,
                "fileName": file_name,
                "size": len(audio),
            },
            binary={binary_property: BinaryData(audio, file_name, fmt.mime_type)},
            paired_item=index,
        )


class TranslatedTtsOperation(TaskOperation):
    """Translate text into another language and speak it with a voice."""

    kind = OperationKind.SPEECH_TRANSLATED_TTS
    submit_path = "/translated-tts"

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        require_text(params)
        require_int(params, "voice_id")
        require_int(params, "source_language")
        require_int(params, "target_language")
        for key in _VOICE_TRAITS:
            optional_int(params, key)

    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        body = {
            "text": require_text(params),
            "voice_id": require_int(params, "voice_id"),
            "source_language": require_int(params, "source_language"),
            "target_language": require_int(params, "target_language"),
        }
        for key in _VOICE_TRAITS:
            value = optional_int(params, key)
            if value is not None:
                body[key] = value
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
                target="/tts-result/{}".format(envelope.run_id),
                options=RequestOptions(timeout_s=TTS_TIMEOUT_S, binary_response=True),
            )
        )
        fmt = sniff_audio_format(audio)
        file_name = optional(params, "file_name") or "translated_tts.{}".format(fmt.extension)
        binary_property = optional(params, "binary_property_name", "data")
        return (
            {
                "text": require_text(params),
                "targetLanguage": require_int(params, "target_language"),
                "fileName": file_name,
                "size": len(audio),
            },
            {binary_property: BinaryData(audio, file_name, fmt.mime_type)},
        )
