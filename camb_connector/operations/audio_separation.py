"""Audio separation: split a recording into foreground (voice) and background stems.

WHY: The separation result is not audio itself but two pre-authorized URLs,
so collecting it takes three calls: the result JSON and one download per
stem.

HOW: Upload the input media as a multipart form, poll the task, read
foreground_audio_url/background_audio_url from /audio-separation-result,
then download each URL with skip_auth.

RULES:
- Input media comes from the item's binary field (default "data")
- Stems are stored under caller-chosen names (default foreground, background)
- A missing stem URL in the result is a GenericApiError
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Any, Mapping

from camb_connector.api.errors import GenericApiError
from camb_connector.api.models import RequestDescriptor, RequestOptions, TaskStatusEnvelope
from camb_connector.config import TTS_TIMEOUT_S
from camb_connector.core.audio import sniff_audio_format
from camb_connector.core.items import BinaryData, Item
from camb_connector.operations.base import Collected, OperationContext, OperationKind, TaskOperation
from camb_connector.operations.params import as_file_part, input_binary, optional, output_names

_STEMS = ("foreground", "background")


class SeparateAudioOperation(TaskOperation):
    kind = OperationKind.AUDIO_SEPARATE
    submit_path = "/audio-separation"

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        input_binary(item, params)

    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        media = input_binary(item, params)
        return RequestDescriptor(
            method="POST",
            target=self.submit_path,
            files={"media_file": as_file_part(media)},
            options=RequestOptions(timeout_s=TTS_TIMEOUT_S, as_form=True),
        )

    async def collect(
        self,
        ctx: OperationContext,
        params: Mapping[str, Any],
        envelope: TaskStatusEnvelope,
    ) -> Collected:
        result = await ctx.client.request(
            "GET", "/audio-separation-result/{}".format(envelope.run_id)
        ) or {}
        names = output_names(params, "output_names", list(_STEMS))
        stem_prefix = PurePath(optional(params, "file_name", "separated")).stem

        json_out: dict = {"stems": {}}
        binary_out = {}
        for stem, name in zip(_STEMS, names):
            url = result.get("{}_audio_url".format(stem))
            if not url:
                raise GenericApiError(
                    "Separation result {} has no {} stem".format(envelope.run_id, stem)
                )
            audio = await ctx.client.download(url, timeout_s=TTS_TIMEOUT_S)
            fmt = sniff_audio_format(audio)
            file_name = "{}_{}.{}".format(stem_prefix, stem, fmt.extension)
            binary_out[name] = BinaryData(audio, file_name, fmt.mime_type)
            json_out["stems"][name] = {"fileName": file_name, "size": len(audio)}
        return json_out, binary_out
