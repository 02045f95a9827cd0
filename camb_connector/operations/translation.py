"""Text translation between two Camb.ai language ids."""

from __future__ import annotations

from typing import Any, Mapping

from camb_connector.api.models import RequestDescriptor, TaskStatusEnvelope
from camb_connector.core.items import Item
from camb_connector.operations.base import Collected, OperationContext, OperationKind, TaskOperation
from camb_connector.operations.params import optional_int, require_int, text_list

_OPTIONAL_INTS = ("formality", "gender", "age")


class TranslateOperation(TaskOperation):
    kind = OperationKind.TRANSLATION_TRANSLATE
    submit_path = "/translate"

    def validate(self, params: Mapping[str, Any], item: Item) -> None:
        text_list(params, "texts")
        require_int(params, "source_language")
        require_int(params, "target_language")
        for key in _OPTIONAL_INTS:
            optional_int(params, key)

    def build_submit(self, params: Mapping[str, Any], item: Item) -> RequestDescriptor:
        body = {
            "texts": text_list(params, "texts"),
            "source_language": require_int(params, "source_language"),
            "target_language": require_int(params, "target_language"),
        }
        for key in _OPTIONAL_INTS:
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
        payload = await ctx.client.request(
            "GET", "/translation-result/{}".format(envelope.run_id)
        )
        if isinstance(payload, Mapping):
            texts = payload.get("texts") or []
        else:
            texts = payload or []
        return (
            {
                "sourceTexts": text_list(params, "texts"),
                "texts": [str(t) for t in texts],
                "targetLanguage": int(params["target_language"]),
            },
            {},
        )
