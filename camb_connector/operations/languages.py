"""Language listing: the ids accepted by the translation and dubbing endpoints."""

from __future__ import annotations

from camb_connector.core.items import Item, ItemResult
from camb_connector.operations.base import BaseOperation, OperationContext, OperationKind


class ListSourceLanguagesOperation(BaseOperation):
    kind = OperationKind.LANGUAGE_LIST_SOURCE

    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        languages = await ctx.client.list_source_languages()
        return ItemResult(
            json={"languages": [lang.to_dict() for lang in languages]},
            paired_item=index,
        )


class ListTargetLanguagesOperation(BaseOperation):
    kind = OperationKind.LANGUAGE_LIST_TARGET

    async def execute(self, ctx: OperationContext, item: Item, index: int) -> ItemResult:
        languages = await ctx.client.list_target_languages()
        return ItemResult(
            json={"languages": [lang.to_dict() for lang in languages]},
            paired_item=index,
        )
