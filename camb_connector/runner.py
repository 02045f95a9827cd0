"""Sequential batch runner with continue-on-failure support.

WHY: Callers hand over a batch of items and expect one output record per
item, in order, each pointing back at its input. Some callers want one bad
item to stop everything; others want the error recorded and the rest of
the batch processed.

HOW: Items are executed strictly one after another; each item's whole
pipeline, including its polling loop, finishes before the next starts.
With continue_on_fail, an exception becomes that item's error record;
otherwise it propagates and the batch aborts.

RULES:
- No overlap between items (no asyncio.gather)
- Output order matches input order; paired_item is the input index
- Error records hold the message only, no traceback
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import List, Optional

from camb_connector.api.client import CambClient
from camb_connector.config import POLL_INTERVAL_S, POLL_MAX_DURATION_S
from camb_connector.core.items import Item, ItemResult
from camb_connector.operations import OperationContext, OperationKind, get_operation

logger = logging.getLogger(__name__)


async def run_batch(
    client: CambClient,
    kind: OperationKind,
    items: Sequence[Item],
    *,
    continue_on_fail: bool = False,
    interval_s: float = POLL_INTERVAL_S,
    max_duration_s: Optional[float] = POLL_MAX_DURATION_S,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_status: Optional[Callable[[str], None]] = None,
) -> List[ItemResult]:
    """Execute one operation for every item, in order.

    Args:
        client: An entered CambClient.
        kind: Which operation to run.
        items: Input items; their positions become paired_item indexes.
        continue_on_fail: Record per-item errors instead of aborting.
        interval_s: Task poll interval.
        max_duration_s: Optional local polling deadline per task.
        sleep: Coroutine used between polls.
        on_status: Optional callback for progress messages.

    Returns:
        One ItemResult per input item.
    """
    operation = get_operation(kind)
    ctx = OperationContext(
        client=client,
        interval_s=interval_s,
        max_duration_s=max_duration_s,
        sleep=sleep,
        on_status=on_status,
    )

    results: List[ItemResult] = []
    for index, item in enumerate(items):
        if on_status:
            on_status("Item {}/{}: {} {}".format(
                index + 1, len(items), kind.resource, kind.operation
            ))
        try:
            results.append(await operation.execute(ctx, item, index))
        except Exception as exc:
            if not continue_on_fail:
                raise
            logger.warning("Item %d failed: %s", index, exc)
            results.append(ItemResult.error(str(exc), index))
    return results
