"""Content-based router sending aggregated orders to size-specific sinks."""

import json
import re
from typing import Any, Mapping, Optional, Union

from divesurf_common.errors import MalformedInputError
from divesurf_common.messaging import ORDERS_LARGE, ORDERS_ROUTING_ERRORS, ORDERS_SMALL, MessageBus
from divesurf_common.schemas import AggregatedResult, SizeClass
from pydantic import ValidationError

from .logger import logger

LARGE_ORDER_THRESHOLD = 10

_COUNT = re.compile(r"[0-9]+")


def classify_size(overall_items: Any) -> SizeClass:
    """Classify an order as large (more than 10 items) or small.

    Raises:
        MalformedInputError: If ``overall_items`` is not a non-negative integer.
    """
    if isinstance(overall_items, int) and not isinstance(overall_items, bool):
        count = overall_items
    elif isinstance(overall_items, str) and _COUNT.fullmatch(overall_items.strip()):
        count = int(overall_items)
    else:
        raise MalformedInputError(f"Unparseable overall items: {overall_items!r}")
    if count < 0:
        raise MalformedInputError(f"Overall items must not be negative: {count}")
    return SizeClass.LARGE if count > LARGE_ORDER_THRESHOLD else SizeClass.SMALL


class SizeRouter:
    """Forwards aggregated results to the large, small or error sink."""

    def __init__(self, bus: MessageBus):
        self.bus = bus

    def route(self, result: Union[AggregatedResult, Mapping[str, Any]]) -> Optional[AggregatedResult]:
        """Classify and forward one aggregated result.

        Returns:
            The routed result with its size class set, or None if it went to
            the error sink.

        Raises:
            MessagingError: If the sink could not be reached.
        """
        payload = result.model_dump(mode="json") if isinstance(result, AggregatedResult) else dict(result)
        order_id = payload.get("order_id")
        try:
            size_class = classify_size(payload.get("overall_items"))
            routed = AggregatedResult.model_validate({**payload, "size_class": size_class})
        except (MalformedInputError, ValidationError) as e:
            logger.error(f"Routing order {order_id} to {ORDERS_ROUTING_ERRORS}: {e}")
            self.bus.publish(
                ORDERS_ROUTING_ERRORS,
                json.dumps({"error": str(e), "payload": payload}, default=str),
                key=str(order_id) if order_id is not None else None,
            )
            return None

        channel = ORDERS_LARGE if size_class is SizeClass.LARGE else ORDERS_SMALL
        self.bus.publish(channel, routed, key=str(routed.order_id))
        logger.info(f"Routed order {routed.order_id} to {channel} | overall_items={routed.overall_items}")
        return routed
