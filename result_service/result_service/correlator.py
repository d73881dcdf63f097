"""Aggregator joining the credit and stock results of each order.

Every order id gets its own pending join with its own lock. The first partial
result arms a timer, the second one completes the join and cancels the timer.
The timer callback takes the same per-order lock, so whichever of the second
result and the deadline gets there first decides the outcome; the other one
finds a settled join and does nothing. A result that cannot be delivered
reopens its join, so the next deadline tries again.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

from divesurf_common.errors import CorrelationTimeout, DuplicateArrivalWarning
from divesurf_common.schemas import AggregatedResult, EnrichedOrder, PartialResult, ValidationSource

from .logger import logger

DETAIL_SEPARATOR = " && "
DEFAULT_TIMEOUT = 5.0
SETTLED_HISTORY = 10_000
EMIT_ATTEMPTS = 3
RETRY_DELAY = 0.5


def join_details(*details: str) -> str:
    return DETAIL_SEPARATOR.join(detail for detail in details if detail)


def merge_results(credit: PartialResult, stock: PartialResult) -> AggregatedResult:
    """Merge both partial results of an order.

    The credit side supplies customer fields and score, the stock side the
    stock levels. The order is valid only if both sides are.
    """
    order = credit.order
    return AggregatedResult(
        order_id=order.order_id,
        customer_id=order.customer_id,
        first_name=order.first_name,
        last_name=order.last_name,
        diving_suits=order.diving_suits,
        surfboards=order.surfboards,
        overall_items=order.overall_items,
        valid=credit.valid and stock.valid,
        detail=join_details(credit.detail, stock.detail),
        credit_valid=credit.valid,
        stock_valid=stock.valid,
        credit_score=credit.credit_score,
        stock_after=stock.stock_after,
        complete=True,
    )


def incomplete_result(partial: PartialResult, timeout: float) -> AggregatedResult:
    """Build the result of a join that only ever saw one side.

    The missing side never counts as approval: the result is always invalid
    and its detail carries the incomplete marker.
    """
    is_credit = partial.source is ValidationSource.CREDIT
    missing = ValidationSource.STOCK if is_credit else ValidationSource.CREDIT
    marker = CorrelationTimeout(partial.order_id, missing.value, timeout)
    order = partial.order
    return AggregatedResult(
        order_id=order.order_id,
        customer_id=order.customer_id,
        first_name=order.first_name,
        last_name=order.last_name,
        diving_suits=order.diving_suits,
        surfboards=order.surfboards,
        overall_items=order.overall_items,
        valid=False,
        detail=join_details(partial.detail, str(marker)),
        credit_valid=partial.valid if is_credit else None,
        stock_valid=None if is_credit else partial.valid,
        credit_score=partial.credit_score,
        stock_after=partial.stock_after,
        complete=False,
    )


class _PendingJoin:
    def __init__(self, order_id: int):
        self.order_id = order_id
        self.lock = threading.Lock()
        self.partials: Dict[ValidationSource, PartialResult] = {}
        self.timer = None
        self.settled = False

    @property
    def order(self) -> EnrichedOrder:
        return next(iter(self.partials.values())).order


class ResultCorrelator:
    """Emits exactly one AggregatedResult per order id.

    Args:
        on_result: Receives the joined or timed-out result of each order;
            called again on a later deadline if every attempt raised.
        timeout: Seconds to wait for the second partial result.
        timer_factory: Builds the deadline timer, ``threading.Timer`` by default.
        settled_history: How many emitted order ids are remembered to drop
            partial results arriving after emission.
        emit_attempts: Calls of ``on_result`` per delivery before the join is
            put back on its deadline.
        retry_delay: Seconds between two calls of ``on_result``.
    """

    def __init__(
        self,
        on_result: Callable[[AggregatedResult], None],
        timeout: float = DEFAULT_TIMEOUT,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        settled_history: int = SETTLED_HISTORY,
        emit_attempts: int = EMIT_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
    ):
        if emit_attempts < 1:
            raise ValueError("emit_attempts must be at least 1")
        self._on_result = on_result
        self.timeout = timeout
        self._timer_factory = timer_factory
        self._settled_history = settled_history
        self._emit_attempts = emit_attempts
        self._retry_delay = retry_delay
        self._pending: Dict[int, _PendingJoin] = {}
        self._settled: "OrderedDict[int, EnrichedOrder]" = OrderedDict()
        self._guard = threading.Lock()

    @property
    def pending_count(self) -> int:
        """Number of orders whose result has not been delivered yet."""
        with self._guard:
            return len(self._pending)

    def offer(self, partial: PartialResult) -> Optional[AggregatedResult]:
        """Add a partial result to the join of its order.

        Returns:
            The AggregatedResult if this partial completed the join and the
            result was delivered, else None.
        """
        with self._guard:
            settled_order = self._settled.get(partial.order_id)
            if settled_order is not None:
                if settled_order == partial.order:
                    logger.warning(
                        f"Late {partial.source.value} result for order {partial.order_id} dropped, already emitted"
                    )
                    return None
                # Same id, different order: the id counter started over.
                logger.warning(f"Order id {partial.order_id} reused by a new order, starting a new join")
                del self._settled[partial.order_id]
            join = self._pending.get(partial.order_id)
            if join is None:
                join = _PendingJoin(partial.order_id)
                self._pending[partial.order_id] = join

        with join.lock:
            if join.settled:
                logger.warning(
                    f"{partial.source.value} result for order {partial.order_id} lost the race to settlement, dropped"
                )
                return None
            if partial.source in join.partials:
                warning = DuplicateArrivalWarning(partial.order_id, partial.source.value)
                logger.warning(f"{type(warning).__name__}: {warning}")
                return None

            join.partials[partial.source] = partial
            if len(join.partials) == 1:
                join.timer = self._arm_timer(join)
                logger.debug(f"Awaiting second result for order {partial.order_id} | first={partial.source.value}")
                return None

            join.settled = True
            join.timer.cancel()
            result = merge_results(join.partials[ValidationSource.CREDIT], join.partials[ValidationSource.STOCK])

        logger.info(f"Joined order {result.order_id} | valid={result.valid} | detail={result.detail}")
        if not self._deliver(join, result):
            return None
        return result

    def _arm_timer(self, join: _PendingJoin):
        timer = self._timer_factory(self.timeout, self._expire, args=(join,))
        timer.daemon = True
        timer.start()
        return timer

    def _expire(self, join: _PendingJoin) -> None:
        with join.lock:
            if join.settled:
                logger.debug(f"Deadline of order {join.order_id} fired after settlement, ignored")
                return
            join.settled = True
            if len(join.partials) == 2:
                # Joined earlier, but its delivery failed.
                result = merge_results(join.partials[ValidationSource.CREDIT], join.partials[ValidationSource.STOCK])
            else:
                (partial,) = join.partials.values()
                result = incomplete_result(partial, self.timeout)
                logger.warning(f"Order {result.order_id} timed out | detail={result.detail}")

        self._deliver(join, result)

    def _deliver(self, join: _PendingJoin, result: AggregatedResult) -> bool:
        """Hand a settled join's result to ``on_result``.

        On success the order id moves to the settled history. When every
        attempt fails the join is reopened with a fresh deadline, which
        delivers the same result again when it fires.
        """
        for attempt in range(1, self._emit_attempts + 1):
            try:
                self._on_result(result)
            except Exception as e:
                logger.error(
                    f"Failed to emit result for order {result.order_id} | "
                    f"attempt={attempt}/{self._emit_attempts} | error={e}"
                )
                if attempt < self._emit_attempts:
                    time.sleep(self._retry_delay)
                continue
            self._forget(join)
            return True

        with join.lock:
            join.settled = False
            join.timer = self._arm_timer(join)
        logger.warning(f"Order {result.order_id} kept pending, next delivery attempt in {self.timeout:g}s")
        return False

    def _forget(self, join: _PendingJoin) -> None:
        with self._guard:
            if self._pending.get(join.order_id) is join:
                del self._pending[join.order_id]
            self._settled[join.order_id] = join.order
            self._settled.move_to_end(join.order_id)
            while len(self._settled) > self._settled_history:
                self._settled.popitem(last=False)

    def close(self) -> None:
        """Cancel the deadline timers of all pending joins."""
        with self._guard:
            joins = list(self._pending.values())
        for join in joins:
            with join.lock:
                if join.timer is not None:
                    join.timer.cancel()
        if joins:
            logger.warning(f"Correlator closed with {len(joins)} pending joins")
