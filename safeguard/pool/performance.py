"""
Performance benchmark.

The pool tracks the balances per pool token an LP would hold had they kept
(hodled) the tokens since the last checkpoint. Performance is the pool's
current value per pool token over that hodl value, both at current oracle
prices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

from ..exceptions import ErrorKind, SafeguardError
from ..math.fixed_point import div_down, mul_down
from ..math.safeguard_math import calc_performance, calc_tvl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceState:
    hodl_balances_per_pt: Tuple[int, int]
    last_update_timestamp: int

    def reference_tvl(self, prices: Sequence[int], total_supply: int) -> int:
        reference_balances = [mul_down(b, total_supply) for b in self.hodl_balances_per_pt]
        return calc_tvl(reference_balances, prices)


class PerformanceGuard:
    """Checks trades against the hodl benchmark and refreshes the checkpoint."""

    def __init__(self, state: PerformanceState):
        self.state = state

    @classmethod
    def initialize(cls, balances: Sequence[int], total_supply: int, now: int) -> "PerformanceGuard":
        per_pt = tuple(div_down(b, total_supply) for b in balances)
        return cls(PerformanceState(hodl_balances_per_pt=per_pt, last_update_timestamp=now))

    def performance(self, balances: Sequence[int], total_supply: int, prices: Sequence[int]) -> int:
        per_pt = [div_down(b, total_supply) for b in balances]
        return calc_performance(per_pt, self.state.hodl_balances_per_pt, prices)

    def check(
        self,
        post_balances: Sequence[int],
        total_supply: int,
        prices: Sequence[int],
        index_in: int,
        max_perf_dev: int,
    ) -> None:
        """
        Reject a trade that leaves the pool underperforming while pushing it
        further from its target. A trade after which token out is still
        relatively more abundant than token in moves the pool back toward
        target and is always accepted.
        """
        index_out = 1 - index_in
        hodl = self.state.hodl_balances_per_pt
        ratio_in = div_down(div_down(post_balances[index_in], total_supply), hodl[index_in])
        ratio_out = div_down(div_down(post_balances[index_out], total_supply), hodl[index_out])
        if ratio_out >= ratio_in:
            return
        perf = self.performance(post_balances, total_supply, prices)
        if perf < max_perf_dev:
            logger.debug("Low performance %d < %d", perf, max_perf_dev)
            raise SafeguardError(ErrorKind.LOW_PERFORMANCE)

    def updated(
        self,
        balances: Sequence[int],
        total_supply: int,
        prices: Sequence[int],
        now: int,
        interval: int,
    ) -> PerformanceState:
        """
        New checkpoint valued at the current TVL with the old hodl composition.

        Raises ``PerformanceUpdateTooSoon`` before ``interval`` has elapsed.
        """
        if now < self.state.last_update_timestamp + interval:
            raise SafeguardError(ErrorKind.PERFORMANCE_UPDATE_TOO_SOON)
        perf = self.performance(balances, total_supply, prices)
        hodl = tuple(mul_down(b, perf) for b in self.state.hodl_balances_per_pt)
        return PerformanceState(hodl_balances_per_pt=hodl, last_update_timestamp=now)
