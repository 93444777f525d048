"""
Slippage penalty composition.

total = time penalty + origin penalty + balance penalty

All three are non-negative, so applying ``1 + total`` always costs the
trader: GivenIn outputs shrink, GivenOut inputs grow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..math.safeguard_math import (
    BalancePenaltyMode,
    calc_balance_based_penalty,
    calc_origin_based_slippage,
    calc_time_slippage_penalty,
)
from ..types import SwapData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PenaltyBreakdown:
    time: int
    origin: int
    balance: int

    @property
    def total(self) -> int:
        return self.time + self.origin + self.balance


class SlippagePenaltyCalculator:

    def __init__(self, mode: BalancePenaltyMode = BalancePenaltyMode.SIGNED_SUM):
        self.mode = BalancePenaltyMode(mode)

    def compute(
        self,
        swap_data: SwapData,
        now: int,
        tx_origin: str,
        balance_token_in: int,
        balance_token_out: int,
        total_supply: int,
        quote_total_supply: int,
    ) -> PenaltyBreakdown:
        breakdown = PenaltyBreakdown(
            time=calc_time_slippage_penalty(now, swap_data.start_time, swap_data.time_based_slippage),
            origin=calc_origin_based_slippage(
                tx_origin, swap_data.expected_origin, swap_data.origin_based_slippage
            ),
            balance=calc_balance_based_penalty(
                balance_token_in,
                balance_token_out,
                total_supply,
                swap_data.quote_balance_in,
                swap_data.quote_balance_out,
                quote_total_supply,
                swap_data.max_balance_change_tolerance,
                swap_data.balance_based_slippage,
                self.mode,
            ),
        )
        logger.debug(
            "Penalty: time %d, origin %d, balance %d (total %d)",
            breakdown.time, breakdown.origin, breakdown.balance, breakdown.total,
        )
        return breakdown
