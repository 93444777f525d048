"""
Management fee accrual state.

Fees are taken by minting pool tokens, never by moving pool balances. The
amount minted since the last accrual depends only on elapsed time, the
per-second rate and the supply, so accruing twice in the same second mints
nothing the second time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..math.safeguard_math import calc_accumulated_management_fees, calc_yearly_rate


@dataclass(frozen=True)
class ManagementFeeState:
    yearly_rate: int
    last_accrual_timestamp: int

    @classmethod
    def from_yearly_fees(cls, yearly_fees: int, now: int) -> "ManagementFeeState":
        return cls(yearly_rate=calc_yearly_rate(yearly_fees), last_accrual_timestamp=now)

    def accrue(self, total_supply: int, now: int) -> Tuple[int, "ManagementFeeState"]:
        """Return ``(minted, next_state)``; the caller commits both together."""
        elapsed = now - self.last_accrual_timestamp
        minted = calc_accumulated_management_fees(elapsed, self.yearly_rate, total_supply)
        return minted, ManagementFeeState(self.yearly_rate, max(now, self.last_accrual_timestamp))

    def with_yearly_fees(self, yearly_fees: int) -> "ManagementFeeState":
        return ManagementFeeState(calc_yearly_rate(yearly_fees), self.last_accrual_timestamp)
