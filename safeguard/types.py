"""
Pool Safeguard Types

Shared data containers for quotes, pool parameters and operation results.
Amounts are 18-decimal integers unless a field says otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from eth_utils import is_address

from .constants import (
    MAX_PERF_UPDATE_INTERVAL,
    MAX_YEARLY_FEES,
    MIN_PERF_UPDATE_INTERVAL,
    ONE,
)
from .exceptions import ConfigurationError, ErrorKind
from .kinds import SwapKind
from .math.safeguard_math import BalancePenaltyMode

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SwapData:
    """Decoded contents of the signed ``swapData`` bytes."""
    expected_origin: str
    origin_based_slippage: int
    quote_amount_in_per_out: int
    max_swap_amount: int
    quote_balance_in: int
    quote_balance_out: int
    max_balance_change_tolerance: int
    balance_based_slippage: int
    start_time: int
    time_based_slippage: int


@dataclass(frozen=True)
class SwapQuote:
    """The message a quote signer signs for one swap."""
    kind: SwapKind
    is_token_in_token0: bool
    sender: str
    recipient: str
    swap_data: bytes
    quote_index: int
    deadline: int


@dataclass(frozen=True)
class SignedSwapPayload:
    """Swap user data: the encoded swap data plus its authorization."""
    swap_data: bytes
    signature: bytes
    quote_index: int
    deadline: int


@dataclass(frozen=True)
class AllowlistProof:
    deadline: int
    signature: bytes
    join_user_data: bytes


# ---------------------------------------------------------------------------
# Pool configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PoolParameters:
    """
    Risk parameters of a pool.

    The three deviations are fractions in ``(0, 1]``: a swap is rejected when
    the quoted price, the post-trade token-out balance or the performance
    ratio falls below the corresponding fraction of its reference.
    """
    signer: str
    max_perf_dev: int
    max_target_dev: int
    max_price_dev: int
    perf_update_interval: int
    yearly_fees: int = 0
    must_allowlist_lps: bool = False
    balance_penalty_mode: BalancePenaltyMode = BalancePenaltyMode.SIGNED_SUM

    def validate(self) -> "PoolParameters":
        if not is_address(self.signer) or int(self.signer, 16) == 0:
            raise ConfigurationError(ErrorKind.NULL_SIGNER_ADDRESS)
        if not 0 < self.max_perf_dev <= ONE:
            raise ConfigurationError(ErrorKind.INVALID_MAX_PERF_DEV)
        if not 0 < self.max_target_dev <= ONE:
            raise ConfigurationError(ErrorKind.INVALID_MAX_TARGET_DEV)
        if not 0 < self.max_price_dev <= ONE:
            raise ConfigurationError(ErrorKind.INVALID_MAX_PRICE_DEV)
        if not MIN_PERF_UPDATE_INTERVAL <= self.perf_update_interval <= MAX_PERF_UPDATE_INTERVAL:
            raise ConfigurationError(ErrorKind.INVALID_PERF_UPDATE_INTERVAL)
        if not 0 <= self.yearly_fees <= MAX_YEARLY_FEES:
            raise ConfigurationError(ErrorKind.MANAGEMENT_FEES_TOO_HIGH)
        return self


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------

@dataclass
class SwapResult:
    """Amounts the token-accounting collaborator must move, in token decimals."""
    amount_in: int
    amount_out: int
    penalty: int
    quote_index: int


@dataclass
class JoinResult:
    bpt_amount_out: int
    amounts_in: List[int]
    protocol_fee_amount: int = 0
    swap: Optional[SwapResult] = None


@dataclass
class ExitResult:
    bpt_amount_in: int
    amounts_out: List[int]
    protocol_fee_amount: int = 0
    swap: Optional[SwapResult] = None


@dataclass
class PoolSnapshot:
    """Read-only view of a pool for diagnostics."""
    balances: Tuple[int, int]
    total_supply: int
    hodl_balances_per_pt: Tuple[int, int]
    last_perf_update: int
    last_fee_accrual: int
    initialized: bool
    pegged: Tuple[bool, bool] = field(default=(False, False))
