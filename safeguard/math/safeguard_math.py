"""
Safeguard pool formulas.

Pure functions over 18-decimal integers:
  - management fee accrual (continuously compounding)
  - slippage penalties (time, origin, balance drift)
  - penalty application for GivenIn / GivenOut swaps
  - join/exit internal swap sizing for two-token pools
  - TVL and performance ratio

No function here reads or writes pool state.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence, Tuple

from ..constants import ONE, SECONDS_PER_YEAR
from ..exceptions import ErrorKind, MathError, SafeguardError
from .fixed_point import complement, div_down, div_up, exp, ln, mul_down, mul_up


class BalancePenaltyMode(str, Enum):
    """How the three balance-drift contributions are combined."""
    SIGNED_SUM = "signed_sum"    # sum signed contributions, clamp the total at 0
    CLAMP_EACH = "clamp_each"    # clamp every contribution at 0, then sum


# ---------------------------------------------------------------------------
# Management fees
# ---------------------------------------------------------------------------

def calc_yearly_rate(yearly_fees: int) -> int:
    """Per-second continuous rate such that one year retains ``1 - yearly_fees``."""
    if yearly_fees == 0:
        return 0
    if yearly_fees < 0 or yearly_fees >= ONE:
        raise SafeguardError(ErrorKind.MANAGEMENT_FEES_TOO_HIGH, "yearly fees must be in [0, 1)")
    log_result = ln(complement(yearly_fees))
    # rounded to nearest, the rate is stored at 18 decimals only
    return (-log_result + SECONDS_PER_YEAR // 2) // SECONDS_PER_YEAR


def calc_accumulated_management_fees(
    elapsed_time: int,
    yearly_rate: int,
    current_supply: int,
) -> int:
    """Pool tokens to mint so the fee recipient owns ``1 - e^(-rate*t)`` of the new supply."""
    if yearly_rate == 0 or elapsed_time <= 0:
        return 0
    exp_result = exp(yearly_rate * elapsed_time)
    return mul_down(current_supply, exp_result - ONE)


# ---------------------------------------------------------------------------
# Slippage penalties
# ---------------------------------------------------------------------------

def calc_time_slippage_penalty(current_timestamp: int, start_time: int, time_based_slippage: int) -> int:
    if current_timestamp <= start_time:
        return 0
    return time_based_slippage * (current_timestamp - start_time)


def calc_origin_based_slippage(tx_origin: str, expected_origin: str, origin_based_slippage: int) -> int:
    if tx_origin.lower() == expected_origin.lower():
        return 0
    return origin_based_slippage


def _relative_change(numerator_value: int, base: int, tolerance: int) -> int:
    """Signed ``(numerator_value - base) / base`` bounded by ``tolerance``."""
    delta = numerator_value - base
    if delta == 0:
        return 0
    if base == 0:
        raise SafeguardError(ErrorKind.BALANCE_TOLERANCE_EXCEEDED, "zero reference balance")
    magnitude = div_down(abs(delta), base)
    if magnitude >= tolerance:
        raise SafeguardError(ErrorKind.BALANCE_TOLERANCE_EXCEEDED)
    return magnitude if delta > 0 else -magnitude


def calc_balance_based_penalty(
    balance_token_in: int,
    balance_token_out: int,
    total_supply: int,
    quote_balance_in: int,
    quote_balance_out: int,
    quote_total_supply: int,
    max_balance_change_tolerance: int,
    balance_based_slippage: int,
    mode: BalancePenaltyMode = BalancePenaltyMode.SIGNED_SUM,
) -> int:
    """
    Penalty for pool state drift between quote issuance and execution.

    A pool that holds less of either token than quoted, or whose supply grew,
    makes the quote stale in the trader's favour, so each such drift adds
    ``balance_based_slippage * relative_change``. Any single drift at or above
    ``max_balance_change_tolerance`` rejects the trade.
    """
    changes = (
        _relative_change(quote_balance_in, balance_token_in, max_balance_change_tolerance),
        _relative_change(quote_balance_out, balance_token_out, max_balance_change_tolerance),
        _relative_change(total_supply, quote_total_supply, max_balance_change_tolerance),
    )

    contributions = []
    for change in changes:
        contribution = mul_down(balance_based_slippage, abs(change))
        contributions.append(contribution if change >= 0 else -contribution)

    if BalancePenaltyMode(mode) is BalancePenaltyMode.CLAMP_EACH:
        return sum(max(c, 0) for c in contributions)
    return max(sum(contributions), 0)


def apply_penalty_given_in(amount_in: int, quote_amount_in_per_out: int, penalty: int) -> int:
    """Amount out for an exact amount in; the penalty only ever lowers it."""
    quoted_out = div_down(amount_in, quote_amount_in_per_out)
    return div_down(quoted_out, ONE + penalty)


def apply_penalty_given_out(amount_out: int, quote_amount_in_per_out: int, penalty: int) -> int:
    """Amount in for an exact amount out; the penalty only ever raises it."""
    quoted_in = mul_up(amount_out, quote_amount_in_per_out)
    return mul_up(quoted_in, ONE + penalty)


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

def calc_tvl(balances: Sequence[int], prices: Sequence[int]) -> int:
    return sum(mul_down(balance, price) for balance, price in zip(balances, prices))


def calc_performance(
    balances: Sequence[int],
    reference_balances: Sequence[int],
    prices: Sequence[int],
) -> int:
    """Current TVL over reference TVL, both valued at ``prices``."""
    return div_down(calc_tvl(balances, prices), calc_tvl(reference_balances, prices))


# ---------------------------------------------------------------------------
# Joins and exits
# ---------------------------------------------------------------------------
# ``x`` is the token the caller provides (join) or wants (exit) in excess of
# the pool's proportions, ``l`` the other one. ``price`` is the amount of the
# token going into the pool per unit of the token coming out, penalty included.

def calc_join_swap_amounts(
    balance_x: int,
    balance_l: int,
    amount_x: int,
    amount_l: int,
    price: int,
) -> Tuple[int, int]:
    """
    Internal swap that makes an unbalanced join proportional.

    Returns ``(swap_amount_in, swap_amount_out)``: ``x`` sold to the pool and
    ``l`` received from it.
    """
    numerator = mul_down(amount_x, balance_l) - mul_up(amount_l, balance_x)
    if numerator <= 0:
        return 0, 0
    denominator = balance_x + amount_x + mul_up(price, balance_l + amount_l)
    swap_amount_out = div_down(numerator, denominator)
    swap_amount_in = mul_up(price, swap_amount_out)
    if swap_amount_in > amount_x or swap_amount_out >= balance_l:
        raise MathError(ErrorKind.OVERFLOW, "join swap exceeds available amounts")
    return swap_amount_in, swap_amount_out


def calc_join_ratio(
    balance_x: int,
    balance_l: int,
    amount_x: int,
    amount_l: int,
    swap_amount_in: int,
    swap_amount_out: int,
) -> int:
    """Fraction of the post-swap pool the joined amounts represent, rounded down."""
    ratio_x = div_down(amount_x - swap_amount_in, balance_x + swap_amount_in)
    ratio_l = div_down(amount_l + swap_amount_out, balance_l - swap_amount_out)
    return min(ratio_x, ratio_l)


def calc_exit_swap_amounts(
    balance_x: int,
    balance_l: int,
    amount_x: int,
    amount_l: int,
    price: int,
) -> Tuple[int, int]:
    """
    Internal swap that makes an unbalanced exit proportional.

    Returns ``(swap_amount_in, swap_amount_out)``: ``l`` paid into the pool
    and ``x`` taken out of it.
    """
    if amount_x >= balance_x or amount_l >= balance_l:
        raise SafeguardError(ErrorKind.MIN_BALANCE_OUT_NOT_MET, "exit exceeds pool balance")
    numerator = mul_down(amount_x, balance_l) - mul_up(amount_l, balance_x)
    if numerator <= 0:
        return 0, 0
    denominator = balance_l - amount_l + mul_up(price, balance_x - amount_x)
    swap_amount_out = div_down(numerator, denominator)
    swap_amount_in = mul_up(price, swap_amount_out)
    return swap_amount_in, swap_amount_out


def calc_exit_ratio(
    balance_x: int,
    balance_l: int,
    amount_x: int,
    amount_l: int,
    swap_amount_in: int,
    swap_amount_out: int,
) -> int:
    """Fraction of the post-swap pool the exited amounts represent, rounded up."""
    ratio_x = div_up(amount_x - swap_amount_out, balance_x - swap_amount_out)
    ratio_l = div_up(amount_l + swap_amount_in, balance_l + swap_amount_in)
    return max(ratio_x, ratio_l)
