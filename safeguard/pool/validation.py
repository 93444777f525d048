"""
Swap bound checks.

Each function raises a ``SafeguardError`` on the first violated bound and
returns nothing otherwise.
"""

from __future__ import annotations

from ..exceptions import ErrorKind, SafeguardError
from ..kinds import SwapKind
from ..math.fixed_point import div_down


def check_swap_amount(kind: SwapKind, amount_in: int, amount_out: int, max_swap_amount: int) -> None:
    if kind is SwapKind.GIVEN_IN:
        if amount_in > max_swap_amount:
            raise SafeguardError(ErrorKind.EXCEEDED_SWAP_AMOUNT_IN)
    elif amount_out > max_swap_amount:
        raise SafeguardError(ErrorKind.EXCEEDED_SWAP_AMOUNT_OUT)


def check_fair_price(
    quote_amount_in_per_out: int,
    on_chain_amount_in_per_out: int,
    amount_in: int,
    amount_out: int,
    max_price_dev: int,
) -> None:
    """
    Reject when the trader pays less token in per token out than the oracle
    price allows, relative to ``max_price_dev``.

    Both the quoted price and the price implied by the final amounts are
    checked; the worse of the two decides.
    """
    price = quote_amount_in_per_out
    if amount_out > 0:
        price = min(price, div_down(amount_in, amount_out))
    if div_down(price, on_chain_amount_in_per_out) < max_price_dev:
        raise SafeguardError(ErrorKind.UNFAIR_PRICE)


def check_min_balance_out(
    balance_token_out: int,
    amount_out: int,
    total_supply: int,
    hodl_balance_out_per_pt: int,
    max_target_dev: int,
) -> None:
    """Post-trade token-out balance per pool token must stay above ``max_target_dev`` of its target."""
    if amount_out >= balance_token_out:
        raise SafeguardError(ErrorKind.MIN_BALANCE_OUT_NOT_MET, "swap drains the pool")
    balance_out_per_pt = div_down(balance_token_out - amount_out, total_supply)
    if div_down(balance_out_per_pt, hodl_balance_out_per_pt) < max_target_dev:
        raise SafeguardError(ErrorKind.MIN_BALANCE_OUT_NOT_MET)


def validate_swap_bounds(
    kind: SwapKind,
    balance_token_out: int,
    amount_in: int,
    amount_out: int,
    quote_amount_in_per_out: int,
    max_swap_amount: int,
    on_chain_amount_in_per_out: int,
    total_supply: int,
    hodl_balance_out_per_pt: int,
    max_price_dev: int,
    max_target_dev: int,
) -> None:
    check_swap_amount(kind, amount_in, amount_out, max_swap_amount)
    check_fair_price(quote_amount_in_per_out, on_chain_amount_in_per_out, amount_in, amount_out, max_price_dev)
    check_min_balance_out(balance_token_out, amount_out, total_supply, hodl_balance_out_per_pt, max_target_dev)
