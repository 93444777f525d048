"""
Safeguard fixed-point math.
"""

from .fixed_point import (
    complement,
    div_down,
    div_up,
    downscale_down,
    downscale_up,
    exp,
    ln,
    mul_down,
    mul_up,
    scaling_factor,
    to_uint128,
    upscale,
)
from .safeguard_math import (
    BalancePenaltyMode,
    apply_penalty_given_in,
    apply_penalty_given_out,
    calc_accumulated_management_fees,
    calc_balance_based_penalty,
    calc_exit_ratio,
    calc_exit_swap_amounts,
    calc_join_ratio,
    calc_join_swap_amounts,
    calc_origin_based_slippage,
    calc_performance,
    calc_time_slippage_penalty,
    calc_tvl,
    calc_yearly_rate,
)

__all__ = [
    "complement",
    "div_down",
    "div_up",
    "downscale_down",
    "downscale_up",
    "exp",
    "ln",
    "mul_down",
    "mul_up",
    "scaling_factor",
    "to_uint128",
    "upscale",
    "BalancePenaltyMode",
    "apply_penalty_given_in",
    "apply_penalty_given_out",
    "calc_accumulated_management_fees",
    "calc_balance_based_penalty",
    "calc_exit_ratio",
    "calc_exit_swap_amounts",
    "calc_join_ratio",
    "calc_join_swap_amounts",
    "calc_origin_based_slippage",
    "calc_performance",
    "calc_time_slippage_penalty",
    "calc_tvl",
    "calc_yearly_rate",
]
