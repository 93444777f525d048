"""
Safeguard pool engine.

Components:
- QuoteSignatureVerifier: typed-data quote and allowlist authorization
- QuoteReplayGuard: one-time-use quote index bitmap
- SlippagePenaltyCalculator: time, origin and balance-drift penalties
- PerformanceGuard: hodl benchmark and checkpoint refresh
- SafeguardPool: the per-trade orchestrator
"""

from .fees import ManagementFeeState
from .oracle import (
    OracleAdapter,
    OracleParams,
    OraclePrice,
    StaticOracle,
    evaluate_peg,
    get_price,
    on_chain_amount_in_per_out,
)
from .penalty import PenaltyBreakdown, SlippagePenaltyCalculator
from .performance import PerformanceGuard, PerformanceState
from .replay import QuoteReplayGuard
from .safeguard_pool import SafeguardPool
from .signature import QuoteSignatureVerifier
from .signer import QuoteSigner
from .supply import SupplyHistory, SupplySnapshot
from .validation import (
    check_fair_price,
    check_min_balance_out,
    check_swap_amount,
    validate_swap_bounds,
)

__all__ = [
    "ManagementFeeState",
    "OracleAdapter",
    "OracleParams",
    "OraclePrice",
    "StaticOracle",
    "evaluate_peg",
    "get_price",
    "on_chain_amount_in_per_out",
    "PenaltyBreakdown",
    "SlippagePenaltyCalculator",
    "PerformanceGuard",
    "PerformanceState",
    "QuoteReplayGuard",
    "SafeguardPool",
    "QuoteSignatureVerifier",
    "QuoteSigner",
    "SupplyHistory",
    "SupplySnapshot",
    "check_fair_price",
    "check_min_balance_out",
    "check_swap_amount",
    "validate_swap_bounds",
]
