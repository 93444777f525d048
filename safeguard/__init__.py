"""
Pool Safeguard

Swap-validation and quote-authorization engine for two-token pools priced
by signed off-chain quotes.
"""

from .exceptions import (
    ERROR_CODES,
    ConfigurationError,
    ErrorKind,
    MathError,
    OracleError,
    PayloadError,
    ReplayError,
    SafeguardError,
    SafeguardException,
    SignatureError,
)
from .kinds import ExitKind, JoinKind, SwapKind
from .math.safeguard_math import BalancePenaltyMode
from .pool import (
    OracleParams,
    QuoteReplayGuard,
    QuoteSigner,
    SafeguardPool,
    StaticOracle,
)
from .types import (
    ExitResult,
    JoinResult,
    PoolParameters,
    SwapData,
    SwapQuote,
    SwapResult,
)

__version__ = "1.0.0"

__all__ = [
    "ERROR_CODES",
    "BalancePenaltyMode",
    "ConfigurationError",
    "ErrorKind",
    "ExitKind",
    "ExitResult",
    "JoinKind",
    "JoinResult",
    "MathError",
    "OracleError",
    "OracleParams",
    "PayloadError",
    "PoolParameters",
    "QuoteReplayGuard",
    "QuoteSigner",
    "ReplayError",
    "SafeguardError",
    "SafeguardException",
    "SafeguardPool",
    "SignatureError",
    "StaticOracle",
    "SwapData",
    "SwapKind",
    "SwapQuote",
    "SwapResult",
]
