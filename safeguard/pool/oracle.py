"""
Price oracle adapter.

The engine consumes oracles only through ``latest_price()``, which reports
``(value, decimals, updated_at)`` like a Chainlink-style aggregator. Prices
are normalised to 18 decimals before any comparison.

Security features:
  - Staleness check against each token's ``max_timeout``
  - Non-positive prices rejected
  - Pegged stable tokens priced at exactly 1.0 until the peg is re-evaluated
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..constants import DEFAULT_MAX_ORACLE_TIMEOUT, ONE, PEG_TOLERANCE
from ..exceptions import ErrorKind, OracleError
from ..math.fixed_point import div_down, scaling_factor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OraclePrice:
    """A single price report."""
    value: int
    decimals: int
    updated_at: int


class OracleAdapter(ABC):
    """Anything able to report the latest price of one token in a common unit."""

    @abstractmethod
    def latest_price(self) -> OraclePrice:
        ...

    def decimals(self) -> int:
        return self.latest_price().decimals


class StaticOracle(OracleAdapter):
    """
    In-memory oracle whose price is set explicitly.

    Used by tests and by hosts that push prices into the engine instead of
    letting it pull them.
    """

    def __init__(self, value: int, decimals: int = 8, updated_at: Optional[int] = None):
        self._decimals = decimals
        self._price = OraclePrice(value, decimals, int(time.time()) if updated_at is None else updated_at)

    def set_price(self, value: int, updated_at: Optional[int] = None) -> None:
        ts = int(time.time()) if updated_at is None else updated_at
        self._price = OraclePrice(value, self._decimals, ts)

    def latest_price(self) -> OraclePrice:
        return self._price

    def decimals(self) -> int:
        return self._decimals


@dataclass
class OracleParams:
    """Oracle settings of one pool token."""
    oracle: OracleAdapter
    max_timeout: int = DEFAULT_MAX_ORACLE_TIMEOUT
    is_stable: bool = False
    is_flexible_oracle: bool = False
    is_pegged: bool = False
    price_scaling_factor: int = ONE

    @classmethod
    def for_oracle(
        cls,
        oracle: OracleAdapter,
        max_timeout: int = DEFAULT_MAX_ORACLE_TIMEOUT,
        is_stable: bool = False,
        is_flexible_oracle: bool = False,
    ) -> "OracleParams":
        return cls(
            oracle=oracle,
            max_timeout=max_timeout,
            is_stable=is_stable,
            is_flexible_oracle=is_flexible_oracle,
            # stable tokens start pegged when their oracle cannot be evaluated
            is_pegged=is_stable and not is_flexible_oracle,
            price_scaling_factor=scaling_factor(oracle.decimals()) * ONE,
        )


# ---------------------------------------------------------------------------
# Price reads
# ---------------------------------------------------------------------------

def read_oracle_price(params: OracleParams, now: int) -> int:
    """Fresh oracle price at 18 decimals, ignoring the peg."""
    report = params.oracle.latest_price()
    if now - report.updated_at > params.max_timeout:
        logger.warning(
            "Stale oracle price: updated %ds ago (max %ds)", now - report.updated_at, params.max_timeout
        )
        raise OracleError(ErrorKind.STALE_ORACLE)
    if report.value <= 0:
        raise OracleError(ErrorKind.INVALID_ORACLE_PRICE, f"price {report.value}")
    return report.value * params.price_scaling_factor // ONE


def get_price(params: OracleParams, now: int) -> int:
    if params.is_pegged:
        return ONE
    return read_oracle_price(params, now)


def on_chain_amount_in_per_out(price_in: int, price_out: int) -> int:
    """Oracle-implied amount of token in for one token out."""
    return div_down(price_out, price_in)


def evaluate_peg(params: OracleParams, now: int) -> bool:
    """
    Re-evaluate whether a stable token still trades at its peg.

    Only stable tokens behind a flexible oracle move; others keep their
    current state.
    """
    if not (params.is_stable and params.is_flexible_oracle):
        return params.is_pegged
    price = read_oracle_price(params, now)
    pegged = abs(price - ONE) <= PEG_TOLERANCE
    if pegged != params.is_pegged:
        logger.info("Peg state changed: %s -> %s (price %d)", params.is_pegged, pegged, price)
    return pegged
