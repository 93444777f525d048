"""
Pool Safeguard TOML Configuration Loader

Loads a pool definition from safeguard.toml with environment variable
overrides. Each [section] maps to a dataclass with ``from_dict``,
``apply_env`` and ``validate``.

Environment variable mapping:
    [pool] address              → SAFEGUARD_POOL_ADDRESS
    [pool] chain_id             → SAFEGUARD_CHAIN_ID
    [safeguard] signer          → SAFEGUARD_SIGNER
    [safeguard] yearly_fees     → SAFEGUARD_YEARLY_FEES
    [safeguard] must_allowlist_lps → SAFEGUARD_MUST_ALLOWLIST_LPS
    [logging] level             → SAFEGUARD_LOG_LEVEL

Fractions are written as decimal strings ("0.97") and converted to
18-decimal fixed point exactly.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..constants import DEFAULT_MAX_ORACLE_TIMEOUT, ONE, SAFEGUARD_CONFIG, parse_bool
from ..logger import LogManager
from ..math.safeguard_math import BalancePenaltyMode
from ..pool.oracle import OracleAdapter, OracleParams
from ..pool.safeguard_pool import SafeguardPool
from ..types import ZERO_ADDRESS, PoolParameters

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "safeguard.toml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_fraction(value: Union[str, int, float, Decimal]) -> int:
    """Decimal fraction ("0.97", 0.97, 1) to an 18-decimal fixed-point int."""
    try:
        scaled = Decimal(str(value)) * ONE
    except InvalidOperation as e:
        raise ValueError(f"Invalid fraction: {value!r}") from e
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Fraction has more than 18 decimals: {value!r}")
    return int(scaled)


def format_fraction(value: int) -> str:
    return str((Decimal(value) / ONE).normalize())


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class PoolSectionConfig:
    """[pool] section."""
    address: str = ZERO_ADDRESS
    chain_id: int = 1
    token_decimals: List[int] = field(default_factory=lambda: [18, 18])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolSectionConfig":
        return cls(
            address=data.get("address", ZERO_ADDRESS),
            chain_id=data.get("chain_id", 1),
            token_decimals=list(data.get("token_decimals", [18, 18])),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("SAFEGUARD_POOL_ADDRESS"):
            self.address = v
        if v := os.environ.get("SAFEGUARD_CHAIN_ID"):
            self.chain_id = int(v)


@dataclass
class SafeguardParamsConfig:
    """[safeguard] section."""
    signer: str = ZERO_ADDRESS
    max_perf_dev: int = parse_fraction("0.97")
    max_target_dev: int = parse_fraction("0.75")
    max_price_dev: int = parse_fraction("0.97")
    perf_update_interval: int = 24 * 3600
    yearly_fees: int = 0
    must_allowlist_lps: bool = False
    balance_penalty_mode: BalancePenaltyMode = BalancePenaltyMode.SIGNED_SUM

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SafeguardParamsConfig":
        defaults = cls()
        return cls(
            signer=data.get("signer", ZERO_ADDRESS),
            max_perf_dev=parse_fraction(data.get("max_perf_dev", "0.97")),
            max_target_dev=parse_fraction(data.get("max_target_dev", "0.75")),
            max_price_dev=parse_fraction(data.get("max_price_dev", "0.97")),
            perf_update_interval=data.get("perf_update_interval", defaults.perf_update_interval),
            yearly_fees=parse_fraction(data.get("yearly_fees", "0")),
            must_allowlist_lps=data.get("must_allowlist_lps", False),
            balance_penalty_mode=BalancePenaltyMode(
                data.get("balance_penalty_mode", BalancePenaltyMode.SIGNED_SUM.value)
            ),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("SAFEGUARD_SIGNER"):
            self.signer = v
        if v := os.environ.get("SAFEGUARD_YEARLY_FEES"):
            self.yearly_fees = parse_fraction(v)
        if v := os.environ.get("SAFEGUARD_MUST_ALLOWLIST_LPS"):
            flag = parse_bool(v)
            if not isinstance(flag, bool):
                raise ValueError(f"SAFEGUARD_MUST_ALLOWLIST_LPS must be True or False, got {v!r}")
            self.must_allowlist_lps = flag


@dataclass
class OracleConfig:
    """[oracles.token0] / [oracles.token1]."""
    max_timeout: int = DEFAULT_MAX_ORACLE_TIMEOUT
    is_stable: bool = False
    is_flexible_oracle: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OracleConfig":
        return cls(
            max_timeout=data.get("max_timeout", DEFAULT_MAX_ORACLE_TIMEOUT),
            is_stable=data.get("is_stable", False),
            is_flexible_oracle=data.get("is_flexible_oracle", False),
        )

    def to_oracle_params(self, oracle: OracleAdapter) -> OracleParams:
        return OracleParams.for_oracle(
            oracle,
            max_timeout=self.max_timeout,
            is_stable=self.is_stable,
            is_flexible_oracle=self.is_flexible_oracle,
        )


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(level=str(data.get("level", "INFO")).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("SAFEGUARD_LOG_LEVEL"):
            self.level = v.upper()


# -----------------------------------------------------------------------

@dataclass
class PoolConfig:
    """
    Complete pool definition.

    Oracle feeds themselves are not configurable from TOML; ``build_pool``
    takes the two adapters and combines them with the [oracles] settings.
    """
    pool: PoolSectionConfig = field(default_factory=PoolSectionConfig)
    safeguard: SafeguardParamsConfig = field(default_factory=SafeguardParamsConfig)
    oracles: List[OracleConfig] = field(default_factory=lambda: [OracleConfig(), OracleConfig()])
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolConfig":
        """Create PoolConfig from a parsed TOML dict."""
        oracles_data = data.get("oracles", {})
        return cls(
            pool=PoolSectionConfig.from_dict(data.get("pool", {})),
            safeguard=SafeguardParamsConfig.from_dict(data.get("safeguard", {})),
            oracles=[
                OracleConfig.from_dict(oracles_data.get("token0", {})),
                OracleConfig.from_dict(oracles_data.get("token1", {})),
            ],
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "PoolConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with environment overrides).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomllib.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.pool.apply_env()
        self.safeguard.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def to_pool_parameters(self) -> PoolParameters:
        s = self.safeguard
        return PoolParameters(
            signer=s.signer,
            max_perf_dev=s.max_perf_dev,
            max_target_dev=s.max_target_dev,
            max_price_dev=s.max_price_dev,
            perf_update_interval=s.perf_update_interval,
            yearly_fees=s.yearly_fees,
            must_allowlist_lps=s.must_allowlist_lps,
            balance_penalty_mode=s.balance_penalty_mode,
        )

    def validate(self) -> bool:
        """
        Validate all sections.

        Raises:
            ValueError: on invalid pool or logging settings
            ConfigurationError: on pool parameters outside their bounds
        """
        if self.pool.chain_id < 1:
            raise ValueError("chain_id must be >= 1")
        if len(self.pool.token_decimals) != 2:
            raise ValueError("token_decimals must list exactly two tokens")
        if any(not 0 <= d <= 18 for d in self.pool.token_decimals):
            raise ValueError(f"Invalid token_decimals: {self.pool.token_decimals}")
        if self.logging.level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.logging.level}")
        self.to_pool_parameters().validate()
        return True

    def build_pool(
        self,
        oracles: Sequence[OracleAdapter],
        clock: Optional[Callable[[], int]] = None,
    ) -> SafeguardPool:
        """Validate, apply the [logging] level and construct the pool."""
        self.validate()
        if len(oracles) != 2:
            raise ValueError("A pool needs exactly two oracles")
        LogManager().configure(log_level=self.logging.level)
        return SafeguardPool(
            pool_address=self.pool.address,
            chain_id=self.pool.chain_id,
            params=self.to_pool_parameters(),
            oracles=[cfg.to_oracle_params(o) for cfg, o in zip(self.oracles, oracles)],
            token_decimals=self.pool.token_decimals,
            clock=clock,
        )

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics)."""
        s = self.safeguard
        return {
            "pool": {
                "address": self.pool.address,
                "chain_id": self.pool.chain_id,
                "token_decimals": list(self.pool.token_decimals),
            },
            "safeguard": {
                "signer": s.signer,
                "max_perf_dev": format_fraction(s.max_perf_dev),
                "max_target_dev": format_fraction(s.max_target_dev),
                "max_price_dev": format_fraction(s.max_price_dev),
                "perf_update_interval": s.perf_update_interval,
                "yearly_fees": format_fraction(s.yearly_fees),
                "must_allowlist_lps": s.must_allowlist_lps,
                "balance_penalty_mode": s.balance_penalty_mode.value,
            },
            "oracles": {
                f"token{i}": {
                    "max_timeout": o.max_timeout,
                    "is_stable": o.is_stable,
                    "is_flexible_oracle": o.is_flexible_oracle,
                }
                for i, o in enumerate(self.oracles)
            },
            "logging": {"level": self.logging.level},
        }


def load_config(config_path: Optional[Union[str, Path]] = None) -> PoolConfig:
    """
    Resolve and load the pool configuration.

    Lookup order: explicit path, ``SAFEGUARD_CONFIG`` (environment, then
    .env), ``./safeguard.toml``, built-in defaults.
    """
    path = config_path or os.environ.get("SAFEGUARD_CONFIG") or str(SAFEGUARD_CONFIG) or DEFAULT_CONFIG_FILE
    return PoolConfig.from_file(path)
