"""
Pool Safeguard Configuration

Loads a pool definition from safeguard.toml.
Environment variables override TOML values.
"""

from .loader import (
    LoggingConfig,
    OracleConfig,
    PoolConfig,
    PoolSectionConfig,
    SafeguardParamsConfig,
    format_fraction,
    load_config,
    parse_fraction,
)

__all__ = [
    "LoggingConfig",
    "OracleConfig",
    "PoolConfig",
    "PoolSectionConfig",
    "SafeguardParamsConfig",
    "format_fraction",
    "load_config",
    "parse_fraction",
]
