"""
Pool Safeguard Constants

This module consolidates the protocol constants of the safeguard engine and
the environment configuration read from ``.env`` at import time. Constants
are organized by category for easy reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

ENGINE_DEFAULTS = {
    'SAFEGUARD_CONFIG':                '',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW DEFINE THE SIGNED WIRE FORMAT AND THE FIXED-POINT
# ARITHMETIC. CHANGING THEM BREAKS COMPATIBILITY WITH EXISTING QUOTE SIGNERS.

# ==================================================================================
# FIXED-POINT ARITHMETIC
# ==================================================================================
ONE = 10 ** 18
ONE_36 = 10 ** 36
MAX_UINT256 = 2 ** 256 - 1
MAX_UINT128 = 2 ** 128 - 1

# exp() is only defined on [MIN_EXP_INPUT, MAX_EXP_INPUT]
MAX_EXP_INPUT = 130 * ONE
MIN_EXP_INPUT = -41 * ONE
LN_2 = 693147180559945309417232121458176568  # ln(2) at 36 decimals


# ==================================================================================
# SIGNED-MESSAGE DOMAIN
# ==================================================================================
DOMAIN_NAME = "Pool Safeguard"
DOMAIN_VERSION = "1"
SWAP_DATA_WORDS = 6
BITMAP_WORD_BITS = 256


# ==================================================================================
# POOL PARAMETERS BOUNDS
# ==================================================================================
SECONDS_PER_YEAR = 365 * 24 * 3600
MAX_YEARLY_FEES = ONE // 2  # 50% / year
MIN_PERF_UPDATE_INTERVAL = 3600  # 1 hour
MAX_PERF_UPDATE_INTERVAL = 7 * 24 * 3600  # 1 week
INIT_BPT_SUPPLY = 100 * ONE
PEG_TOLERANCE = 2 * 10 ** 15  # 0.2%
DEFAULT_MAX_ORACLE_TIMEOUT = 24 * 3600
SUPPLY_HISTORY_SIZE = 1024


# ==================================================================================
# CONFIG WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = ENGINE_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Leaves every other value untouched.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
