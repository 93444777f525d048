"""
Pool Safeguard Exceptions

Every rejection raised by the engine carries an ``ErrorKind`` and the stable
string code integrating tooling matches on. Codes use the numbered prefix
scheme of the on-chain pools (``SWAAP#NN`` for safeguard checks, ``BAL#NNN``
for the shared vault/math errors) and never change between versions.

    ============================  =========
    ErrorKind                     code
    ============================  =========
    EXCEEDED_SWAP_AMOUNT_IN       SWAAP#00
    EXCEEDED_SWAP_AMOUNT_OUT      SWAAP#01
    UNFAIR_PRICE                  SWAAP#02
    LOW_PERFORMANCE               SWAAP#03
    MIN_BALANCE_OUT_NOT_MET       SWAAP#04
    NOT_ENOUGH_PT_OUT             SWAAP#05
    EXCEEDED_BURNED_PT            SWAAP#06
    NULL_SIGNER_ADDRESS           SWAAP#07
    INVALID_PERF_UPDATE_INTERVAL  SWAAP#08
    INVALID_MAX_PERF_DEV          SWAAP#09
    INVALID_MAX_TARGET_DEV        SWAAP#10
    INVALID_MAX_PRICE_DEV         SWAAP#11
    PERFORMANCE_UPDATE_TOO_SOON   SWAAP#12
    INVALID_ORACLE_PRICE          SWAAP#13
    MANAGEMENT_FEES_TOO_HIGH      SWAAP#14
    MALFORMED_USER_DATA           SWAAP#15
    QUOTE_EXPIRED                 SWAAP#16
    INVALID_SIGNATURE             SWAAP#17
    QUOTE_ALREADY_USED            SWAAP#18
    ALLOWLIST_WRONG_SIGNER        SWAAP#19
    BALANCE_TOLERANCE_EXCEEDED    SWAAP#20
    UNINITIALIZED                 SWAAP#21
    STALE_ORACLE                  SWAAP#23
    OVERFLOW                      BAL#000
    ZERO_DIVISION                 BAL#004
    INPUT_LENGTH_MISMATCH         BAL#103
    UNHANDLED_JOIN_KIND           BAL#310
    UNHANDLED_EXIT_KIND           BAL#311
    ALLOWLIST_EXPIRED             BAL#440
    ============================  =========
"""

from enum import IntEnum
from typing import Any, Dict


class ErrorKind(IntEnum):
    """Closed set of rejection kinds. Values are internal, codes are public."""
    EXCEEDED_SWAP_AMOUNT_IN = 1
    EXCEEDED_SWAP_AMOUNT_OUT = 2
    UNFAIR_PRICE = 3
    LOW_PERFORMANCE = 4
    MIN_BALANCE_OUT_NOT_MET = 5
    NOT_ENOUGH_PT_OUT = 6
    EXCEEDED_BURNED_PT = 7
    NULL_SIGNER_ADDRESS = 8
    INVALID_PERF_UPDATE_INTERVAL = 9
    INVALID_MAX_PERF_DEV = 10
    INVALID_MAX_TARGET_DEV = 11
    INVALID_MAX_PRICE_DEV = 12
    PERFORMANCE_UPDATE_TOO_SOON = 13
    INVALID_ORACLE_PRICE = 14
    MANAGEMENT_FEES_TOO_HIGH = 15
    MALFORMED_USER_DATA = 16
    QUOTE_EXPIRED = 17
    INVALID_SIGNATURE = 18
    QUOTE_ALREADY_USED = 19
    ALLOWLIST_WRONG_SIGNER = 20
    BALANCE_TOLERANCE_EXCEEDED = 21
    UNINITIALIZED = 22
    STALE_ORACLE = 23
    OVERFLOW = 24
    INPUT_LENGTH_MISMATCH = 25
    UNHANDLED_JOIN_KIND = 26
    UNHANDLED_EXIT_KIND = 27
    ALLOWLIST_EXPIRED = 28
    ZERO_DIVISION = 29

    @property
    def code(self) -> str:
        return ERROR_CODES[self]

    @property
    def label(self) -> str:
        """CamelCase name, e.g. ``UnfairPrice``."""
        return "".join(part.capitalize() for part in self.name.split("_"))


ERROR_CODES: Dict[ErrorKind, str] = {
    ErrorKind.EXCEEDED_SWAP_AMOUNT_IN: "SWAAP#00",
    ErrorKind.EXCEEDED_SWAP_AMOUNT_OUT: "SWAAP#01",
    ErrorKind.UNFAIR_PRICE: "SWAAP#02",
    ErrorKind.LOW_PERFORMANCE: "SWAAP#03",
    ErrorKind.MIN_BALANCE_OUT_NOT_MET: "SWAAP#04",
    ErrorKind.NOT_ENOUGH_PT_OUT: "SWAAP#05",
    ErrorKind.EXCEEDED_BURNED_PT: "SWAAP#06",
    ErrorKind.NULL_SIGNER_ADDRESS: "SWAAP#07",
    ErrorKind.INVALID_PERF_UPDATE_INTERVAL: "SWAAP#08",
    ErrorKind.INVALID_MAX_PERF_DEV: "SWAAP#09",
    ErrorKind.INVALID_MAX_TARGET_DEV: "SWAAP#10",
    ErrorKind.INVALID_MAX_PRICE_DEV: "SWAAP#11",
    ErrorKind.PERFORMANCE_UPDATE_TOO_SOON: "SWAAP#12",
    ErrorKind.INVALID_ORACLE_PRICE: "SWAAP#13",
    ErrorKind.MANAGEMENT_FEES_TOO_HIGH: "SWAAP#14",
    ErrorKind.MALFORMED_USER_DATA: "SWAAP#15",
    ErrorKind.QUOTE_EXPIRED: "SWAAP#16",
    ErrorKind.INVALID_SIGNATURE: "SWAAP#17",
    ErrorKind.QUOTE_ALREADY_USED: "SWAAP#18",
    ErrorKind.ALLOWLIST_WRONG_SIGNER: "SWAAP#19",
    ErrorKind.BALANCE_TOLERANCE_EXCEEDED: "SWAAP#20",
    ErrorKind.UNINITIALIZED: "SWAAP#21",
    ErrorKind.STALE_ORACLE: "SWAAP#23",
    ErrorKind.OVERFLOW: "BAL#000",
    ErrorKind.INPUT_LENGTH_MISMATCH: "BAL#103",
    ErrorKind.UNHANDLED_JOIN_KIND: "BAL#310",
    ErrorKind.UNHANDLED_EXIT_KIND: "BAL#311",
    ErrorKind.ALLOWLIST_EXPIRED: "BAL#440",
    ErrorKind.ZERO_DIVISION: "BAL#004",
}


class SafeguardException(Exception):
    """Base exception for the safeguard engine."""
    pass


class SafeguardError(SafeguardException):
    """A validation rejected the operation. No state was changed."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = ErrorKind(kind)
        self.detail = detail
        message = f"{self.kind.code}: {self.kind.label}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.kind.code

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"code": self.code, "kind": self.kind.label}
        if self.detail:
            result["detail"] = self.detail
        return result


class MathError(SafeguardError):
    """Fixed-point arithmetic left its representable range."""
    pass


class SignatureError(SafeguardError):
    """A signed quote or allowlist proof was rejected."""
    pass


class ReplayError(SafeguardError):
    """A quote index was expired or already consumed."""
    pass


class OracleError(SafeguardError):
    """An oracle reported a stale or unusable price."""
    pass


class ConfigurationError(SafeguardError):
    """Pool parameters are outside their allowed range."""
    pass


class PayloadError(SafeguardError):
    """User data could not be decoded or names an unsupported operation."""
    pass
