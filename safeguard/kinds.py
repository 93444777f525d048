"""
Operation kinds carried in user data.

Integers only exist at the decode boundary; past it every kind is one of the
closed enums below.
"""

from enum import IntEnum

from .exceptions import ErrorKind, PayloadError


class SwapKind(IntEnum):
    GIVEN_IN = 0
    GIVEN_OUT = 1

    @classmethod
    def from_int(cls, value: int) -> "SwapKind":
        try:
            return cls(value)
        except ValueError:
            raise PayloadError(ErrorKind.MALFORMED_USER_DATA, f"unknown swap kind {value}") from None


class JoinKind(IntEnum):
    INIT = 0
    ALL_TOKENS_IN_FOR_EXACT_BPT_OUT = 1
    EXACT_TOKENS_IN_FOR_BPT_OUT = 2

    @classmethod
    def from_int(cls, value: int) -> "JoinKind":
        try:
            return cls(value)
        except ValueError:
            raise PayloadError(ErrorKind.UNHANDLED_JOIN_KIND, f"unknown join kind {value}") from None


class ExitKind(IntEnum):
    EXACT_BPT_IN_FOR_TOKENS_OUT = 0
    BPT_IN_FOR_EXACT_TOKENS_OUT = 1

    @classmethod
    def from_int(cls, value: int) -> "ExitKind":
        try:
            return cls(value)
        except ValueError:
            raise PayloadError(ErrorKind.UNHANDLED_EXIT_KIND, f"unknown exit kind {value}") from None
