"""
18-decimal fixed-point arithmetic.

All values are Python ints scaled by ``ONE = 10**18``. Every intermediate
product is checked against the 256-bit word the pools were designed for, so
an input that would overflow on-chain is rejected here too instead of
silently succeeding with Python's unbounded ints.

Rounding is always explicit: ``*_down`` truncates, ``*_up`` rounds away
from zero, and callers choose the direction that favours the pool.
"""

from ..constants import (
    LN_2,
    MAX_EXP_INPUT,
    MAX_UINT128,
    MAX_UINT256,
    MIN_EXP_INPUT,
    ONE,
    ONE_36,
)
from ..exceptions import ErrorKind, MathError

# 18 -> 36 decimals
_EXTRA_PRECISION = 10 ** 18


def _checked(value: int) -> int:
    if value > MAX_UINT256:
        raise MathError(ErrorKind.OVERFLOW, "product exceeds 256 bits")
    return value


def mul_down(a: int, b: int) -> int:
    return _checked(a * b) // ONE


def mul_up(a: int, b: int) -> int:
    product = _checked(a * b)
    if product == 0:
        return 0
    return (product - 1) // ONE + 1


def div_down(a: int, b: int) -> int:
    if b == 0:
        raise MathError(ErrorKind.ZERO_DIVISION)
    return _checked(a * ONE) // b


def div_up(a: int, b: int) -> int:
    if b == 0:
        raise MathError(ErrorKind.ZERO_DIVISION)
    if a == 0:
        return 0
    return (_checked(a * ONE) - 1) // b + 1


def complement(x: int) -> int:
    """``ONE - x`` clamped at zero."""
    return ONE - x if x < ONE else 0


def to_uint128(value: int) -> int:
    """
    Narrow a value to 128 bits.

    The unbounded sentinel ``MAX_UINT256`` maps to ``MAX_UINT128``; any other
    value that does not fit is an overflow.
    """
    if value == MAX_UINT256:
        return MAX_UINT128
    if value < 0 or value > MAX_UINT128:
        raise MathError(ErrorKind.OVERFLOW, "value does not fit in 128 bits")
    return value


# ---------------------------------------------------------------------------
# Token decimals scaling
# ---------------------------------------------------------------------------

def scaling_factor(decimals: int) -> int:
    """Multiplier bringing a ``decimals``-token amount to 18 decimals."""
    if decimals > 18:
        raise ValueError(f"Tokens with more than 18 decimals are not supported: {decimals}")
    return 10 ** (18 - decimals)


def upscale(amount: int, decimals: int) -> int:
    return _checked(amount * scaling_factor(decimals))


def downscale_down(amount: int, decimals: int) -> int:
    return amount // scaling_factor(decimals)


def downscale_up(amount: int, decimals: int) -> int:
    factor = scaling_factor(decimals)
    if amount == 0:
        return 0
    return (amount - 1) // factor + 1


# ---------------------------------------------------------------------------
# Exponential and logarithm
# ---------------------------------------------------------------------------

def exp(x: int) -> int:
    """
    Natural exponential of an 18-decimal value, rounded down.

    The argument is reduced to ``r + k*ln(2)`` with ``0 <= r < ln(2)`` and
    ``e^r`` is summed as a Taylor series at 36 decimals before being scaled
    by ``2^k``. Defined on ``[MIN_EXP_INPUT, MAX_EXP_INPUT]``.
    """
    if x > MAX_EXP_INPUT or x < MIN_EXP_INPUT:
        raise MathError(ErrorKind.OVERFLOW, "exponent out of bounds")

    x36 = x * _EXTRA_PRECISION
    k = x36 // LN_2
    r = x36 - k * LN_2

    total = ONE_36
    term = ONE_36
    n = 1
    while True:
        term = term * r // ONE_36 // n
        if term == 0:
            break
        total += term
        n += 1

    if k >= 0:
        result36 = total << k
    else:
        result36 = total >> -k
    return result36 // _EXTRA_PRECISION


def ln(x: int) -> int:
    """
    Natural logarithm of a strictly positive 18-decimal value.

    ``x`` is brought into ``[1, 2)`` by powers of two and the remainder is
    evaluated through ``ln(m) = 2*atanh((m-1)/(m+1))`` at 36 decimals.
    """
    if x <= 0:
        raise MathError(ErrorKind.OVERFLOW, "logarithm of a non-positive value")

    m = x * _EXTRA_PRECISION
    k = 0
    while m >= 2 * ONE_36:
        m >>= 1
        k += 1
    while m < ONE_36:
        m <<= 1
        k -= 1

    z = (m - ONE_36) * ONE_36 // (m + ONE_36)
    z_squared = z * z // ONE_36
    series = 0
    power = z
    n = 1
    while power != 0:
        series += power // n
        power = power * z_squared // ONE_36
        n += 2

    result36 = k * LN_2 + 2 * series
    # truncate toward zero
    if result36 >= 0:
        return result36 // _EXTRA_PRECISION
    return -(-result36 // _EXTRA_PRECISION)
