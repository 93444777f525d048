"""
ABI codecs for safeguard user data.

Layouts (all standard ABI encoding):

    swapData          (address, uint256, uint256, uint256, uint256, uint256)
                      with words 3-6 each packing two 128-bit values
                      ``(high << 128) | low``
    swap user data    (bytes swapData, bytes signature, uint256 quoteIndex, uint256 deadline)
    allowlist wrapper (uint256 deadline, bytes signature, bytes joinUserData)
    join INIT         (uint8 kind, uint256[] amountsIn)
    join ALL_TOKENS   (uint8 kind, uint256 bptAmountOut)
    join EXACT_TOKENS (uint8 kind, uint256 minBptAmountOut, uint256[] amountsIn, bytes swapUserData)
    exit EXACT_BPT    (uint8 kind, uint256 bptAmountIn)
    exit EXACT_TOKENS (uint8 kind, uint256 maxBptAmountIn, uint256[] amountsOut, bytes swapUserData)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import to_checksum_address

from ..constants import SWAP_DATA_WORDS
from ..exceptions import ErrorKind, PayloadError
from ..kinds import ExitKind, JoinKind
from ..math.fixed_point import to_uint128
from ..types import AllowlistProof, SignedSwapPayload, SwapData

_LOW_128 = (1 << 128) - 1
_WORD = 32

SWAP_DATA_TYPES = ["address", "uint256", "uint256", "uint256", "uint256", "uint256"]
SWAP_USER_DATA_TYPES = ["bytes", "bytes", "uint256", "uint256"]
ALLOWLIST_TYPES = ["uint256", "bytes", "bytes"]


def _pack(high: int, low: int) -> int:
    return (to_uint128(high) << 128) | to_uint128(low)


def _unpack(word: int) -> Tuple[int, int]:
    return word >> 128, word & _LOW_128


def _decode(types: Sequence[str], data: bytes, what: str) -> tuple:
    try:
        return decode(list(types), bytes(data))
    except (DecodingError, OverflowError, ValueError) as e:
        raise PayloadError(ErrorKind.MALFORMED_USER_DATA, f"{what}: {e}") from e


def _encode(types: Sequence[str], values: Sequence) -> bytes:
    try:
        return encode(list(types), list(values))
    except EncodingError as e:
        raise PayloadError(ErrorKind.MALFORMED_USER_DATA, str(e)) from e


# ---------------------------------------------------------------------------
# swapData
# ---------------------------------------------------------------------------

def encode_swap_data(data: SwapData) -> bytes:
    return _encode(
        SWAP_DATA_TYPES,
        [
            to_checksum_address(data.expected_origin),
            data.origin_based_slippage,
            _pack(data.quote_amount_in_per_out, data.max_swap_amount),
            _pack(data.quote_balance_in, data.quote_balance_out),
            _pack(data.max_balance_change_tolerance, data.balance_based_slippage),
            _pack(data.start_time, data.time_based_slippage),
        ],
    )


def decode_swap_data(raw: bytes) -> SwapData:
    if len(raw) != SWAP_DATA_WORDS * _WORD:
        raise PayloadError(ErrorKind.MALFORMED_USER_DATA, f"swap data must be {SWAP_DATA_WORDS} words")
    origin, origin_slippage, price_word, balances_word, tolerance_word, time_word = _decode(
        SWAP_DATA_TYPES, raw, "swap data"
    )
    quote_price, max_swap_amount = _unpack(price_word)
    quote_balance_in, quote_balance_out = _unpack(balances_word)
    tolerance, balance_slippage = _unpack(tolerance_word)
    start_time, time_slippage = _unpack(time_word)
    return SwapData(
        expected_origin=to_checksum_address(origin),
        origin_based_slippage=origin_slippage,
        quote_amount_in_per_out=quote_price,
        max_swap_amount=max_swap_amount,
        quote_balance_in=quote_balance_in,
        quote_balance_out=quote_balance_out,
        max_balance_change_tolerance=tolerance,
        balance_based_slippage=balance_slippage,
        start_time=start_time,
        time_based_slippage=time_slippage,
    )


# ---------------------------------------------------------------------------
# Swap user data and allowlist wrapper
# ---------------------------------------------------------------------------

def encode_swap_user_data(payload: SignedSwapPayload) -> bytes:
    return _encode(
        SWAP_USER_DATA_TYPES,
        [payload.swap_data, payload.signature, payload.quote_index, payload.deadline],
    )


def decode_swap_user_data(raw: bytes) -> SignedSwapPayload:
    swap_data, signature, quote_index, deadline = _decode(SWAP_USER_DATA_TYPES, raw, "swap user data")
    return SignedSwapPayload(
        swap_data=swap_data,
        signature=signature,
        quote_index=quote_index,
        deadline=deadline,
    )


def encode_allowlist_user_data(proof: AllowlistProof) -> bytes:
    return _encode(ALLOWLIST_TYPES, [proof.deadline, proof.signature, proof.join_user_data])


def decode_allowlist_user_data(raw: bytes) -> AllowlistProof:
    deadline, signature, join_user_data = _decode(ALLOWLIST_TYPES, raw, "allowlist")
    return AllowlistProof(deadline=deadline, signature=signature, join_user_data=join_user_data)


# ---------------------------------------------------------------------------
# Join / exit user data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class JoinRequest:
    kind: JoinKind
    amounts_in: Tuple[int, ...] = ()
    bpt_amount: int = 0
    swap_user_data: bytes = b""


@dataclass(frozen=True)
class ExitRequest:
    kind: ExitKind
    amounts_out: Tuple[int, ...] = ()
    bpt_amount: int = 0
    swap_user_data: bytes = b""


def _peek_kind(raw: bytes) -> int:
    if len(raw) < _WORD:
        raise PayloadError(ErrorKind.MALFORMED_USER_DATA, "empty user data")
    return int.from_bytes(raw[:_WORD], "big")


def encode_join_init(amounts_in: Sequence[int]) -> bytes:
    return _encode(["uint8", "uint256[]"], [JoinKind.INIT, list(amounts_in)])


def encode_join_all_tokens_in_for_exact_bpt_out(bpt_amount_out: int) -> bytes:
    return _encode(["uint8", "uint256"], [JoinKind.ALL_TOKENS_IN_FOR_EXACT_BPT_OUT, bpt_amount_out])


def encode_join_exact_tokens_in_for_bpt_out(
    min_bpt_amount_out: int,
    amounts_in: Sequence[int],
    swap_user_data: bytes,
) -> bytes:
    return _encode(
        ["uint8", "uint256", "uint256[]", "bytes"],
        [JoinKind.EXACT_TOKENS_IN_FOR_BPT_OUT, min_bpt_amount_out, list(amounts_in), swap_user_data],
    )


def decode_join_user_data(raw: bytes) -> JoinRequest:
    kind = JoinKind.from_int(_peek_kind(raw))
    if kind is JoinKind.INIT:
        _, amounts = _decode(["uint8", "uint256[]"], raw, "join init")
        return JoinRequest(kind=kind, amounts_in=tuple(amounts))
    if kind is JoinKind.ALL_TOKENS_IN_FOR_EXACT_BPT_OUT:
        _, bpt_out = _decode(["uint8", "uint256"], raw, "join")
        return JoinRequest(kind=kind, bpt_amount=bpt_out)
    _, min_bpt_out, amounts, swap_user_data = _decode(
        ["uint8", "uint256", "uint256[]", "bytes"], raw, "join"
    )
    return JoinRequest(
        kind=kind,
        amounts_in=tuple(amounts),
        bpt_amount=min_bpt_out,
        swap_user_data=swap_user_data,
    )


def encode_exit_exact_bpt_in_for_tokens_out(bpt_amount_in: int) -> bytes:
    return _encode(["uint8", "uint256"], [ExitKind.EXACT_BPT_IN_FOR_TOKENS_OUT, bpt_amount_in])


def encode_exit_bpt_in_for_exact_tokens_out(
    max_bpt_amount_in: int,
    amounts_out: Sequence[int],
    swap_user_data: bytes,
) -> bytes:
    return _encode(
        ["uint8", "uint256", "uint256[]", "bytes"],
        [ExitKind.BPT_IN_FOR_EXACT_TOKENS_OUT, max_bpt_amount_in, list(amounts_out), swap_user_data],
    )


def decode_exit_user_data(raw: bytes) -> ExitRequest:
    kind = ExitKind.from_int(_peek_kind(raw))
    if kind is ExitKind.EXACT_BPT_IN_FOR_TOKENS_OUT:
        _, bpt_in = _decode(["uint8", "uint256"], raw, "exit")
        return ExitRequest(kind=kind, bpt_amount=bpt_in)
    _, max_bpt_in, amounts, swap_user_data = _decode(
        ["uint8", "uint256", "uint256[]", "bytes"], raw, "exit"
    )
    return ExitRequest(
        kind=kind,
        amounts_out=tuple(amounts),
        bpt_amount=max_bpt_in,
        swap_user_data=swap_user_data,
    )


def as_bytes(value: Union[bytes, bytearray, str]) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string."""
    if isinstance(value, str):
        value = value[2:] if value[:2] in ("0x", "0X") else value
        try:
            return bytes.fromhex(value)
        except ValueError as e:
            raise PayloadError(ErrorKind.MALFORMED_USER_DATA, "invalid hex string") from e
    return bytes(value)
