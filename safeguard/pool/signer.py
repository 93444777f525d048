"""
Quote signer.

The off-chain side of the protocol: builds swap data, signs swap quotes and
allowlist proofs, and assembles the user data a trader submits. Integrators
run this next to their quoting service; the test suite uses it to produce
valid and tampered payloads.
"""

from __future__ import annotations

from typing import Union

from eth_account import Account
from eth_keys import keys

from ..crypto.encoding import (
    encode_allowlist_user_data,
    encode_swap_data,
    encode_swap_user_data,
)
from ..crypto.typed_data import (
    allowlist_typed_data,
    normalize_private_key,
    sign_typed_data,
    swap_typed_data,
)
from ..kinds import SwapKind
from ..types import AllowlistProof, SignedSwapPayload, SwapData


class QuoteSigner:
    """Signs quotes for one pool on one chain."""

    def __init__(self, private_key: Union[keys.PrivateKey, bytes, str], chain_id: int, pool_address: str):
        self._private_key = normalize_private_key(private_key)
        self.address = Account.from_key(self._private_key.to_bytes()).address
        self.chain_id = chain_id
        self.pool_address = pool_address

    def sign_swap(
        self,
        kind: SwapKind,
        is_token_in_token0: bool,
        sender: str,
        recipient: str,
        swap_data: bytes,
        quote_index: int,
        deadline: int,
    ) -> bytes:
        typed_data = swap_typed_data(
            self.chain_id,
            self.pool_address,
            kind,
            is_token_in_token0,
            sender,
            recipient,
            swap_data,
            quote_index,
            deadline,
        )
        return sign_typed_data(self._private_key, typed_data)

    def swap_user_data(
        self,
        kind: SwapKind,
        is_token_in_token0: bool,
        sender: str,
        recipient: str,
        swap_data: SwapData,
        quote_index: int,
        deadline: int,
    ) -> bytes:
        """Encode and sign ``swap_data``, returning ready-to-submit swap user data."""
        encoded = encode_swap_data(swap_data)
        signature = self.sign_swap(
            kind, is_token_in_token0, sender, recipient, encoded, quote_index, deadline
        )
        return encode_swap_user_data(
            SignedSwapPayload(
                swap_data=encoded,
                signature=signature,
                quote_index=quote_index,
                deadline=deadline,
            )
        )

    def sign_allowlist(self, sender: str, deadline: int) -> bytes:
        typed_data = allowlist_typed_data(self.chain_id, self.pool_address, sender, deadline)
        return sign_typed_data(self._private_key, typed_data)

    def allowlist_user_data(self, sender: str, deadline: int, join_user_data: bytes) -> bytes:
        """Wrap join user data in an allowlist proof for ``sender``."""
        return encode_allowlist_user_data(
            AllowlistProof(
                deadline=deadline,
                signature=self.sign_allowlist(sender, deadline),
                join_user_data=join_user_data,
            )
        )
