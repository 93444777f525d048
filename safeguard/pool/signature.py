"""
Quote and allowlist authorization.

A quote is valid only if the configured signer signed exactly the swap the
pool is about to execute. Every mismatch, whether in the domain, a struct
field or the signature bytes themselves, surfaces as the same
``InvalidSignature`` so a caller learns nothing about which part differed.
"""

from __future__ import annotations

import logging

from eth_utils import to_checksum_address

from ..crypto.encoding import decode_allowlist_user_data
from ..crypto.typed_data import (
    allowlist_typed_data,
    recover_typed_data_signer,
    swap_typed_data,
)
from ..exceptions import ErrorKind, SignatureError
from ..types import SwapQuote

logger = logging.getLogger(__name__)


class QuoteSignatureVerifier:
    """Recovers signers of typed-data messages bound to one pool."""

    def __init__(self, chain_id: int, pool_address: str, signer: str):
        self.chain_id = chain_id
        self.pool_address = to_checksum_address(pool_address)
        self.signer = to_checksum_address(signer)

    def verify_swap(self, quote: SwapQuote, signature: bytes) -> None:
        typed_data = swap_typed_data(
            self.chain_id,
            self.pool_address,
            quote.kind,
            quote.is_token_in_token0,
            quote.sender,
            quote.recipient,
            quote.swap_data,
            quote.quote_index,
            quote.deadline,
        )
        recovered = recover_typed_data_signer(typed_data, signature)
        if recovered != self.signer:
            logger.debug("Rejected signature for quote #%d", quote.quote_index)
            raise SignatureError(ErrorKind.INVALID_SIGNATURE)

    def verify_allowlist(self, sender: str, deadline: int, signature: bytes, now: int) -> None:
        if now > deadline:
            raise SignatureError(ErrorKind.ALLOWLIST_EXPIRED, f"deadline {deadline}, now {now}")
        typed_data = allowlist_typed_data(self.chain_id, self.pool_address, sender, deadline)
        recovered = recover_typed_data_signer(typed_data, signature)
        if recovered != self.signer:
            logger.debug("Rejected allowlist proof for %s", sender)
            raise SignatureError(ErrorKind.ALLOWLIST_WRONG_SIGNER)

    def unwrap_allowlisted_join(self, sender: str, user_data: bytes, now: int) -> bytes:
        """Check the allowlist wrapper around join user data and return the inner payload."""
        proof = decode_allowlist_user_data(user_data)
        self.verify_allowlist(sender, proof.deadline, proof.signature, now)
        return proof.join_user_data
