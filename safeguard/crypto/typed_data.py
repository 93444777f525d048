"""
Pool Safeguard typed-data (EIP-712) messages

Builds, signs and recovers the two structured messages a pool accepts:

    SwapStruct(uint8 kind, bool isTokenInToken0, address sender,
               address recipient, bytes swapData, uint256 quoteIndex,
               uint256 deadline)
    AllowlistStruct(address sender, uint256 deadline)

Both are bound to the domain
``{name: "Pool Safeguard", version: "1", chainId, verifyingContract}``.
Hashing and recovery go through eth_account; the digest helper reproduces
``keccak256(0x19 0x01 || domainSeparator || structHash)`` for logging.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak, to_checksum_address

from ..constants import DOMAIN_NAME, DOMAIN_VERSION

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

SWAP_STRUCT_TYPE = [
    {"name": "kind", "type": "uint8"},
    {"name": "isTokenInToken0", "type": "bool"},
    {"name": "sender", "type": "address"},
    {"name": "recipient", "type": "address"},
    {"name": "swapData", "type": "bytes"},
    {"name": "quoteIndex", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

ALLOWLIST_STRUCT_TYPE = [
    {"name": "sender", "type": "address"},
    {"name": "deadline", "type": "uint256"},
]


def build_domain(chain_id: int, verifying_contract: str) -> Dict[str, Any]:
    return {
        "name": DOMAIN_NAME,
        "version": DOMAIN_VERSION,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(verifying_contract),
    }


def swap_typed_data(
    chain_id: int,
    verifying_contract: str,
    kind: int,
    is_token_in_token0: bool,
    sender: str,
    recipient: str,
    swap_data: bytes,
    quote_index: int,
    deadline: int,
) -> Dict[str, Any]:
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, "SwapStruct": SWAP_STRUCT_TYPE},
        "primaryType": "SwapStruct",
        "domain": build_domain(chain_id, verifying_contract),
        "message": {
            "kind": int(kind),
            "isTokenInToken0": bool(is_token_in_token0),
            "sender": to_checksum_address(sender),
            "recipient": to_checksum_address(recipient),
            "swapData": bytes(swap_data),
            "quoteIndex": quote_index,
            "deadline": deadline,
        },
    }


def allowlist_typed_data(
    chain_id: int,
    verifying_contract: str,
    sender: str,
    deadline: int,
) -> Dict[str, Any]:
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, "AllowlistStruct": ALLOWLIST_STRUCT_TYPE},
        "primaryType": "AllowlistStruct",
        "domain": build_domain(chain_id, verifying_contract),
        "message": {
            "sender": to_checksum_address(sender),
            "deadline": deadline,
        },
    }


def encode(typed_data: Dict[str, Any]) -> SignableMessage:
    return encode_typed_data(full_message=typed_data)


def typed_data_digest(typed_data: Dict[str, Any]) -> bytes:
    """keccak256(0x19 0x01 || domainSeparator || structHash)."""
    signable = encode(typed_data)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def normalize_private_key(private_key: Union[keys.PrivateKey, bytes, str]) -> keys.PrivateKey:
    """Accept an eth_keys PrivateKey, 32 raw bytes or a hex string."""
    if isinstance(private_key, keys.PrivateKey):
        return private_key
    if isinstance(private_key, str):
        private_key = bytes.fromhex(private_key[2:] if private_key.startswith("0x") else private_key)
    return keys.PrivateKey(private_key)


def sign_typed_data(private_key: Union[keys.PrivateKey, bytes, str], typed_data: Dict[str, Any]) -> bytes:
    """65-byte ``r || s || v`` signature with ``v`` in {27, 28}."""
    account = Account.from_key(normalize_private_key(private_key).to_bytes())
    signed = account.sign_message(encode(typed_data))
    return bytes(signed.signature)


def recover_typed_data_signer(typed_data: Dict[str, Any], signature: bytes) -> Optional[str]:
    """
    Checksummed address that produced ``signature``, or None if the
    signature is malformed or unrecoverable.
    """
    if len(signature) != 65:
        return None
    try:
        return Account.recover_message(encode(typed_data), signature=bytes(signature))
    except (BadSignature, ValidationError, ValueError, TypeError):
        return None
