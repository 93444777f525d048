"""
Pool Safeguard Crypto Module

Typed-data signing and recovery for quotes and allowlist proofs, and the ABI
codecs for everything carried in user data.
"""

from .encoding import (
    ExitRequest,
    JoinRequest,
    as_bytes,
    decode_allowlist_user_data,
    decode_exit_user_data,
    decode_join_user_data,
    decode_swap_data,
    decode_swap_user_data,
    encode_allowlist_user_data,
    encode_exit_bpt_in_for_exact_tokens_out,
    encode_exit_exact_bpt_in_for_tokens_out,
    encode_join_all_tokens_in_for_exact_bpt_out,
    encode_join_exact_tokens_in_for_bpt_out,
    encode_join_init,
    encode_swap_data,
    encode_swap_user_data,
)
from .typed_data import (
    allowlist_typed_data,
    build_domain,
    normalize_private_key,
    recover_typed_data_signer,
    sign_typed_data,
    swap_typed_data,
    typed_data_digest,
)

__all__ = [
    # Encoding
    "ExitRequest",
    "JoinRequest",
    "as_bytes",
    "decode_allowlist_user_data",
    "decode_exit_user_data",
    "decode_join_user_data",
    "decode_swap_data",
    "decode_swap_user_data",
    "encode_allowlist_user_data",
    "encode_exit_bpt_in_for_exact_tokens_out",
    "encode_exit_exact_bpt_in_for_tokens_out",
    "encode_join_all_tokens_in_for_exact_bpt_out",
    "encode_join_exact_tokens_in_for_bpt_out",
    "encode_join_init",
    "encode_swap_data",
    "encode_swap_user_data",
    # Typed data
    "allowlist_typed_data",
    "build_domain",
    "normalize_private_key",
    "recover_typed_data_signer",
    "sign_typed_data",
    "swap_typed_data",
    "typed_data_digest",
]
