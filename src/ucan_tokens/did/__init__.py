"""Key resolution for token issuers (did:key and static key maps)."""
from __future__ import annotations

from ucan_tokens.did.did_key import (
    DIDKeyResolver,
    StaticKeyResolver,
    base58btc_decode,
    base58btc_encode,
    decode_did_key,
    public_key_to_did,
)

__all__ = [
    "DIDKeyResolver",
    "StaticKeyResolver",
    "base58btc_decode",
    "base58btc_encode",
    "decode_did_key",
    "public_key_to_did",
]
