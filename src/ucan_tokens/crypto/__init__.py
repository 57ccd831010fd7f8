"""Signing keys and signature verification backed by ``cryptography``."""
from __future__ import annotations

from ucan_tokens.crypto.keys import KeyPair
from ucan_tokens.crypto.verifier import (
    CryptographyVerifier,
    verify_eddsa,
    verify_es256,
    verify_rs256,
)

__all__ = [
    "CryptographyVerifier",
    "KeyPair",
    "verify_eddsa",
    "verify_es256",
    "verify_rs256",
]
