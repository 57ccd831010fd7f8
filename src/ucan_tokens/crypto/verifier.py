"""CryptographyVerifier — signature checks for EdDSA, ES256 and RS256.

Each algorithm routes to its own verification function through
:class:`~ucan_tokens.validation.signature.AlgorithmVerifiers`. A public key
of the wrong type for the algorithm fails closed (returns False) rather than
being coerced.

ES256 signatures use the JOSE form: the raw 64-byte ``r || s`` concatenation,
not DER.
"""
from __future__ import annotations

from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from ucan_tokens.validation.signature import AlgorithmVerifiers

ES256_COORDINATE_SIZE = 32


def verify_eddsa(signed_bytes: bytes, signature: bytes, public_key: Any) -> bool:
    """Verify an Ed25519 signature."""
    if not isinstance(public_key, ed25519.Ed25519PublicKey):
        return False
    try:
        public_key.verify(signature, signed_bytes)
    except InvalidSignature:
        return False
    return True


def verify_es256(signed_bytes: bytes, signature: bytes, public_key: Any) -> bool:
    """Verify an ECDSA P-256 / SHA-256 signature in raw ``r || s`` form."""
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        return False
    if not isinstance(public_key.curve, ec.SECP256R1):
        return False
    if len(signature) != 2 * ES256_COORDINATE_SIZE:
        return False
    r = int.from_bytes(signature[:ES256_COORDINATE_SIZE], "big")
    s = int.from_bytes(signature[ES256_COORDINATE_SIZE:], "big")
    try:
        public_key.verify(encode_dss_signature(r, s), signed_bytes, ec.ECDSA(hashes.SHA256()))
    except InvalidSignature:
        return False
    return True


def verify_rs256(signed_bytes: bytes, signature: bytes, public_key: Any) -> bool:
    """Verify an RSASSA-PKCS1-v1_5 / SHA-256 signature."""
    if not isinstance(public_key, rsa.RSAPublicKey):
        return False
    try:
        public_key.verify(signature, signed_bytes, padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True


class CryptographyVerifier(AlgorithmVerifiers):
    """A signature verifier backed by the ``cryptography`` package.

    Example
    -------
    ::

        options = ValidationOptions(
            key_resolver=DIDKeyResolver(),
            signature_verifier=CryptographyVerifier(),
        )
    """

    def __init__(self) -> None:
        super().__init__(eddsa=verify_eddsa, es256=verify_es256, rs256=verify_rs256)


__all__ = [
    "CryptographyVerifier",
    "verify_eddsa",
    "verify_es256",
    "verify_rs256",
]
