"""did:key resolution — public keys encoded directly in the identifier.

Implements the resolving half of the ``did:key`` method
(https://w3c-ccg.github.io/did-method-key/):

1. Strip ``did:key:`` and the ``z`` multibase indicator (base58btc).
2. Decode the remainder with base58btc.
3. Read the multicodec prefix naming the key type.
4. Load the remaining bytes as a ``cryptography`` public key.

Supported key types and their varint-encoded multicodec prefixes:

============  ===========  ==========  ================================
Algorithm     Multicodec   Prefix      Key bytes
============  ===========  ==========  ================================
EdDSA         ``0xed``     ``ed 01``   32-byte raw Ed25519 key
ES256         ``0x1200``   ``80 24``   33-byte compressed P-256 point
RS256         ``0x1205``   ``85 24``   DER PKCS#1 ``RSAPublicKey``
============  ===========  ==========  ================================

The DID is self-describing, so resolution needs no registry and no network.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from ucan_tokens.errors import KeyResolutionError, UnsupportedAlgorithmError
from ucan_tokens.token.types import Algorithm

DID_KEY_PREFIX = "did:key:z"

# ---------------------------------------------------------------------------
# Multicodec prefixes (varint-encoded)
# ---------------------------------------------------------------------------

ED25519_MULTICODEC: bytes = b"\xed\x01"
P256_MULTICODEC: bytes = b"\x80\x24"
RSA_MULTICODEC: bytes = b"\x85\x24"

_MULTICODEC_ALGORITHMS: dict[bytes, Algorithm] = {
    ED25519_MULTICODEC: Algorithm.EDDSA,
    P256_MULTICODEC: Algorithm.ES256,
    RSA_MULTICODEC: Algorithm.RS256,
}

# ---------------------------------------------------------------------------
# Base58btc codec
# ---------------------------------------------------------------------------

_BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_BASE58_INDEX = {char: index for index, char in enumerate(_BASE58_ALPHABET)}


def base58btc_encode(data: bytes) -> str:
    """Encode *data* to base58btc, keeping leading zero bytes as ``1``."""
    n = int.from_bytes(data, "big")
    digits: list[str] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        digits.append(_BASE58_ALPHABET[remainder])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * leading_zeros + "".join(reversed(digits))


def base58btc_decode(encoded: str) -> bytes:
    """Decode a base58btc string.

    Raises
    ------
    ValueError
        If *encoded* contains a character outside the base58btc alphabet.
    """
    n = 0
    for char in encoded:
        digit = _BASE58_INDEX.get(char)
        if digit is None:
            raise ValueError(f"Invalid base58btc character {char!r}")
        n = n * 58 + digit
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    leading_ones = len(encoded) - len(encoded.lstrip("1"))
    return b"\x00" * leading_ones + body


# ---------------------------------------------------------------------------
# Encoding and decoding did:key identifiers
# ---------------------------------------------------------------------------


def public_key_to_did(public_key: Any) -> str:
    """Encode a ``cryptography`` public key as a ``did:key`` identifier.

    Parameters
    ----------
    public_key:
        An Ed25519, P-256 or RSA public key object.

    Returns
    -------
    str
        A ``did:key:z<base58btc>`` string.

    Raises
    ------
    TypeError
        If the key type has no ``did:key`` encoding here.
    """
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        prefix = ED25519_MULTICODEC
        key_bytes = public_key.public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        if not isinstance(public_key.curve, ec.SECP256R1):
            raise TypeError(f"Only P-256 EC keys are supported, got {public_key.curve.name}")
        prefix = P256_MULTICODEC
        key_bytes = public_key.public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
        )
    elif isinstance(public_key, rsa.RSAPublicKey):
        prefix = RSA_MULTICODEC
        key_bytes = public_key.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.PKCS1
        )
    else:
        raise TypeError(f"Unsupported public key type {type(public_key).__name__}")
    return DID_KEY_PREFIX + base58btc_encode(prefix + key_bytes)


def decode_did_key(did: str) -> tuple[Algorithm, Any]:
    """Decode a ``did:key`` identifier into its algorithm and public key.

    Raises
    ------
    ValueError
        If *did* is not a base58btc ``did:key``, names an unknown multicodec,
        or its key bytes do not load.
    """
    if not isinstance(did, str) or not did.startswith(DID_KEY_PREFIX):
        raise ValueError(f"not a base58btc did:key identifier: {did!r}")
    encoded = did[len(DID_KEY_PREFIX):]
    if not encoded:
        raise ValueError(f"did:key identifier has an empty key portion: {did!r}")

    decoded = base58btc_decode(encoded)
    for prefix, algorithm in _MULTICODEC_ALGORITHMS.items():
        if decoded.startswith(prefix):
            return algorithm, _load_public_key(algorithm, decoded[len(prefix):])
    raise ValueError(f"unsupported multicodec prefix 0x{decoded[:2].hex()} in {did!r}")


def _load_public_key(algorithm: Algorithm, key_bytes: bytes) -> Any:
    if algorithm is Algorithm.EDDSA:
        return ed25519.Ed25519PublicKey.from_public_bytes(key_bytes)
    if algorithm is Algorithm.ES256:
        return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), key_bytes)
    public_key = serialization.load_der_public_key(key_bytes)
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise ValueError("RSA multicodec does not hold an RSA key")
    return public_key


# ---------------------------------------------------------------------------
# Key resolvers
# ---------------------------------------------------------------------------


class DIDKeyResolver:
    """Resolve ``did:key`` issuers to public keys for signature checks.

    A key whose type does not match the header's algorithm is refused, so a
    token cannot swap ``alg`` to have its signature checked under a
    different scheme.

    Parameters
    ----------
    fallback:
        Optional resolver consulted for identifiers that are not ``did:key``
        (for example a :class:`StaticKeyResolver` of ``did:web`` keys).

    Example
    -------
    ::

        resolver = DIDKeyResolver()
        public_key = resolver.resolve_key(token.issuer, token.algorithm)
    """

    def __init__(self, fallback: Any = None) -> None:
        self._fallback = fallback

    def resolve_key(self, identifier: str, algorithm: Algorithm) -> Any:
        """Return the public key for *identifier* usable with *algorithm*.

        Raises
        ------
        KeyResolutionError
            If the identifier does not decode, has no fallback, or holds a key
            of a different type than *algorithm* needs.
        """
        if not isinstance(identifier, str) or not identifier.startswith("did:key:"):
            if self._fallback is not None:
                return self._fallback.resolve_key(identifier, algorithm)
            raise KeyResolutionError(identifier, "only did:key identifiers can be resolved")

        try:
            key_algorithm, public_key = decode_did_key(identifier)
        except ValueError as exc:
            raise KeyResolutionError(identifier, str(exc)) from exc

        if key_algorithm is not algorithm:
            raise KeyResolutionError(
                identifier,
                f"key is for {key_algorithm.value}, token header says {Algorithm(algorithm).value}",
            )
        return public_key


class StaticKeyResolver:
    """Resolve identifiers from a fixed mapping of identifier to public key.

    Useful for identifiers whose keys are distributed out of band.

    Parameters
    ----------
    keys:
        Mapping of identifier to ``cryptography`` public key. A value may also
        be a mapping of :class:`Algorithm` to key when an identifier has
        several.
    """

    def __init__(self, keys: Mapping[str, Any] | None = None) -> None:
        self._keys: dict[str, Any] = dict(keys or {})

    def add(self, identifier: str, public_key: Any) -> None:
        self._keys[identifier] = public_key

    def resolve_key(self, identifier: str, algorithm: Algorithm) -> Any:
        try:
            entry = self._keys[identifier]
        except KeyError:
            raise KeyResolutionError(identifier, "identifier is not known") from None
        if isinstance(entry, Mapping):
            try:
                return entry[algorithm]
            except KeyError:
                raise UnsupportedAlgorithmError(algorithm) from None
        return entry


__all__ = [
    "DIDKeyResolver",
    "DID_KEY_PREFIX",
    "ED25519_MULTICODEC",
    "P256_MULTICODEC",
    "RSA_MULTICODEC",
    "StaticKeyResolver",
    "base58btc_decode",
    "base58btc_encode",
    "decode_did_key",
    "public_key_to_did",
]
