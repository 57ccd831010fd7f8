"""Codec — encode/decode between Token structures and the compact wire form.

Wire format
-----------
::

    base64url(header_json) "." base64url(payload_json) "." base64url(signature)

- header: ``{"alg": "EdDSA"|"ES256"|"RS256", "typ": "JWT", "ucv": "0.10.0"}``
- payload: ``{"iss", "aud", "exp", "att", "nbf"?, "nnc"?, "fct"?, "prf"?}``
- base64url is URL-safe and padding-free; JSON is compact and keeps the
  canonical key order.

Decoding never verifies the signature or the time window. Inspecting an
untrusted token's claims (for logging, or a UI) must not implicitly trust it;
use :func:`ucan_tokens.validation.validator.validate_token` for that.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ucan_tokens.errors import MalformedTokenError
from ucan_tokens.token.encoding import (
    base64url_decode,
    base64url_decode_json,
    base64url_encode,
    base64url_encode_json,
    is_valid_base64url,
)
from ucan_tokens.token.types import TOKEN_TYPE, Algorithm, Header, Payload, Token

# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def format_header(header: Header) -> str:
    """Return the base64url segment for *header*."""
    return base64url_encode_json(header.to_dict())


def format_payload(payload: Payload) -> str:
    """Return the base64url segment for *payload*."""
    return base64url_encode_json(payload.to_dict())


def create_signing_message(header: Header, payload: Payload) -> str:
    """Return ``header.payload``, the string an external signer must sign."""
    return f"{format_header(header)}.{format_payload(payload)}"


def encode(header: Header, payload: Payload, signature: bytes) -> Token:
    """Assemble a :class:`Token` from structures and an external signature.

    The resulting token's segments are derived from the canonical
    serialization, so ``token.signing_input`` equals the bytes of
    :func:`create_signing_message`.
    """
    if not isinstance(signature, (bytes, bytearray)):
        raise TypeError("signature must be bytes")
    signature = bytes(signature)
    return Token(
        header=header,
        payload=payload,
        signature=signature,
        encoded_header=format_header(header),
        encoded_payload=format_payload(payload),
        encoded_signature=base64url_encode(signature),
    )


def format_token(token: Token) -> str:
    """Return the compact form of *token*.

    For a decoded token this is the literal string it was parsed from, so
    ``format_token(parse_token(s)) == s``.
    """
    return token.encoded


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _split_segments(encoded: object) -> tuple[str, str, str]:
    if not isinstance(encoded, str):
        raise MalformedTokenError(f"token must be a string, got {type(encoded).__name__}")
    if not encoded.strip():
        raise MalformedTokenError("token must be a non-empty string")
    parts = encoded.split(".")
    if len(parts) != 3:
        raise MalformedTokenError(
            f"expected 3 dot-separated segments (header.payload.signature), got {len(parts)}"
        )
    header_b64, payload_b64, signature_b64 = parts
    if not header_b64 or not payload_b64 or not signature_b64:
        raise MalformedTokenError("header, payload, and signature segments must be non-empty")
    for name, segment in (
        ("header", header_b64),
        ("payload", payload_b64),
        ("signature", signature_b64),
    ):
        if not is_valid_base64url(segment):
            raise MalformedTokenError(f"{name} segment contains non-base64url characters")
    return header_b64, payload_b64, signature_b64


def _decode_header(segment: str) -> Header:
    try:
        raw = base64url_decode_json(segment)
    except ValueError as exc:
        raise MalformedTokenError(f"could not decode header: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise MalformedTokenError("header must be a JSON object")
    if "alg" not in raw:
        raise MalformedTokenError("header is missing 'alg'")
    algorithm = Algorithm.parse(raw["alg"])
    if raw.get("typ") != TOKEN_TYPE:
        raise MalformedTokenError(f"header 'typ' must be {TOKEN_TYPE!r}, got {raw.get('typ')!r}")
    version = raw.get("ucv")
    if version is not None and not isinstance(version, str):
        raise MalformedTokenError("header 'ucv' must be a string")
    return Header(algorithm=algorithm, type=TOKEN_TYPE, version=version)


def _decode_payload(segment: str) -> Payload:
    try:
        raw = base64url_decode_json(segment)
    except ValueError as exc:
        raise MalformedTokenError(f"could not decode payload: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise MalformedTokenError("payload must be a JSON object")
    try:
        return Payload.from_dict(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedTokenError(f"invalid payload: {exc}") from exc


def parse_token(encoded: str) -> Token:
    """Decode a compact token string into a :class:`Token`.

    Performs structural checks only: no signature, time-window, or
    delegation validation.

    Raises
    ------
    MalformedTokenError
        On wrong segment count, empty segments, bad base64url, bytes that do
        not parse into the expected header/payload shape, or an empty
        signature.
    UnsupportedAlgorithmError
        (a :class:`MalformedTokenError`) when ``alg`` is not supported.
    """
    header_b64, payload_b64, signature_b64 = _split_segments(encoded)
    header = _decode_header(header_b64)
    payload = _decode_payload(payload_b64)
    try:
        signature = base64url_decode(signature_b64)
    except ValueError as exc:
        raise MalformedTokenError(f"could not decode signature: {exc}") from exc
    if not signature:
        raise MalformedTokenError("signature cannot be empty")

    return Token(
        header=header,
        payload=payload,
        signature=signature,
        encoded_header=header_b64,
        encoded_payload=payload_b64,
        encoded_signature=signature_b64,
    )


def try_parse_token(encoded: str) -> Token | None:
    """Return the decoded token, or None when *encoded* is malformed."""
    try:
        return parse_token(encoded)
    except MalformedTokenError:
        return None


def is_valid_jwt_format(encoded: object) -> bool:
    """Cheap shape check: three non-empty base64url segments."""
    if not isinstance(encoded, str):
        return False
    parts = encoded.split(".")
    return len(parts) == 3 and all(part and is_valid_base64url(part) for part in parts)


def extract_header(encoded: str) -> Any:
    """Return the raw decoded header JSON without any shape checks."""
    return _extract_segment(encoded, 0, "header")


def extract_payload(encoded: str) -> Any:
    """Return the raw decoded payload JSON without any shape checks."""
    return _extract_segment(encoded, 1, "payload")


def _extract_segment(encoded: str, index: int, name: str) -> Any:
    parts = encoded.split(".") if isinstance(encoded, str) else []
    if len(parts) != 3:
        raise MalformedTokenError("expected 3 dot-separated segments")
    try:
        return base64url_decode_json(parts[index])
    except ValueError as exc:
        raise MalformedTokenError(f"could not decode {name}: {exc}") from exc


__all__ = [
    "create_signing_message",
    "encode",
    "extract_header",
    "extract_payload",
    "format_header",
    "format_payload",
    "format_token",
    "is_valid_jwt_format",
    "parse_token",
    "try_parse_token",
]
