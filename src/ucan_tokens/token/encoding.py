"""base64url (no padding) and compact-JSON helpers for the token wire format."""
from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any

_BASE64URL_NOPAD = re.compile(r"^[A-Za-z0-9_-]*$")


def base64url_encode(data: bytes) -> str:
    """Encode *data* as URL-safe base64 without ``=`` padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base64url_decode(encoded: str) -> bytes:
    """Decode a padding-free URL-safe base64 string.

    Raises
    ------
    ValueError
        If *encoded* contains characters outside ``[A-Za-z0-9_-]``, has an
        impossible length, or is not the canonical encoding of its bytes
        (unused trailing bits set).
    """
    if not is_valid_base64url(encoded):
        raise ValueError(f"not valid base64url: {encoded[:32]!r}")
    if len(encoded) % 4 == 1:
        raise ValueError("base64url string has an invalid length")
    try:
        decoded = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
    except binascii.Error as exc:
        raise ValueError(f"not valid base64url: {exc}") from exc
    # One byte string, one encoding: a token must not have two spellings.
    if base64url_encode(decoded) != encoded:
        raise ValueError("base64url string is not canonical (unused trailing bits are set)")
    return decoded


def is_valid_base64url(encoded: str) -> bool:
    """Return True when *encoded* only uses the padding-free base64url alphabet."""
    return isinstance(encoded, str) and _BASE64URL_NOPAD.match(encoded) is not None


def canonical_json(obj: Any) -> bytes:
    """Serialize *obj* as compact UTF-8 JSON, keeping mapping order."""
    return json.dumps(
        obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False
    ).encode("utf-8")


def base64url_encode_json(obj: Any) -> str:
    """Compact-JSON encode *obj* and base64url it."""
    return base64url_encode(canonical_json(obj))


def base64url_decode_json(encoded: str) -> Any:
    """Decode a base64url JSON segment.

    Duplicate object keys and the non-standard ``NaN``/``Infinity`` literals
    are rejected so that two parsers can never disagree on a claim.

    Raises
    ------
    ValueError
        On bad base64url, non-UTF-8 bytes, or invalid JSON.
    """
    raw = base64url_decode(encoded)
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"segment is not UTF-8: {exc}") from exc
    try:
        return json.loads(
            text,
            object_pairs_hook=_reject_duplicate_keys,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as exc:
        raise ValueError(f"segment is not valid JSON: {exc}") from exc


def base64url_encode_string(text: str) -> str:
    return base64url_encode(text.encode("utf-8"))


def base64url_decode_string(encoded: str) -> str:
    return base64url_decode(encoded).decode("utf-8")


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"duplicate JSON key {key!r}")
        result[key] = value
    return result


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name!r}")


__all__ = [
    "base64url_decode",
    "base64url_decode_json",
    "base64url_decode_string",
    "base64url_encode",
    "base64url_encode_json",
    "base64url_encode_string",
    "canonical_json",
    "is_valid_base64url",
]
