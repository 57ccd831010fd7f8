"""Token data model, wire codec, and builder.

Quick start
-----------
::

    from ucan_tokens.token import UCANBuilder, parse_token

    builder = UCANBuilder().issuer(issuer_did).audience(audience_did)
    builder.add_capability(Capability("storage://example.com/data", "read"))
    encoded = builder.build(signer(builder.signing_input()))

    token = parse_token(encoded)
    print(token.payload.capabilities)
"""
from __future__ import annotations

from ucan_tokens.token.builder import UCANBuilder, is_valid_did
from ucan_tokens.token.codec import (
    create_signing_message,
    encode,
    extract_header,
    extract_payload,
    format_header,
    format_payload,
    format_token,
    is_valid_jwt_format,
    parse_token,
    try_parse_token,
)
from ucan_tokens.token.types import (
    DEFAULT_UCAN_VERSION,
    TOKEN_TYPE,
    Algorithm,
    Header,
    Payload,
    Token,
)

__all__ = [
    "Algorithm",
    "DEFAULT_UCAN_VERSION",
    "Header",
    "Payload",
    "TOKEN_TYPE",
    "Token",
    "UCANBuilder",
    "create_signing_message",
    "encode",
    "extract_header",
    "extract_payload",
    "format_header",
    "format_payload",
    "format_token",
    "is_valid_did",
    "is_valid_jwt_format",
    "parse_token",
    "try_parse_token",
]
