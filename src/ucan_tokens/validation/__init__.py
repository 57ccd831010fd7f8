"""Token validation: time windows, signatures, proof chains, and orchestration."""
from __future__ import annotations

from ucan_tokens.validation.chain import DelegationChainValidator
from ucan_tokens.validation.options import (
    DEFAULT_MAX_CHAIN_DEPTH,
    MAX_CHAIN_DEPTH_LIMIT,
    ValidationOptions,
)
from ucan_tokens.validation.result import ValidationResult
from ucan_tokens.validation.signature import (
    AlgorithmVerifiers,
    KeyResolver,
    SignatureVerifier,
    verify_token_signature,
)
from ucan_tokens.validation.timing import (
    has_inverted_window,
    is_token_expired,
    is_token_not_yet_valid,
    validate_timestamps,
)
from ucan_tokens.validation.validator import (
    validate_algorithm,
    validate_capabilities,
    validate_did,
    validate_signature,
    validate_token,
)

__all__ = [
    "AlgorithmVerifiers",
    "DEFAULT_MAX_CHAIN_DEPTH",
    "DelegationChainValidator",
    "KeyResolver",
    "MAX_CHAIN_DEPTH_LIMIT",
    "SignatureVerifier",
    "ValidationOptions",
    "ValidationResult",
    "has_inverted_window",
    "is_token_expired",
    "is_token_not_yet_valid",
    "validate_algorithm",
    "validate_capabilities",
    "validate_did",
    "validate_signature",
    "validate_timestamps",
    "validate_token",
    "verify_token_signature",
]
