"""ucan-tokens — delegable, self-certifying capability tokens (UCAN).

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import ucan_tokens
>>> ucan_tokens.__version__
'0.1.0'

Quick start
-----------
::

    from ucan_tokens import (
        Capability, CryptographyVerifier, DIDKeyResolver, KeyPair,
        UCANBuilder, ValidationOptions, parse_token, validate_token,
    )

    alice, bob = KeyPair.generate(), KeyPair.generate()
    encoded = (
        UCANBuilder()
        .issuer(alice.did)
        .audience(bob.did)
        .expires_in(3600)
        .add_capability(Capability("storage://example.com/data", "read"))
        .build_and_sign(alice.sign)
    )

    options = ValidationOptions(
        key_resolver=DIDKeyResolver(),
        signature_verifier=CryptographyVerifier(),
    )
    result = validate_token(parse_token(encoded), options)
    assert result.valid
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from ucan_tokens.errors import (
    AttenuationFailure,
    AttenuationViolationError,
    ChainBrokenError,
    ChainTooDeepError,
    CyclicDelegationError,
    InvalidClaimError,
    KeyResolutionError,
    MalformedProofError,
    MalformedTokenError,
    SignatureInvalidError,
    TokenExpiredError,
    TokenNotYetValidError,
    UCANError,
    UnsupportedAlgorithmError,
    ValidationFailedError,
    ValidationReason,
)

# ------------------------------------------------------------------
# Capabilities
# ------------------------------------------------------------------
from ucan_tokens.capabilities.attenuation import (
    AttenuationResult,
    find_granting_capability,
    validate_capability_attenuation,
)
from ucan_tokens.capabilities.capability import Capability
from ucan_tokens.capabilities.caveats import (
    DEFAULT_CAVEAT_POLICIES,
    AllowedValuesCaveatRule,
    CaveatPolicyRegistry,
    CaveatRule,
    CeilingCaveatRule,
    ExactCaveatRule,
    FloorCaveatRule,
    RequiredValuesCaveatRule,
)
from ucan_tokens.capabilities.scope import (
    DEFAULT_SCOPE_POLICIES,
    ExactScopePolicy,
    HierarchicalScopePolicy,
    ScopePolicy,
    ScopePolicyRegistry,
)

# ------------------------------------------------------------------
# Token model, codec and builder
# ------------------------------------------------------------------
from ucan_tokens.token.builder import UCANBuilder
from ucan_tokens.token.codec import (
    encode,
    format_token,
    is_valid_jwt_format,
    parse_token,
    try_parse_token,
)
from ucan_tokens.token.types import Algorithm, Header, Payload, Token

# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------
from ucan_tokens.validation.chain import DelegationChainValidator
from ucan_tokens.validation.options import ValidationOptions
from ucan_tokens.validation.result import ValidationResult
from ucan_tokens.validation.signature import (
    AlgorithmVerifiers,
    KeyResolver,
    SignatureVerifier,
)
from ucan_tokens.validation.timing import is_token_expired, is_token_not_yet_valid
from ucan_tokens.validation.validator import validate_token

# ------------------------------------------------------------------
# Reference collaborators
# ------------------------------------------------------------------
from ucan_tokens.crypto.keys import KeyPair
from ucan_tokens.crypto.verifier import CryptographyVerifier
from ucan_tokens.did.did_key import DIDKeyResolver, StaticKeyResolver

__all__ = [
    "__version__",
    # Errors
    "AttenuationFailure",
    "AttenuationViolationError",
    "ChainBrokenError",
    "ChainTooDeepError",
    "CyclicDelegationError",
    "InvalidClaimError",
    "KeyResolutionError",
    "MalformedProofError",
    "MalformedTokenError",
    "SignatureInvalidError",
    "TokenExpiredError",
    "TokenNotYetValidError",
    "UCANError",
    "UnsupportedAlgorithmError",
    "ValidationFailedError",
    "ValidationReason",
    # Capabilities
    "AllowedValuesCaveatRule",
    "AttenuationResult",
    "Capability",
    "CaveatPolicyRegistry",
    "CaveatRule",
    "CeilingCaveatRule",
    "DEFAULT_CAVEAT_POLICIES",
    "DEFAULT_SCOPE_POLICIES",
    "ExactCaveatRule",
    "ExactScopePolicy",
    "FloorCaveatRule",
    "HierarchicalScopePolicy",
    "RequiredValuesCaveatRule",
    "ScopePolicy",
    "ScopePolicyRegistry",
    "find_granting_capability",
    "validate_capability_attenuation",
    # Token
    "Algorithm",
    "Header",
    "Payload",
    "Token",
    "UCANBuilder",
    "encode",
    "format_token",
    "is_valid_jwt_format",
    "parse_token",
    "try_parse_token",
    # Validation
    "AlgorithmVerifiers",
    "DelegationChainValidator",
    "KeyResolver",
    "SignatureVerifier",
    "ValidationOptions",
    "ValidationResult",
    "is_token_expired",
    "is_token_not_yet_valid",
    "validate_token",
    # Collaborators
    "CryptographyVerifier",
    "DIDKeyResolver",
    "KeyPair",
    "StaticKeyResolver",
]
