"""Error taxonomy for UCAN tokens.

Two parallel shapes are provided:

- :class:`ValidationReason`: the value carried by a failed
  :class:`~ucan_tokens.validation.result.ValidationResult`. Validation never
  raises for semantic failures; it reports one of these.
- The :class:`UCANError` exception hierarchy, raised by decoding (a string
  that is not a token at all) and by
  :meth:`~ucan_tokens.validation.result.ValidationResult.raise_for_failure`
  for callers that prefer exceptions.
"""
from __future__ import annotations

from enum import Enum


class ValidationReason(str, Enum):
    """Why a token failed validation."""

    MALFORMED_TOKEN = "MalformedToken"
    MALFORMED_PROOF = "MalformedProof"
    SIGNATURE_INVALID = "SignatureInvalid"
    TOKEN_EXPIRED = "TokenExpired"
    TOKEN_NOT_YET_VALID = "TokenNotYetValid"
    CHAIN_BROKEN = "ChainBroken"
    ATTENUATION_VIOLATION = "AttenuationViolation"
    CHAIN_TOO_DEEP = "ChainTooDeep"
    CYCLIC_DELEGATION = "CyclicDelegation"
    UNSUPPORTED_ALGORITHM = "UnsupportedAlgorithm"
    INVALID_ISSUER = "InvalidIssuer"
    INVALID_AUDIENCE = "InvalidAudience"
    INVALID_CAPABILITY = "InvalidCapability"
    INVALID_TIME_WINDOW = "InvalidTimeWindow"


class AttenuationFailure(str, Enum):
    """Which clause of the attenuation check failed."""

    RESOURCE_OUT_OF_SCOPE = "resource_out_of_scope"
    ACTION_NOT_PERMITTED = "action_not_permitted"
    CAVEAT_VIOLATION = "caveat_violation"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UCANError(Exception):
    """Base class for all ucan-tokens errors."""

    reason: ValidationReason | None = None


class MalformedTokenError(UCANError):
    """Raised when a string cannot be decoded into a structural token."""

    reason = ValidationReason.MALFORMED_TOKEN

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Malformed token: {detail}")


class UnsupportedAlgorithmError(MalformedTokenError):
    """Raised when a header names an algorithm outside the supported set."""

    reason = ValidationReason.UNSUPPORTED_ALGORITHM

    def __init__(self, algorithm: object) -> None:
        self.algorithm = algorithm
        super().__init__(
            f"unsupported algorithm {algorithm!r}; expected one of EdDSA, ES256, RS256"
        )


class KeyResolutionError(UCANError, KeyError):
    """Raised by a key resolver when an identifier has no usable public key."""

    def __init__(self, identifier: str, detail: str = "") -> None:
        self.identifier = identifier
        self.detail = detail
        message = f"No public key could be resolved for {identifier!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])


class ValidationFailedError(UCANError):
    """Base class for exceptions raised from a failed validation result."""

    def __init__(self, detail: str, chain_depth: int = 0) -> None:
        self.detail = detail
        self.chain_depth = chain_depth
        super().__init__(detail)


class MalformedProofError(ValidationFailedError):
    reason = ValidationReason.MALFORMED_PROOF


class SignatureInvalidError(ValidationFailedError):
    reason = ValidationReason.SIGNATURE_INVALID


class TokenExpiredError(ValidationFailedError):
    reason = ValidationReason.TOKEN_EXPIRED


class TokenNotYetValidError(ValidationFailedError):
    reason = ValidationReason.TOKEN_NOT_YET_VALID


class ChainBrokenError(ValidationFailedError):
    reason = ValidationReason.CHAIN_BROKEN


class AttenuationViolationError(ValidationFailedError):
    """Raised when a delegated capability exceeds its parent's grant."""

    reason = ValidationReason.ATTENUATION_VIOLATION

    def __init__(
        self,
        detail: str,
        chain_depth: int = 0,
        clause: AttenuationFailure | None = None,
    ) -> None:
        self.clause = clause
        super().__init__(detail, chain_depth)


class ChainTooDeepError(ValidationFailedError):
    reason = ValidationReason.CHAIN_TOO_DEEP


class CyclicDelegationError(ValidationFailedError):
    reason = ValidationReason.CYCLIC_DELEGATION


class InvalidClaimError(ValidationFailedError):
    """Raised for failed issuer/audience/capability/time-window/algorithm checks."""

    def __init__(
        self,
        detail: str,
        chain_depth: int = 0,
        reason: ValidationReason | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(detail, chain_depth)


__all__ = [
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
]
