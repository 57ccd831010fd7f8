"""ValidationResult — the pass/fail outcome of validating a token."""
from __future__ import annotations

from dataclasses import dataclass, field

from ucan_tokens.errors import (
    AttenuationFailure,
    AttenuationViolationError,
    ChainBrokenError,
    ChainTooDeepError,
    CyclicDelegationError,
    InvalidClaimError,
    MalformedProofError,
    SignatureInvalidError,
    TokenExpiredError,
    TokenNotYetValidError,
    ValidationFailedError,
    ValidationReason,
)

_EXCEPTIONS: dict[ValidationReason, type[ValidationFailedError]] = {
    ValidationReason.MALFORMED_PROOF: MalformedProofError,
    ValidationReason.SIGNATURE_INVALID: SignatureInvalidError,
    ValidationReason.TOKEN_EXPIRED: TokenExpiredError,
    ValidationReason.TOKEN_NOT_YET_VALID: TokenNotYetValidError,
    ValidationReason.CHAIN_BROKEN: ChainBrokenError,
    ValidationReason.CHAIN_TOO_DEEP: ChainTooDeepError,
    ValidationReason.CYCLIC_DELEGATION: CyclicDelegationError,
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation pass.

    Parameters
    ----------
    valid:
        Overall pass/fail.
    reason:
        Why validation failed, or None when valid.
    chain_depth:
        Number of delegation hops walked from this token to its root
        (0 for a root token). On failure, the depth at which it occurred.
    detail:
        Human-readable diagnostic.
    attenuation:
        For :attr:`ValidationReason.ATTENUATION_VIOLATION`, which clause failed.
    details:
        Extra structured context (offending capability, issuer, and so on).
    """

    valid: bool
    reason: ValidationReason | None = None
    chain_depth: int = 0
    detail: str = ""
    attenuation: AttenuationFailure | None = None
    details: dict[str, object] = field(default_factory=dict)

    @classmethod
    def ok(cls, chain_depth: int = 0) -> "ValidationResult":
        return cls(valid=True, chain_depth=chain_depth)

    @classmethod
    def fail(
        cls,
        reason: ValidationReason,
        detail: str,
        chain_depth: int = 0,
        attenuation: AttenuationFailure | None = None,
        **details: object,
    ) -> "ValidationResult":
        return cls(
            valid=False,
            reason=reason,
            chain_depth=chain_depth,
            detail=detail,
            attenuation=attenuation,
            details=dict(details),
        )

    def __bool__(self) -> bool:
        return self.valid

    def raise_for_failure(self) -> None:
        """Raise the taxonomy exception matching this result, if it failed."""
        if self.valid:
            return
        if self.reason is ValidationReason.ATTENUATION_VIOLATION:
            raise AttenuationViolationError(self.detail, self.chain_depth, self.attenuation)
        exc_type = _EXCEPTIONS.get(self.reason) if self.reason else None
        if exc_type is not None:
            raise exc_type(self.detail, self.chain_depth)
        raise InvalidClaimError(self.detail, self.chain_depth, reason=self.reason)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dictionary."""
        return {
            "valid": self.valid,
            "reason": self.reason.value if self.reason else None,
            "chain_depth": self.chain_depth,
            "detail": self.detail,
            "attenuation": self.attenuation.value if self.attenuation else None,
            "details": dict(self.details),
        }


__all__ = ["ValidationResult"]
