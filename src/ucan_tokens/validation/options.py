"""ValidationOptions — configuration for a validation pass.

Signature verification is on by default. With it on, the options refuse to
construct unless both collaborators needed to verify are supplied: a key
resolver (identifier -> public key) and a signature verifier. Skipping
verification therefore has to be spelled out as ``verify_signature=False``.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ucan_tokens.capabilities.caveats import DEFAULT_CAVEAT_POLICIES, CaveatPolicyRegistry
from ucan_tokens.capabilities.scope import DEFAULT_SCOPE_POLICIES, ScopePolicyRegistry
from ucan_tokens.validation.signature import KeyResolverLike, SignatureVerifierLike

DEFAULT_MAX_CHAIN_DEPTH = 8
# The chain walk recurses once per hop.
MAX_CHAIN_DEPTH_LIMIT = 256


class ValidationOptions(BaseModel):
    """Options for :func:`~ucan_tokens.validation.validator.validate_token`.

    Parameters
    ----------
    now:
        Unix seconds to validate against. When None, ``clock()`` is called
        once per validation pass.
    clock:
        Zero-argument callable returning Unix seconds. Defaults to the wall
        clock.
    clock_drift_tolerance:
        Seconds of slack applied to both ends of the time window.
    verify_signature:
        Verify the token's and every proof's signature. Defaults to True.
    key_resolver:
        A ``KeyResolver``, or a plain callable
        ``(identifier, algorithm) -> public_key``.
    signature_verifier:
        A ``SignatureVerifier``, or a plain callable
        ``(algorithm, signed_bytes, signature, public_key) -> bool``.
    validate_proof_chain:
        Walk and validate embedded proofs. Defaults to True.
    max_chain_depth:
        Maximum number of delegation hops from the token to its root.
    scope_policies:
        Per-scheme resource containment rules for attenuation checks.
    caveat_policies:
        Per-key caveat implication rules for attenuation checks. Keys
        without a registered rule must be repeated unchanged.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, extra="forbid")

    now: Optional[float] = None
    clock: Callable[[], float] = time.time
    clock_drift_tolerance: float = Field(default=0, ge=0)
    verify_signature: bool = True
    key_resolver: Optional[KeyResolverLike] = None
    signature_verifier: Optional[SignatureVerifierLike] = None
    validate_proof_chain: bool = True
    max_chain_depth: int = Field(default=DEFAULT_MAX_CHAIN_DEPTH, ge=1, le=MAX_CHAIN_DEPTH_LIMIT)
    scope_policies: ScopePolicyRegistry = Field(default_factory=lambda: DEFAULT_SCOPE_POLICIES)
    caveat_policies: CaveatPolicyRegistry = Field(default_factory=lambda: DEFAULT_CAVEAT_POLICIES)

    @model_validator(mode="after")
    def _require_verification_collaborators(self) -> "ValidationOptions":
        if self.verify_signature:
            missing = [
                name
                for name in ("key_resolver", "signature_verifier")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(
                    "verify_signature=True requires "
                    + " and ".join(missing)
                    + "; pass verify_signature=False to explicitly skip verification"
                )
        return self

    def current_time(self) -> float:
        """Return ``now`` if pinned, else the injected clock's reading."""
        return self.now if self.now is not None else self.clock()


__all__ = ["DEFAULT_MAX_CHAIN_DEPTH", "MAX_CHAIN_DEPTH_LIMIT", "ValidationOptions"]
