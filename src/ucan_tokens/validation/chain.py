"""DelegationChainValidator — walks and validates a token's embedded proofs.

Proofs carry their parent tokens by value, so the wire format enforces no
acyclic structure. The walk treats the chain as a graph and guards it
explicitly:

- depth is bounded by ``ValidationOptions.max_chain_depth`` (``ChainTooDeep``);
- an issuer may appear only once along a path from the token to its root
  (``CyclicDelegation``).

At every hop the parent must decode (``MalformedProof``), be inside its own
time window, carry a valid signature (when verification is enabled), name the
child's issuer as its audience (``ChainBroken``), and grant every capability
the child claims (``AttenuationViolation``).
"""
from __future__ import annotations

import logging

from ucan_tokens.capabilities.attenuation import find_granting_capability
from ucan_tokens.errors import MalformedTokenError, ValidationReason
from ucan_tokens.token.codec import parse_token
from ucan_tokens.token.types import Token
from ucan_tokens.validation.options import ValidationOptions
from ucan_tokens.validation.result import ValidationResult
from ucan_tokens.validation.signature import verify_token_signature
from ucan_tokens.validation.timing import validate_timestamps

logger = logging.getLogger(__name__)


class DelegationChainValidator:
    """Validates the proof chain beneath a token.

    The validator holds no per-call state and may be shared between threads.
    Sibling proofs are validated independently; every one of them must pass.

    Parameters
    ----------
    options:
        Clock, drift, signature collaborators, depth bound and scope
        policies to apply at every hop.
    """

    def __init__(self, options: ValidationOptions) -> None:
        self._options = options

    @property
    def options(self) -> ValidationOptions:
        return self._options

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, token: Token, now: float | None = None) -> ValidationResult:
        """Validate every proof beneath *token*.

        The token itself is not checked here; its own time window and
        signature belong to the caller (see
        :func:`~ucan_tokens.validation.validator.validate_token`).

        Parameters
        ----------
        token:
            The token whose ``proofs`` should be walked.
        now:
            Unix seconds to check every hop against. Defaults to
            ``options.current_time()``, read once for the whole walk.

        Returns
        -------
        ValidationResult
            On success ``chain_depth`` is the number of hops from *token* to
            the root reached through its first proof (0 for a root token).
            On failure it is the depth of the hop that failed.
        """
        if now is None:
            now = self._options.current_time()
        return self._walk(token, depth=0, seen_issuers=frozenset({token.issuer}), now=now)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _walk(
        self,
        token: Token,
        depth: int,
        seen_issuers: frozenset[str],
        now: float,
    ) -> ValidationResult:
        """Validate each proof of *token*, then recurse into it."""
        first_depth: int | None = None
        for index, encoded_proof in enumerate(token.payload.proofs):
            result = self._validate_hop(token, encoded_proof, index, depth + 1, seen_issuers, now)
            if not result.valid:
                return result
            if first_depth is None:
                first_depth = result.chain_depth
        return ValidationResult.ok(depth if first_depth is None else first_depth)

    def _validate_hop(
        self,
        child: Token,
        encoded_proof: str,
        index: int,
        depth: int,
        seen_issuers: frozenset[str],
        now: float,
    ) -> ValidationResult:
        options = self._options

        if depth > options.max_chain_depth:
            logger.info(
                "Proof chain under %s exceeds max depth %d",
                child.issuer,
                options.max_chain_depth,
            )
            return ValidationResult.fail(
                ValidationReason.CHAIN_TOO_DEEP,
                f"proof chain exceeds the maximum depth of {options.max_chain_depth}",
                depth,
                max_chain_depth=options.max_chain_depth,
            )

        try:
            parent = parse_token(encoded_proof)
        except MalformedTokenError as exc:
            logger.info("Proof %d of %s does not decode: %s", index, child.issuer, exc.detail)
            return ValidationResult.fail(
                ValidationReason.MALFORMED_PROOF,
                f"proof {index} at depth {depth} is malformed: {exc.detail}",
                depth,
                proof_index=index,
            )

        logger.debug(
            "Checking proof %d at depth %d: %s -> %s",
            index,
            depth,
            parent.issuer,
            parent.audience,
        )

        if parent.audience != child.issuer:
            logger.info(
                "Chain broken at depth %d: proof audience %s, child issuer %s",
                depth,
                parent.audience,
                child.issuer,
            )
            return ValidationResult.fail(
                ValidationReason.CHAIN_BROKEN,
                f"proof {index} was issued to {parent.audience!r}, "
                f"not to the delegating issuer {child.issuer!r}",
                depth,
                proof_index=index,
                proof_audience=parent.audience,
                child_issuer=child.issuer,
            )

        if parent.issuer in seen_issuers:
            logger.info("Cyclic delegation at depth %d: %s seen twice", depth, parent.issuer)
            return ValidationResult.fail(
                ValidationReason.CYCLIC_DELEGATION,
                f"issuer {parent.issuer!r} appears more than once in the proof chain",
                depth,
                proof_index=index,
                issuer=parent.issuer,
            )

        timing = validate_timestamps(
            parent.payload,
            now=now,
            clock_drift_tolerance=options.clock_drift_tolerance,
            chain_depth=depth,
        )
        if not timing.valid:
            logger.info("Proof %d at depth %d failed: %s", index, depth, timing.detail)
            return timing

        if options.verify_signature:
            signature = verify_token_signature(
                parent,
                options.key_resolver,
                options.signature_verifier,
                chain_depth=depth,
            )
            if not signature.valid:
                return signature

        for capability in child.payload.capabilities:
            granted_by, attenuation = find_granting_capability(
                capability,
                parent.payload.capabilities,
                options.scope_policies,
                options.caveat_policies,
            )
            if granted_by is None:
                logger.info(
                    "Attenuation violation at depth %d: %s (%s)",
                    depth,
                    capability,
                    attenuation.reason.value if attenuation.reason else "unknown",
                )
                return ValidationResult.fail(
                    ValidationReason.ATTENUATION_VIOLATION,
                    f"capability {capability} is not granted by proof {index}: "
                    f"{attenuation.detail}",
                    depth,
                    attenuation=attenuation.reason,
                    proof_index=index,
                    capability=capability.to_dict(),
                )

        return self._walk(parent, depth, seen_issuers | {parent.issuer}, now)


__all__ = ["DelegationChainValidator"]
