"""Top-level token validation.

:func:`validate_token` runs the checks cheapest first and stops at the first
failure:

1. header algorithm is one of the supported set;
2. issuer and audience are DIDs;
3. the token grants at least one well-formed capability;
4. the time window (inverted window, expiry, not-yet-valid);
5. the signature, when ``options.verify_signature`` is set;
6. the proof chain, when the token carries proofs.

Semantic failures come back as a :class:`ValidationResult`. Only a string
that is not a token at all (``MalformedTokenError``) and programmer errors
such as a wrong argument type propagate as exceptions.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ucan_tokens.capabilities.capability import Capability, find_capability_problems
from ucan_tokens.errors import ValidationReason
from ucan_tokens.token.builder import is_valid_did
from ucan_tokens.token.codec import parse_token
from ucan_tokens.token.types import Algorithm, Token
from ucan_tokens.validation.chain import DelegationChainValidator
from ucan_tokens.validation.options import ValidationOptions
from ucan_tokens.validation.result import ValidationResult
from ucan_tokens.validation.signature import verify_token_signature
from ucan_tokens.validation.timing import validate_timestamps

logger = logging.getLogger(__name__)

_DID_REASONS = {
    "issuer": ValidationReason.INVALID_ISSUER,
    "audience": ValidationReason.INVALID_AUDIENCE,
}


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_algorithm(token: Token, chain_depth: int = 0) -> ValidationResult:
    """Check that the token's header names a supported algorithm.

    :func:`~ucan_tokens.token.codec.parse_token` already rejects unknown
    ``alg`` values with ``MalformedTokenError``, so this only fails for a
    :class:`~ucan_tokens.token.types.Token` constructed by hand (for example
    by a custom codec or a test) whose header carries a non-member value.
    """
    algorithm = token.header.algorithm
    if not isinstance(algorithm, Algorithm):
        return ValidationResult.fail(
            ValidationReason.UNSUPPORTED_ALGORITHM,
            f"unsupported algorithm {algorithm!r}",
            chain_depth,
        )
    return ValidationResult.ok(chain_depth)


def validate_did(
    identifier: object,
    field: str = "issuer",
    chain_depth: int = 0,
) -> ValidationResult:
    """Check that *identifier* has ``did:<method>:<id>`` syntax.

    Parameters
    ----------
    identifier:
        The value of the ``iss`` or ``aud`` claim.
    field:
        ``"issuer"`` or ``"audience"``; selects the failure reason.
    chain_depth:
        Depth reported on failure.

    Raises
    ------
    ValueError
        If *field* is not ``"issuer"`` or ``"audience"``.
    """
    try:
        reason = _DID_REASONS[field]
    except KeyError:
        raise ValueError(f"field must be 'issuer' or 'audience', got {field!r}") from None
    if not is_valid_did(identifier):
        return ValidationResult.fail(
            reason,
            f"{field} {identifier!r} is not a valid DID",
            chain_depth,
            **{field: identifier},
        )
    return ValidationResult.ok(chain_depth)


def validate_capabilities(
    capabilities: Iterable[Capability],
    chain_depth: int = 0,
) -> ValidationResult:
    """Check that a token grants at least one well-formed capability."""
    problems = find_capability_problems(capabilities)
    if problems:
        return ValidationResult.fail(
            ValidationReason.INVALID_CAPABILITY,
            "; ".join(problems),
            chain_depth,
            problems=problems,
        )
    return ValidationResult.ok(chain_depth)


def validate_signature(
    token: Token,
    options: ValidationOptions,
    chain_depth: int = 0,
) -> ValidationResult:
    """Verify *token*'s signature with the collaborators held by *options*.

    Raises
    ------
    ValueError
        If *options* carries no key resolver or no signature verifier.
    """
    if options.key_resolver is None or options.signature_verifier is None:
        raise ValueError("signature verification needs a key_resolver and a signature_verifier")
    return verify_token_signature(
        token,
        options.key_resolver,
        options.signature_verifier,
        chain_depth=chain_depth,
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def validate_token(token: Token | str, options: ValidationOptions) -> ValidationResult:
    """Validate a token and, recursively, its proof chain.

    Parameters
    ----------
    token:
        A decoded :class:`~ucan_tokens.token.types.Token` or its encoded string.
    options:
        Validation options. Must be passed explicitly; signature
        verification is on unless the options say ``verify_signature=False``.

    Returns
    -------
    ValidationResult
        ``valid=True`` with the chain depth, or the first failure found.

    Raises
    ------
    MalformedTokenError
        If *token* is a string that does not decode.
    TypeError
        If *token* or *options* has the wrong type.
    """
    if isinstance(token, str):
        token = parse_token(token)
    elif not isinstance(token, Token):
        raise TypeError(f"token must be a Token or an encoded string, got {type(token).__name__}")
    if not isinstance(options, ValidationOptions):
        raise TypeError(f"options must be ValidationOptions, got {type(options).__name__}")

    now = options.current_time()
    result = _validate(token, options, now)
    if result.valid:
        logger.debug(
            "Token from %s to %s is valid (chain depth %d)",
            token.issuer,
            token.audience,
            result.chain_depth,
        )
    else:
        logger.info(
            "Token from %s rejected: %s at depth %d: %s",
            token.issuer,
            result.reason.value if result.reason else "unknown",
            result.chain_depth,
            result.detail,
        )
    return result


def _validate(token: Token, options: ValidationOptions, now: float) -> ValidationResult:
    payload = token.payload

    result = validate_algorithm(token)
    if not result.valid:
        return result

    result = validate_did(payload.issuer, "issuer")
    if not result.valid:
        return result
    result = validate_did(payload.audience, "audience")
    if not result.valid:
        return result

    result = validate_capabilities(payload.capabilities)
    if not result.valid:
        return result

    result = validate_timestamps(
        payload,
        now=now,
        clock_drift_tolerance=options.clock_drift_tolerance,
    )
    if not result.valid:
        return result

    if options.verify_signature:
        result = validate_signature(token, options)
        if not result.valid:
            return result

    if payload.proofs and options.validate_proof_chain:
        return DelegationChainValidator(options).validate(token, now=now)

    return ValidationResult.ok(0)


__all__ = [
    "validate_algorithm",
    "validate_capabilities",
    "validate_did",
    "validate_signature",
    "validate_token",
]
