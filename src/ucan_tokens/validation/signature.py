"""Signature verification through injected collaborators.

Two collaborators are consumed, never implemented here:

- a **key resolver** mapping ``(identifier, algorithm)`` to public key
  material (DID resolution), raising
  :class:`~ucan_tokens.errors.KeyResolutionError` when there is none;
- a **signature verifier** answering whether a signature over the signed
  bytes is valid for a public key.

Anything either collaborator raises is reported as ``SignatureInvalid``. A
failed verification is never retried.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

from ucan_tokens.errors import KeyResolutionError, UnsupportedAlgorithmError, ValidationReason
from ucan_tokens.token.types import Algorithm, Token
from ucan_tokens.validation.result import ValidationResult

logger = logging.getLogger(__name__)

VerifyFunction = Callable[[bytes, bytes, Any], bool]


@runtime_checkable
class KeyResolver(Protocol):
    """Resolves an identifier to public key material for an algorithm."""

    def resolve_key(self, identifier: str, algorithm: Algorithm) -> Any: ...


@runtime_checkable
class SignatureVerifier(Protocol):
    """Checks a signature over signed bytes against a public key."""

    def verify(
        self,
        algorithm: Algorithm,
        signed_bytes: bytes,
        signature: bytes,
        public_key: Any,
    ) -> bool: ...


KeyResolverLike = Union[KeyResolver, Callable[[str, Algorithm], Any]]
SignatureVerifierLike = Union[SignatureVerifier, Callable[[Algorithm, bytes, bytes, Any], bool]]


@dataclass(frozen=True)
class AlgorithmVerifiers:
    """A :class:`SignatureVerifier` routing each algorithm to its own function.

    Dispatch is over the closed :class:`~ucan_tokens.token.types.Algorithm`
    enumeration. An algorithm without a configured function fails closed with
    :class:`~ucan_tokens.errors.UnsupportedAlgorithmError`; it is never
    skipped.

    Each function is called as ``fn(signed_bytes, signature, public_key)``.
    """

    eddsa: VerifyFunction | None = None
    es256: VerifyFunction | None = None
    rs256: VerifyFunction | None = None

    def for_algorithm(self, algorithm: Algorithm) -> VerifyFunction:
        if algorithm is Algorithm.EDDSA:
            function = self.eddsa
        elif algorithm is Algorithm.ES256:
            function = self.es256
        elif algorithm is Algorithm.RS256:
            function = self.rs256
        else:
            raise UnsupportedAlgorithmError(algorithm)
        if function is None:
            raise UnsupportedAlgorithmError(algorithm)
        return function

    def verify(
        self,
        algorithm: Algorithm,
        signed_bytes: bytes,
        signature: bytes,
        public_key: Any,
    ) -> bool:
        return self.for_algorithm(algorithm)(signed_bytes, signature, public_key)


def _resolve_key(resolver: Any, identifier: str, algorithm: Algorithm) -> Any:
    resolve = getattr(resolver, "resolve_key", None)
    if resolve is not None:
        return resolve(identifier, algorithm)
    return resolver(identifier, algorithm)


def _verify(verifier: Any, algorithm: Algorithm, token: Token, public_key: Any) -> Any:
    verify = getattr(verifier, "verify", None)
    if verify is not None:
        return verify(algorithm, token.signing_input, token.signature, public_key)
    return verifier(algorithm, token.signing_input, token.signature, public_key)


def verify_token_signature(
    token: Token,
    key_resolver: KeyResolverLike,
    signature_verifier: SignatureVerifierLike,
    chain_depth: int = 0,
) -> ValidationResult:
    """Verify *token*'s signature over its literal encoded header and payload.

    Parameters
    ----------
    token:
        A decoded token. Its retained segments supply the signed bytes.
    key_resolver:
        A :class:`KeyResolver` or a callable ``(identifier, algorithm) -> key``.
    signature_verifier:
        A :class:`SignatureVerifier` or a callable
        ``(algorithm, signed_bytes, signature, public_key) -> bool``.
    chain_depth:
        Depth reported on failure.

    Returns
    -------
    ValidationResult
    """
    algorithm = token.header.algorithm
    issuer = token.payload.issuer

    try:
        public_key = _resolve_key(key_resolver, issuer, algorithm)
    except UnsupportedAlgorithmError as exc:
        logger.info("Key resolution for %s does not support %s", issuer, algorithm.value)
        return ValidationResult.fail(
            ValidationReason.UNSUPPORTED_ALGORITHM, str(exc), chain_depth, issuer=issuer
        )
    except KeyResolutionError as exc:
        logger.info("No public key for issuer %s: %s", issuer, exc)
        return ValidationResult.fail(
            ValidationReason.SIGNATURE_INVALID,
            f"issuer key could not be resolved: {exc}",
            chain_depth,
            issuer=issuer,
        )
    except Exception as exc:
        logger.warning("Key resolver failed for issuer %s: %s", issuer, exc)
        return ValidationResult.fail(
            ValidationReason.SIGNATURE_INVALID,
            f"key resolver failed: {exc}",
            chain_depth,
            issuer=issuer,
        )

    try:
        verified = _verify(signature_verifier, algorithm, token, public_key)
    except UnsupportedAlgorithmError as exc:
        logger.info("Signature verifier does not support %s", algorithm.value)
        return ValidationResult.fail(
            ValidationReason.UNSUPPORTED_ALGORITHM, str(exc), chain_depth, issuer=issuer
        )
    except Exception as exc:
        logger.warning("Signature verifier failed for issuer %s: %s", issuer, exc)
        return ValidationResult.fail(
            ValidationReason.SIGNATURE_INVALID,
            f"signature verifier failed: {exc}",
            chain_depth,
            issuer=issuer,
        )

    if verified is not True:
        logger.info("Signature rejected for issuer %s (%s)", issuer, algorithm.value)
        return ValidationResult.fail(
            ValidationReason.SIGNATURE_INVALID,
            f"{algorithm.value} signature does not verify for issuer {issuer!r}",
            chain_depth,
            issuer=issuer,
        )

    logger.debug("Signature verified for issuer %s (%s)", issuer, algorithm.value)
    return ValidationResult.ok(chain_depth)


__all__ = [
    "AlgorithmVerifiers",
    "KeyResolver",
    "KeyResolverLike",
    "SignatureVerifier",
    "SignatureVerifierLike",
    "VerifyFunction",
    "verify_token_signature",
]
