"""UCANBuilder — fluent accumulation of claims into a signable token.

The builder never computes signatures. Signing may involve hardware-backed
or remote key material, so it is an external collaborator: ask the builder
for :meth:`UCANBuilder.signing_input`, have the signer produce signature
bytes over it, then call :meth:`UCANBuilder.build`.

A builder is a single in-progress token. Setters mutate and return the same
instance; build a fresh builder per token rather than sharing or reusing
one across callers.

Example
-------
::

    builder = (
        UCANBuilder()
        .issuer(issuer_keys.did)
        .audience("did:web:example.com")
        .expiration(1_900_000_000)
        .add_capability(Capability("storage://example.com/data", "read"))
    )
    token = builder.build(issuer_keys.sign(builder.signing_input()))
"""
from __future__ import annotations

import copy
import re
import time
from collections.abc import Callable, Mapping
from typing import Any

from ucan_tokens.capabilities.capability import Capability
from ucan_tokens.token.codec import create_signing_message, encode
from ucan_tokens.token.types import DEFAULT_UCAN_VERSION, Algorithm, Header, Payload

MAX_SAFE_TIMESTAMP = 2**53 - 1
MIN_SAFE_TIMESTAMP = -(2**53 - 1)

MIN_DID_LENGTH = 10

# W3C DID Core: method-specific-id = *( *idchar ":" ) 1*idchar,
# idchar = ALPHA / DIGIT / "." / "-" / "_" / pct-encoded
_DID_ID_CHAR = r"(?:[A-Za-z0-9._-]|%[0-9A-Fa-f]{2})"
_DID_PATTERN = re.compile(rf"did:[a-z0-9]+:(?:{_DID_ID_CHAR}*:)*{_DID_ID_CHAR}+")


def is_valid_did(identifier: object) -> bool:
    """Return True when *identifier* has ``did:<method>:<id>`` syntax.

    The method-specific id may only use letters, digits, ``.``, ``-``, ``_``,
    ``%XX`` escapes and ``:`` separators, and the whole identifier must be at
    least :data:`MIN_DID_LENGTH` characters.
    """
    return (
        isinstance(identifier, str)
        and len(identifier) >= MIN_DID_LENGTH
        and _DID_PATTERN.fullmatch(identifier) is not None
    )


def _check_timestamp(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Invalid {name} timestamp {value!r}: must be an integer (Unix seconds).")
    if not MIN_SAFE_TIMESTAMP <= value <= MAX_SAFE_TIMESTAMP:
        raise ValueError(
            f"Invalid {name} timestamp {value}: must be within "
            f"[{MIN_SAFE_TIMESTAMP}, {MAX_SAFE_TIMESTAMP}]."
        )
    return value


class UCANBuilder:
    """Mutable accumulator for a single UCAN token.

    Parameters
    ----------
    algorithm:
        Signature algorithm recorded in the header. Defaults to EdDSA.
    version:
        UCAN version recorded in the header (``ucv``).
    """

    def __init__(
        self,
        algorithm: Algorithm | str = Algorithm.EDDSA,
        version: str = DEFAULT_UCAN_VERSION,
    ) -> None:
        self._algorithm = Algorithm.parse(algorithm)
        self._version = version
        self._issuer: str | None = None
        self._audience: str | None = None
        self._expiration: int | None = None
        self._not_before: int | None = None
        self._nonce: str | None = None
        self._capabilities: list[Capability] = []
        self._proofs: list[str] = []
        self._facts: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def issuer(self, did: str) -> "UCANBuilder":
        """Set the issuer DID (``iss``)."""
        if not is_valid_did(did):
            raise ValueError(
                f"Invalid issuer DID format: {did!r}. Expected did:<method>:<identifier>."
            )
        self._issuer = did
        return self

    def audience(self, did: str) -> "UCANBuilder":
        """Set the audience DID (``aud``)."""
        if not is_valid_did(did):
            raise ValueError(
                f"Invalid audience DID format: {did!r}. Expected did:<method>:<identifier>."
            )
        self._audience = did
        return self

    def expiration(self, timestamp: int | None) -> "UCANBuilder":
        """Set ``exp`` in Unix seconds. ``None`` records "never expires"."""
        self._expiration = None if timestamp is None else _check_timestamp("expiration", timestamp)
        return self

    def expires_in(self, seconds: int, now: int | None = None) -> "UCANBuilder":
        """Set ``exp`` to *seconds* after *now* (defaults to the wall clock)."""
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds <= 0:
            raise ValueError(f"Invalid expires_in value {seconds!r}: must be a positive number.")
        reference = int(time.time()) if now is None else now
        self._expiration = _check_timestamp("expiration", reference + int(seconds))
        return self

    def not_before(self, timestamp: int) -> "UCANBuilder":
        """Set ``nbf`` in Unix seconds.

        A ``not_before`` later than the expiration is not rejected here; the
        builder may be mid-construction. Validation reports it instead.
        """
        self._not_before = _check_timestamp("not_before", timestamp)
        return self

    def nonce(self, value: str) -> "UCANBuilder":
        """Set the ``nnc`` uniqueness marker."""
        if not isinstance(value, str) or not value:
            raise ValueError("Nonce must be a non-empty string.")
        self._nonce = value
        return self

    def algorithm(self, alg: Algorithm | str) -> "UCANBuilder":
        self._algorithm = Algorithm.parse(alg)
        return self

    def version(self, ucv: str) -> "UCANBuilder":
        self._version = ucv
        return self

    def add_capability(self, capability: Capability) -> "UCANBuilder":
        """Append a capability to ``att``; order is preserved."""
        if not isinstance(capability, Capability):
            raise TypeError(
                f"Expected a Capability, got {type(capability).__name__}. "
                "Use Capability.from_dict() for wire mappings."
            )
        self._capabilities.append(capability)
        return self

    def add_fact(self, fact: Mapping[str, Any]) -> "UCANBuilder":
        """Append a fact object to ``fct``."""
        if not isinstance(fact, Mapping):
            raise ValueError("Fact must be a mapping.")
        self._facts.append(copy.deepcopy(dict(fact)))
        return self

    def add_proof(self, encoded_parent: str) -> "UCANBuilder":
        """Append an encoded parent token to ``prf``.

        The proof is stored verbatim; it is decoded and checked only when the
        finished token is validated.
        """
        if not isinstance(encoded_parent, str) or not encoded_parent:
            raise ValueError("Proof must be a non-empty encoded token string.")
        self._proofs.append(encoded_parent)
        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def build_header(self) -> Header:
        """Freeze the header as currently configured."""
        return Header(algorithm=self._algorithm, version=self._version)

    def build_payload(self) -> Payload:
        """Freeze the payload as currently accumulated.

        Raises
        ------
        ValueError
            If issuer or audience is unset, or no capability was added.
        """
        errors: list[str] = []
        if self._issuer is None:
            errors.append("issuer DID is required (use .issuer())")
        if self._audience is None:
            errors.append("audience DID is required (use .audience())")
        if not self._capabilities:
            errors.append("at least one capability is required (use .add_capability())")
        if errors:
            raise ValueError(f"UCAN build failed: {'; '.join(errors)}")

        return Payload(
            issuer=self._issuer,  # type: ignore[arg-type]
            audience=self._audience,  # type: ignore[arg-type]
            expiration=self._expiration,
            not_before=self._not_before,
            capabilities=tuple(self._capabilities),
            proofs=tuple(self._proofs),
            nonce=self._nonce,
            facts=tuple(copy.deepcopy(self._facts)),
        )

    def signing_input(self) -> bytes:
        """Return the exact bytes an external signer must sign."""
        return create_signing_message(self.build_header(), self.build_payload()).encode("ascii")

    def build(self, signature: bytes) -> str:
        """Return the finished encoded token carrying *signature*.

        Parameters
        ----------
        signature:
            Raw signature bytes produced externally over
            :meth:`signing_input`.

        Raises
        ------
        ValueError
            If required claims are missing or *signature* is empty.
        TypeError
            If *signature* is not bytes.
        """
        if not isinstance(signature, (bytes, bytearray)):
            raise TypeError("Signature must be bytes.")
        if not signature:
            raise ValueError("Signature cannot be empty.")
        return encode(self.build_header(), self.build_payload(), bytes(signature)).encoded

    def build_and_sign(self, signer: Callable[[bytes], bytes]) -> str:
        """Sign :meth:`signing_input` with the external *signer* and build."""
        return self.build(signer(self.signing_input()))


__all__ = [
    "MAX_SAFE_TIMESTAMP",
    "MIN_DID_LENGTH",
    "MIN_SAFE_TIMESTAMP",
    "UCANBuilder",
    "is_valid_did",
]
