"""Token data model — Header, Payload, and Token.

A decoded :class:`Token` retains the three literal encoded segments it was
parsed from. Signatures are verified over those literal bytes, never over a
re-serialization of the parsed structures.
"""
from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ucan_tokens.capabilities.capability import Capability
from ucan_tokens.errors import UnsupportedAlgorithmError

TOKEN_TYPE = "JWT"
DEFAULT_UCAN_VERSION = "0.10.0"


class Algorithm(str, Enum):
    """The closed set of supported signature algorithms."""

    EDDSA = "EdDSA"
    ES256 = "ES256"
    RS256 = "RS256"

    @classmethod
    def parse(cls, value: object) -> "Algorithm":
        """Return the member for *value*.

        Raises
        ------
        UnsupportedAlgorithmError
            If *value* is not exactly one of the supported algorithm names.
        """
        if isinstance(value, Algorithm):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise UnsupportedAlgorithmError(value)


@dataclass(frozen=True)
class Header:
    """Token header: which algorithm signed it, plus format markers."""

    algorithm: Algorithm = Algorithm.EDDSA
    type: str = TOKEN_TYPE
    version: str | None = DEFAULT_UCAN_VERSION

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"alg": self.algorithm.value, "typ": self.type}
        if self.version is not None:
            data["ucv"] = self.version
        return data


@dataclass(frozen=True)
class Payload:
    """Token claims.

    Parameters
    ----------
    issuer:
        Identifier (normally a DID) of the signer (``iss``).
    audience:
        Identifier the grant is addressed to (``aud``).
    expiration:
        Unix seconds after which the token is invalid (``exp``); None means
        the token never expires by time.
    not_before:
        Unix seconds before which the token is invalid (``nbf``).
    capabilities:
        Granted capabilities (``att``), insertion order preserved.
    proofs:
        Encoded parent tokens justifying the grant (``prf``). Empty for a
        root token.
    nonce:
        Optional uniqueness marker (``nnc``).
    facts:
        Optional signed assertions that are not capabilities (``fct``).
    """

    issuer: str
    audience: str
    expiration: int | float | None = None
    not_before: int | float | None = None
    capabilities: tuple[Capability, ...] = ()
    proofs: tuple[str, ...] = ()
    nonce: str | None = None
    facts: tuple[dict[str, Any], ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "capabilities", tuple(self.capabilities))
        object.__setattr__(self, "proofs", tuple(self.proofs))
        object.__setattr__(self, "facts", tuple(copy.deepcopy(dict(f)) for f in self.facts))

    @property
    def is_root(self) -> bool:
        """True when the token cites no proofs."""
        return not self.proofs

    def to_dict(self) -> dict[str, object]:
        """Serialize to the wire mapping in canonical key order."""
        data: dict[str, object] = {
            "iss": self.issuer,
            "aud": self.audience,
            "exp": self.expiration,
            "att": [cap.to_dict() for cap in self.capabilities],
        }
        if self.not_before is not None:
            data["nbf"] = self.not_before
        if self.nonce is not None:
            data["nnc"] = self.nonce
        if self.facts:
            data["fct"] = [copy.deepcopy(fact) for fact in self.facts]
        if self.proofs:
            data["prf"] = list(self.proofs)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Payload":
        """Reconstruct a payload from its wire mapping.

        Raises
        ------
        ValueError
            On missing required claims or claims of the wrong type.
        """
        issuer = data.get("iss")
        audience = data.get("aud")
        if not isinstance(issuer, str):
            raise ValueError("missing or invalid 'iss' (issuer)")
        if not isinstance(audience, str):
            raise ValueError("missing or invalid 'aud' (audience)")

        if "exp" not in data:
            raise ValueError("missing 'exp' (expiration); use null for never-expiring")
        expiration = data["exp"]
        if expiration is not None and not _is_timestamp(expiration):
            raise ValueError("invalid 'exp' (expiration): must be a number or null")

        not_before = data.get("nbf")
        if not_before is not None and not _is_timestamp(not_before):
            raise ValueError("invalid 'nbf' (not before): must be a number")

        raw_caps = data.get("att")
        if not isinstance(raw_caps, list):
            raise ValueError("missing or invalid 'att' (capabilities array)")
        capabilities: list[Capability] = []
        for index, raw_cap in enumerate(raw_caps):
            if not isinstance(raw_cap, Mapping):
                raise ValueError(f"capability at index {index} is not an object")
            try:
                capabilities.append(Capability.from_dict(raw_cap))
            except ValueError as exc:
                raise ValueError(f"capability at index {index}: {exc}") from exc

        proofs = data.get("prf", [])
        if not isinstance(proofs, list) or not all(isinstance(p, str) for p in proofs):
            raise ValueError("invalid 'prf' (proofs): must be an array of strings")

        nonce = data.get("nnc")
        if nonce is not None and not isinstance(nonce, str):
            raise ValueError("invalid 'nnc' (nonce): must be a string")

        facts = data.get("fct", [])
        if not isinstance(facts, list) or not all(isinstance(f, Mapping) for f in facts):
            raise ValueError("invalid 'fct' (facts): must be an array of objects")

        return cls(
            issuer=issuer,
            audience=audience,
            expiration=expiration,
            not_before=not_before,
            capabilities=tuple(capabilities),
            proofs=tuple(proofs),
            nonce=nonce,
            facts=tuple(facts),
        )


def _is_timestamp(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Token:
    """A structurally decoded UCAN token.

    Parameters
    ----------
    header:
        Decoded header.
    payload:
        Decoded claims.
    signature:
        Raw signature bytes.
    encoded_header, encoded_payload, encoded_signature:
        The literal base64url segments. ``encoded_header + "." +
        encoded_payload`` is exactly what the issuer signed.
    """

    header: Header
    payload: Payload
    signature: bytes
    encoded_header: str
    encoded_payload: str
    encoded_signature: str

    @property
    def signing_input(self) -> bytes:
        """The exact bytes the issuer's signature covers."""
        return f"{self.encoded_header}.{self.encoded_payload}".encode("ascii")

    @property
    def encoded(self) -> str:
        """The token in compact ``header.payload.signature`` form."""
        return f"{self.encoded_header}.{self.encoded_payload}.{self.encoded_signature}"

    @property
    def algorithm(self) -> Algorithm:
        return self.header.algorithm

    @property
    def issuer(self) -> str:
        return self.payload.issuer

    @property
    def audience(self) -> str:
        return self.payload.audience

    def __str__(self) -> str:
        return self.encoded


__all__ = [
    "Algorithm",
    "DEFAULT_UCAN_VERSION",
    "Header",
    "Payload",
    "TOKEN_TYPE",
    "Token",
]
