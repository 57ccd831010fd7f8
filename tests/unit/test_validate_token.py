"""Tests for ucan_tokens.validation.validator — top-level validate_token."""
from __future__ import annotations

import base64
import json
from typing import Any

import pytest

from ucan_tokens.capabilities.capability import Capability
from ucan_tokens.errors import (
    AttenuationViolationError,
    MalformedTokenError,
    ValidationReason,
)
from ucan_tokens.token.builder import UCANBuilder
from ucan_tokens.token.codec import encode, parse_token
from ucan_tokens.token.types import Algorithm, Header, Payload, Token
from ucan_tokens.validation.options import ValidationOptions
from ucan_tokens.validation.validator import (
    validate_algorithm,
    validate_capabilities,
    validate_did,
    validate_signature,
    validate_token,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

NOW = 1_700_000_000
ALICE = "did:example:alice"
BOB = "did:example:bob"
CAROL = "did:example:carol"
READ = Capability("storage://x", "read")


def make_encoded(
    issuer: str = ALICE,
    audience: str = BOB,
    capabilities: list[Capability] | None = None,
    proofs: tuple[str, ...] = (),
    expiration: int | None = NOW + 3600,
    not_before: int | None = None,
    signature: bytes = b"good",
) -> str:
    builder = UCANBuilder().issuer(issuer).audience(audience).expiration(expiration)
    if not_before is not None:
        builder.not_before(not_before)
    for capability in capabilities or [READ]:
        builder.add_capability(capability)
    for proof in proofs:
        builder.add_proof(proof)
    return builder.build(signature)


def make_raw_token(payload: dict[str, Any]) -> str:
    def segment(obj: object) -> str:
        raw = json.dumps(obj).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    return f"{segment({'alg': 'EdDSA', 'typ': 'JWT'})}.{segment(payload)}.Z29vZA"


class CountingVerifier:
    def __init__(self) -> None:
        self.calls = 0

    def verify(self, algorithm: Algorithm, signed: bytes, signature: bytes, key: Any) -> bool:
        self.calls += 1
        return signature == b"good"


def resolve(identifier: str, algorithm: Algorithm) -> Any:
    return identifier


@pytest.fixture()
def unverified() -> ValidationOptions:
    return ValidationOptions(verify_signature=False, now=NOW)


@pytest.fixture()
def verifier() -> CountingVerifier:
    return CountingVerifier()


@pytest.fixture()
def verified(verifier: CountingVerifier) -> ValidationOptions:
    return ValidationOptions(now=NOW, key_resolver=resolve, signature_verifier=verifier)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


class TestIndividualChecks:
    def test_validate_did(self) -> None:
        assert validate_did(ALICE).valid
        assert validate_did("alice").reason is ValidationReason.INVALID_ISSUER
        assert validate_did("bob", "audience").reason is ValidationReason.INVALID_AUDIENCE

    def test_validate_did_rejects_unknown_field(self) -> None:
        with pytest.raises(ValueError):
            validate_did(ALICE, "subject")

    def test_validate_capabilities(self) -> None:
        assert validate_capabilities([READ]).valid
        result = validate_capabilities([])
        assert result.reason is ValidationReason.INVALID_CAPABILITY
        assert result.details["problems"] == ["token must grant at least one capability"]

    def test_validate_algorithm(self) -> None:
        token = parse_token(make_encoded())
        assert validate_algorithm(token).valid

    def test_validate_algorithm_rejects_non_member(self) -> None:
        token = parse_token(make_encoded())
        forged = Token(
            header=Header(algorithm="none"),  # type: ignore[arg-type]
            payload=token.payload,
            signature=token.signature,
            encoded_header=token.encoded_header,
            encoded_payload=token.encoded_payload,
            encoded_signature=token.encoded_signature,
        )
        assert validate_algorithm(forged).reason is ValidationReason.UNSUPPORTED_ALGORITHM

    def test_validate_signature(self, verified: ValidationOptions) -> None:
        assert validate_signature(parse_token(make_encoded()), verified).valid
        forged = parse_token(make_encoded(signature=b"forged"))
        assert validate_signature(forged, verified).reason is ValidationReason.SIGNATURE_INVALID

    def test_validate_signature_needs_collaborators(self, unverified: ValidationOptions) -> None:
        with pytest.raises(ValueError):
            validate_signature(parse_token(make_encoded()), unverified)


# ---------------------------------------------------------------------------
# validate_token
# ---------------------------------------------------------------------------


class TestValidateToken:
    def test_valid_root_token(self, verified: ValidationOptions) -> None:
        result = validate_token(parse_token(make_encoded()), verified)
        assert result.valid
        assert result.chain_depth == 0

    def test_accepts_encoded_string(self, unverified: ValidationOptions) -> None:
        assert validate_token(make_encoded(), unverified).valid

    def test_malformed_string_raises(self, unverified: ValidationOptions) -> None:
        with pytest.raises(MalformedTokenError):
            validate_token("incomplete.token", unverified)

    def test_wrong_token_type(self, unverified: ValidationOptions) -> None:
        with pytest.raises(TypeError):
            validate_token(42, unverified)  # type: ignore[arg-type]

    def test_wrong_options_type(self) -> None:
        with pytest.raises(TypeError):
            validate_token(make_encoded(), {"verify_signature": False})  # type: ignore[arg-type]

    def test_idempotent(self, verified: ValidationOptions) -> None:
        token = parse_token(make_encoded(expiration=NOW - 1))
        assert validate_token(token, verified) == validate_token(token, verified)

    def test_expired(self, verified: ValidationOptions, verifier: CountingVerifier) -> None:
        result = validate_token(make_encoded(expiration=NOW - 1), verified)
        assert result.reason is ValidationReason.TOKEN_EXPIRED
        assert verifier.calls == 0

    def test_not_yet_valid(self, verified: ValidationOptions) -> None:
        result = validate_token(make_encoded(not_before=NOW + 60), verified)
        assert result.reason is ValidationReason.TOKEN_NOT_YET_VALID

    def test_never_expires(self, unverified: ValidationOptions) -> None:
        far_future = ValidationOptions(verify_signature=False, now=2**50)
        assert validate_token(make_encoded(expiration=None), far_future).valid

    def test_inverted_window(self, unverified: ValidationOptions) -> None:
        result = validate_token(make_encoded(expiration=NOW + 10, not_before=NOW + 20), unverified)
        assert result.reason is ValidationReason.INVALID_TIME_WINDOW

    def test_bad_signature(self, verified: ValidationOptions) -> None:
        result = validate_token(make_encoded(signature=b"forged"), verified)
        assert result.reason is ValidationReason.SIGNATURE_INVALID

    def test_signature_skipped_when_opted_out(self, unverified: ValidationOptions) -> None:
        assert validate_token(make_encoded(signature=b"forged"), unverified).valid

    def test_empty_capabilities(self, unverified: ValidationOptions) -> None:
        encoded = make_raw_token({"iss": ALICE, "aud": BOB, "exp": None, "att": []})
        result = validate_token(encoded, unverified)
        assert result.reason is ValidationReason.INVALID_CAPABILITY

    def test_invalid_issuer(self, unverified: ValidationOptions) -> None:
        encoded = make_raw_token({"iss": "alice", "aud": BOB, "exp": None, "att": [READ.to_dict()]})
        assert validate_token(encoded, unverified).reason is ValidationReason.INVALID_ISSUER

    def test_issuer_with_markup_characters(self, unverified: ValidationOptions) -> None:
        encoded = make_raw_token(
            {"iss": "did:example:[/bold]", "aud": BOB, "exp": None, "att": [READ.to_dict()]}
        )
        assert validate_token(encoded, unverified).reason is ValidationReason.INVALID_ISSUER

    def test_issuer_below_minimum_length(self, unverified: ValidationOptions) -> None:
        encoded = make_raw_token({"iss": "did:a:bc", "aud": BOB, "exp": None, "att": [READ.to_dict()]})
        assert validate_token(encoded, unverified).reason is ValidationReason.INVALID_ISSUER

    def test_invalid_audience(self, unverified: ValidationOptions) -> None:
        encoded = make_raw_token({"iss": ALICE, "aud": "", "exp": None, "att": [READ.to_dict()]})
        assert validate_token(encoded, unverified).reason is ValidationReason.INVALID_AUDIENCE

    def test_structural_checks_before_time(self, unverified: ValidationOptions) -> None:
        encoded = make_raw_token({"iss": "alice", "aud": BOB, "exp": 1, "att": [READ.to_dict()]})
        assert validate_token(encoded, unverified).reason is ValidationReason.INVALID_ISSUER

    def test_delegation(self, verified: ValidationOptions, verifier: CountingVerifier) -> None:
        root = make_encoded(ALICE, BOB)
        leaf = make_encoded(BOB, CAROL, proofs=(root,))
        result = validate_token(leaf, verified)
        assert result.valid
        assert result.chain_depth == 1
        assert verifier.calls == 2

    def test_attenuation_violation(self, unverified: ValidationOptions) -> None:
        root = make_encoded(ALICE, BOB, [READ])
        leaf = make_encoded(BOB, CAROL, [Capability("storage://x", "delete")], proofs=(root,))
        result = validate_token(leaf, unverified)
        assert result.reason is ValidationReason.ATTENUATION_VIOLATION
        with pytest.raises(AttenuationViolationError):
            result.raise_for_failure()

    def test_malformed_proof_is_a_result(self, unverified: ValidationOptions) -> None:
        leaf = make_encoded(BOB, CAROL, proofs=("a.b",))
        assert validate_token(leaf, unverified).reason is ValidationReason.MALFORMED_PROOF

    def test_proof_chain_can_be_skipped(self) -> None:
        options = ValidationOptions(verify_signature=False, now=NOW, validate_proof_chain=False)
        leaf = make_encoded(BOB, CAROL, proofs=("a.b",))
        result = validate_token(leaf, options)
        assert result.valid
        assert result.chain_depth == 0

    def test_one_clock_reading_per_pass(self) -> None:
        readings: list[int] = []

        def clock() -> float:
            readings.append(1)
            return float(NOW)

        options = ValidationOptions(verify_signature=False, clock=clock)
        root = make_encoded(ALICE, BOB)
        validate_token(make_encoded(BOB, CAROL, proofs=(root,)), options)
        assert len(readings) == 1

    def test_works_with_directly_encoded_token(self, unverified: ValidationOptions) -> None:
        payload = Payload(issuer=ALICE, audience=BOB, capabilities=(READ,))
        token = encode(Header(), payload, b"sig")
        assert validate_token(token, unverified).valid
