"""Tests for ucan_tokens.crypto — KeyPair and CryptographyVerifier."""
from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from ucan_tokens.capabilities.capability import Capability
from ucan_tokens.crypto.keys import KeyPair
from ucan_tokens.crypto.verifier import (
    CryptographyVerifier,
    verify_eddsa,
    verify_es256,
    verify_rs256,
)
from ucan_tokens.did.did_key import DIDKeyResolver
from ucan_tokens.errors import ValidationReason
from ucan_tokens.token.builder import UCANBuilder
from ucan_tokens.token.codec import parse_token
from ucan_tokens.token.types import Algorithm
from ucan_tokens.validation.options import ValidationOptions
from ucan_tokens.validation.validator import validate_token

MESSAGE = b"header.payload"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def keys() -> dict[Algorithm, KeyPair]:
    return {algorithm: KeyPair.generate(algorithm) for algorithm in Algorithm}


@pytest.fixture()
def options() -> ValidationOptions:
    return ValidationOptions(
        key_resolver=DIDKeyResolver(),
        signature_verifier=CryptographyVerifier(),
    )


def signed_token(issuer: KeyPair, audience: str = "did:example:bob") -> str:
    return (
        UCANBuilder(algorithm=issuer.algorithm)
        .issuer(issuer.did)
        .audience(audience)
        .add_capability(Capability("storage://example.com/data", "read"))
        .build_and_sign(issuer.sign)
    )


# ---------------------------------------------------------------------------
# KeyPair
# ---------------------------------------------------------------------------


class TestKeyPair:
    def test_default_is_eddsa(self) -> None:
        assert KeyPair.generate().algorithm is Algorithm.EDDSA

    def test_did_is_stable(self, keys: dict[Algorithm, KeyPair]) -> None:
        pair = keys[Algorithm.EDDSA]
        assert pair.did == pair.did
        assert pair.did.startswith("did:key:z")

    def test_es256_signature_is_raw_r_s(self, keys: dict[Algorithm, KeyPair]) -> None:
        assert len(keys[Algorithm.ES256].sign(MESSAGE)) == 64

    def test_eddsa_signature_length(self, keys: dict[Algorithm, KeyPair]) -> None:
        assert len(keys[Algorithm.EDDSA].sign(MESSAGE)) == 64

    def test_rs256_signature_length(self, keys: dict[Algorithm, KeyPair]) -> None:
        assert len(keys[Algorithm.RS256].sign(MESSAGE)) == 256

    def test_key_type_must_match_algorithm(self) -> None:
        with pytest.raises(TypeError):
            KeyPair(Algorithm.ES256, ed25519.Ed25519PrivateKey.generate())
        with pytest.raises(TypeError):
            KeyPair(Algorithm.ES256, ec.generate_private_key(ec.SECP384R1()))

    def test_repr_has_no_private_material(self, keys: dict[Algorithm, KeyPair]) -> None:
        text = repr(keys[Algorithm.EDDSA])
        assert "EdDSA" in text
        assert keys[Algorithm.EDDSA].did in text


# ---------------------------------------------------------------------------
# Verification functions
# ---------------------------------------------------------------------------


class TestVerifyFunctions:
    @pytest.mark.parametrize(
        "algorithm, verify",
        [
            (Algorithm.EDDSA, verify_eddsa),
            (Algorithm.ES256, verify_es256),
            (Algorithm.RS256, verify_rs256),
        ],
    )
    def test_accepts_valid_and_rejects_tampered(
        self, keys: dict[Algorithm, KeyPair], algorithm: Algorithm, verify: object
    ) -> None:
        pair = keys[algorithm]
        signature = pair.sign(MESSAGE)
        assert verify(MESSAGE, signature, pair.public_key)  # type: ignore[operator]
        assert not verify(MESSAGE + b"x", signature, pair.public_key)  # type: ignore[operator]

    def test_wrong_key_type_fails_closed(self, keys: dict[Algorithm, KeyPair]) -> None:
        eddsa = keys[Algorithm.EDDSA]
        signature = eddsa.sign(MESSAGE)
        assert not verify_es256(MESSAGE, signature, eddsa.public_key)
        assert not verify_rs256(MESSAGE, signature, eddsa.public_key)
        assert not verify_eddsa(MESSAGE, signature, keys[Algorithm.ES256].public_key)

    def test_es256_rejects_wrong_length(self, keys: dict[Algorithm, KeyPair]) -> None:
        pair = keys[Algorithm.ES256]
        assert not verify_es256(MESSAGE, pair.sign(MESSAGE)[:63], pair.public_key)

    def test_verifier_dispatch(self, keys: dict[Algorithm, KeyPair]) -> None:
        verifier = CryptographyVerifier()
        for algorithm, pair in keys.items():
            assert verifier.verify(algorithm, MESSAGE, pair.sign(MESSAGE), pair.public_key)


# ---------------------------------------------------------------------------
# End to end with real keys
# ---------------------------------------------------------------------------


class TestSignedTokens:
    @pytest.mark.parametrize("algorithm", list(Algorithm))
    def test_signed_token_validates(
        self,
        keys: dict[Algorithm, KeyPair],
        options: ValidationOptions,
        algorithm: Algorithm,
    ) -> None:
        result = validate_token(signed_token(keys[algorithm]), options)
        assert result.valid, result.detail

    def test_tampered_payload_fails(
        self, keys: dict[Algorithm, KeyPair], options: ValidationOptions
    ) -> None:
        encoded = signed_token(keys[Algorithm.EDDSA])
        forged_payload = parse_token(
            signed_token(keys[Algorithm.EDDSA], audience="did:example:mallory")
        ).encoded_payload
        header, _, signature = encoded.split(".")
        result = validate_token(f"{header}.{forged_payload}.{signature}", options)
        assert result.reason is ValidationReason.SIGNATURE_INVALID

    def test_issuer_must_hold_the_key(
        self, keys: dict[Algorithm, KeyPair], options: ValidationOptions
    ) -> None:
        alice, mallory = keys[Algorithm.EDDSA], KeyPair.generate()
        encoded = (
            UCANBuilder()
            .issuer(alice.did)
            .audience("did:example:bob")
            .add_capability(Capability("storage://example.com/data", "read"))
            .build_and_sign(mallory.sign)
        )
        assert validate_token(encoded, options).reason is ValidationReason.SIGNATURE_INVALID

    def test_algorithm_swap_rejected(
        self, keys: dict[Algorithm, KeyPair], options: ValidationOptions
    ) -> None:
        eddsa = keys[Algorithm.EDDSA]
        encoded = (
            UCANBuilder(algorithm=Algorithm.ES256)
            .issuer(eddsa.did)
            .audience("did:example:bob")
            .add_capability(Capability("storage://example.com/data", "read"))
            .build_and_sign(eddsa.sign)
        )
        result = validate_token(encoded, options)
        assert result.reason is ValidationReason.SIGNATURE_INVALID
        assert "EdDSA" in result.detail

    def test_signed_delegation_chain(
        self, keys: dict[Algorithm, KeyPair], options: ValidationOptions
    ) -> None:
        owner, service = keys[Algorithm.ES256], keys[Algorithm.EDDSA]
        client = keys[Algorithm.RS256]
        root = signed_token(owner, audience=service.did)
        leaf = (
            UCANBuilder(algorithm=service.algorithm)
            .issuer(service.did)
            .audience(client.did)
            .add_capability(Capability("storage://example.com/data/reports", "read"))
            .add_proof(root)
            .build_and_sign(service.sign)
        )
        result = validate_token(leaf, options)
        assert result.valid, result.detail
        assert result.chain_depth == 1
