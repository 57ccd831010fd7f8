"""End-to-end checks of the public ucan_tokens API as documented in the package docstring."""
from __future__ import annotations

import pytest

NOW = 1_700_000_000
ISSUER = "did:example:issuer-1"
AGENT_1 = "did:example:agent-1"
AGENT_2 = "did:example:agent-2"


def _root_token() -> str:
    from ucan_tokens import Capability, UCANBuilder

    return (
        UCANBuilder()
        .issuer(ISSUER)
        .audience(AGENT_1)
        .expiration(NOW + 3600)
        .add_capability(Capability("storage://x", "read"))
        .build(b"root-signature")
    )


def _second_hop(action: str) -> str:
    from ucan_tokens import Capability, UCANBuilder

    return (
        UCANBuilder()
        .issuer(AGENT_1)
        .audience(AGENT_2)
        .expiration(NOW + 600)
        .add_capability(Capability("storage://x", action))
        .add_proof(_root_token())
        .build(b"leaf-signature")
    )


def test_quickstart_signed_round_trip() -> None:
    from ucan_tokens import (
        Capability,
        CryptographyVerifier,
        DIDKeyResolver,
        KeyPair,
        UCANBuilder,
        ValidationOptions,
        parse_token,
        validate_token,
    )

    alice, bob = KeyPair.generate(), KeyPair.generate()
    encoded = (
        UCANBuilder()
        .issuer(alice.did)
        .audience(bob.did)
        .expires_in(3600)
        .add_capability(Capability("storage://example.com/data", "read"))
        .build_and_sign(alice.sign)
    )
    options = ValidationOptions(
        key_resolver=DIDKeyResolver(),
        signature_verifier=CryptographyVerifier(),
    )
    assert validate_token(parse_token(encoded), options).valid


def test_decode_of_encode_preserves_claims() -> None:
    from ucan_tokens import Capability, Header, Payload, encode, parse_token

    header = Header()
    payload = Payload(
        issuer=ISSUER,
        audience=AGENT_1,
        expiration=NOW,
        not_before=NOW - 60,
        nonce="abc",
        capabilities=(Capability("storage://x", "read", {"max": 3}),),
        facts=({"note": "hello"},),
    )
    token = encode(header, payload, b"\x00\xffsig")
    decoded = parse_token(token.encoded)
    assert decoded.header == header
    assert decoded.payload == payload
    assert decoded.signature == b"\x00\xffsig"


def test_validation_is_idempotent() -> None:
    from ucan_tokens import ValidationOptions, parse_token, validate_token

    token = parse_token(_second_hop("read"))
    options = ValidationOptions(verify_signature=False, now=NOW)
    assert validate_token(token, options) == validate_token(token, options)


def test_attenuation_is_reflexive() -> None:
    from ucan_tokens import Capability, validate_capability_attenuation

    for capability in (
        Capability("storage://x", "read"),
        Capability("storage://x/a/b", "*", {"max": 5}),
        Capability("did:key:z6Mk", "crud/*"),
    ):
        assert validate_capability_attenuation(capability, capability).valid


def test_unlisted_action_is_not_permitted() -> None:
    from ucan_tokens import AttenuationFailure, Capability, validate_capability_attenuation

    parent = Capability("storage://x", "read")
    result = validate_capability_attenuation(Capability("storage://x", "write"), parent)
    assert not result.valid
    assert result.reason is AttenuationFailure.ACTION_NOT_PERMITTED


def test_null_expiration_never_expires() -> None:
    from ucan_tokens import Capability, UCANBuilder, is_token_expired, parse_token

    encoded = (
        UCANBuilder()
        .issuer(ISSUER)
        .audience(AGENT_1)
        .expiration(None)
        .add_capability(Capability("storage://x", "read"))
        .build(b"sig")
    )
    payload = parse_token(encoded).payload
    assert payload.expiration is None
    assert "exp" in payload.to_dict()
    for now in (0, NOW, 2**52):
        assert not is_token_expired(payload, now=now)


def test_future_not_before_is_not_yet_valid() -> None:
    from ucan_tokens import Capability, UCANBuilder, is_token_not_yet_valid, parse_token

    encoded = (
        UCANBuilder()
        .issuer(ISSUER)
        .audience(AGENT_1)
        .not_before(NOW + 100)
        .add_capability(Capability("storage://x", "read"))
        .build(b"sig")
    )
    payload = parse_token(encoded).payload
    assert is_token_not_yet_valid(payload, now=NOW)
    assert not is_token_not_yet_valid(payload, now=NOW + 100)


@pytest.mark.parametrize(
    "encoded",
    ["incomplete.token", "a.b.c.d.e", "eyJhbGciOiJFZERTQSJ9.pay load.c2ln"],
)
def test_malformed_inputs_rejected(encoded: str) -> None:
    from ucan_tokens import MalformedTokenError, ValidationReason, parse_token

    with pytest.raises(MalformedTokenError) as exc_info:
        parse_token(encoded)
    assert exc_info.value.reason is ValidationReason.MALFORMED_TOKEN


def test_two_hop_delegation() -> None:
    from ucan_tokens import ValidationOptions, validate_token

    options = ValidationOptions(verify_signature=False, now=NOW)
    result = validate_token(_second_hop("read"), options)
    assert result.valid
    assert result.chain_depth == 1


def test_two_hop_delegation_escalation_rejected() -> None:
    from ucan_tokens import AttenuationFailure, ValidationOptions, ValidationReason, validate_token

    options = ValidationOptions(verify_signature=False, now=NOW)
    result = validate_token(_second_hop("delete"), options)
    assert not result.valid
    assert result.reason is ValidationReason.ATTENUATION_VIOLATION
    assert result.attenuation is AttenuationFailure.ACTION_NOT_PERMITTED


def test_hundred_capabilities_keep_order() -> None:
    from ucan_tokens import Capability, UCANBuilder, parse_token

    builder = UCANBuilder().issuer(ISSUER).audience(AGENT_1)
    expected = [Capability(f"storage://x/item-{i}", f"action-{i}") for i in range(100)]
    for capability in expected:
        builder.add_capability(capability)
    payload = parse_token(builder.build(b"sig")).payload
    assert len(payload.capabilities) == 100
    assert list(payload.capabilities) == expected
