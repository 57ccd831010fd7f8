#!/usr/bin/env python3
"""Example: Quickstart

Issues a signed UCAN for a did:key audience, then decodes and validates it
with the bundled did:key resolver and cryptography-backed verifier.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install ucan-tokens
"""
from __future__ import annotations

import ucan_tokens
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


def main() -> None:
    print(f"ucan-tokens version: {ucan_tokens.__version__}")

    # Step 1: Generate issuer and audience keys
    alice = KeyPair.generate()
    bob = KeyPair.generate()
    print(f"Issuer:   {alice.did}")
    print(f"Audience: {bob.did}")

    # Step 2: Build and sign a token
    encoded = (
        UCANBuilder()
        .issuer(alice.did)
        .audience(bob.did)
        .expires_in(3600)
        .add_capability(Capability("storage://example.com/photos", "crud/read", {"maxSize": 1024}))
        .build_and_sign(alice.sign)
    )
    print(f"Token: {encoded[:60]}...")

    # Step 3: Decode without trusting it
    token = parse_token(encoded)
    for capability in token.payload.capabilities:
        print(f"  grants {capability.action} on {capability.resource}")

    # Step 4: Validate claims and signature
    options = ValidationOptions(
        key_resolver=DIDKeyResolver(),
        signature_verifier=CryptographyVerifier(),
    )
    result = validate_token(token, options)
    print(f"Valid: {result.valid}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
