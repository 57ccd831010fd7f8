#!/usr/bin/env python3
"""Example: Delegation Chain

An owner grants a service broad access, the service re-delegates a
narrower slice to a client, and an attempt to escalate is rejected.

Usage:
    python examples/02_delegation_chain.py

Requirements:
    pip install ucan-tokens
"""
from __future__ import annotations

import ucan_tokens
from ucan_tokens import (
    Algorithm,
    Capability,
    CryptographyVerifier,
    DIDKeyResolver,
    KeyPair,
    UCANBuilder,
    ValidationOptions,
    validate_token,
)


def delegate(issuer: KeyPair, audience: str, capability: Capability, proof: str | None = None) -> str:
    builder = (
        UCANBuilder(algorithm=issuer.algorithm)
        .issuer(issuer.did)
        .audience(audience)
        .expires_in(600)
        .add_capability(capability)
    )
    if proof is not None:
        builder.add_proof(proof)
    return builder.build_and_sign(issuer.sign)


def main() -> None:
    print(f"ucan-tokens version: {ucan_tokens.__version__}")

    owner = KeyPair.generate(Algorithm.ES256)
    service = KeyPair.generate()
    client = KeyPair.generate()

    options = ValidationOptions(
        key_resolver=DIDKeyResolver(),
        signature_verifier=CryptographyVerifier(),
    )

    # Step 1: Owner grants the service every action under /data
    root = delegate(owner, service.did, Capability("storage://example.com/data", "*"))

    # Step 2: Service hands the client read access to one subtree
    narrowed = delegate(
        service,
        client.did,
        Capability("storage://example.com/data/reports", "read"),
        proof=root,
    )
    result = validate_token(narrowed, options)
    print(f"Narrowed delegation valid: {result.valid} (chain depth {result.chain_depth})")

    # Step 3: Service tries to hand out a resource it was never given
    escalated = delegate(
        service,
        client.did,
        Capability("storage://example.com/billing", "read"),
        proof=root,
    )
    result = validate_token(escalated, options)
    print(f"Escalated delegation valid: {result.valid}")
    print(f"  reason: {result.reason.value if result.reason else None}")
    print(f"  clause: {result.attenuation.value if result.attenuation else None}")
    print(f"  detail: {result.detail}")

    print("\nDelegation example complete.")


if __name__ == "__main__":
    main()
