"""Tests for ucan_tokens.capabilities.scope — resource containment policies."""
from __future__ import annotations

import threading

import pytest

from ucan_tokens.capabilities.scope import (
    DEFAULT_SCOPE_POLICIES,
    ExactScopePolicy,
    HierarchicalScopePolicy,
    ScopePolicy,
    ScopePolicyAlreadyRegisteredError,
    ScopePolicyRegistry,
)


class PrefixPolicy(ScopePolicy):
    """Plain string-prefix containment, for registry tests."""

    def contains(self, parent: str, child: str) -> bool:
        return child.startswith(parent)


# ---------------------------------------------------------------------------
# HierarchicalScopePolicy
# ---------------------------------------------------------------------------


class TestHierarchicalScopePolicy:
    @pytest.fixture()
    def policy(self) -> HierarchicalScopePolicy:
        return HierarchicalScopePolicy()

    @pytest.mark.parametrize(
        "parent, child",
        [
            ("storage://example.com/data", "storage://example.com/data"),
            ("storage://example.com/data", "storage://example.com/data/1"),
            ("storage://example.com/data/", "storage://example.com/data/1/2"),
            ("storage://example.com/data/*", "storage://example.com/data/1"),
            ("storage://example.com", "storage://example.com/anything"),
            ("storage://example.com/", "storage://example.com/anything"),
            ("STORAGE://Example.COM/data", "storage://example.com/data/1"),
            ("storage://example.com/a?v=1", "storage://example.com/a/b?v=1"),
        ],
    )
    def test_contains(self, policy: HierarchicalScopePolicy, parent: str, child: str) -> None:
        assert policy.contains(parent, child)

    @pytest.mark.parametrize(
        "parent, child",
        [
            ("storage://example.com/data", "storage://example.com/database"),
            ("storage://example.com/data/1", "storage://example.com/data"),
            ("storage://example.com/data", "storage://other.com/data"),
            ("storage://example.com/data", "https://example.com/data"),
            ("storage://example.com/data", "storage://example.com/data/../secret"),
            ("storage://example.com/data", "storage://example.com/data/%2e%2e/secret"),
            ("storage://example.com/data", "storage://example.com/data/./1"),
            ("storage://example.com/a?v=1", "storage://example.com/a?v=2"),
            ("storage://example.com/a#f", "storage://example.com/a#g"),
        ],
    )
    def test_does_not_contain(
        self, policy: HierarchicalScopePolicy, parent: str, child: str
    ) -> None:
        assert not policy.contains(parent, child)


class TestExactScopePolicy:
    def test_equality_only(self) -> None:
        policy = ExactScopePolicy()
        assert policy.contains("did:pkh:eip155:1:0xabc", "did:pkh:eip155:1:0xabc")
        assert not policy.contains("did:pkh:eip155:1:0xabc", "did:pkh:eip155:1:0xabcd")


# ---------------------------------------------------------------------------
# ScopePolicyRegistry
# ---------------------------------------------------------------------------


class TestScopePolicyRegistry:
    def test_defaults_by_resource_shape(self) -> None:
        registry = ScopePolicyRegistry()
        assert isinstance(registry.policy_for("storage://x/y"), HierarchicalScopePolicy)
        assert isinstance(registry.policy_for("did:key:z6Mk"), ExactScopePolicy)
        assert isinstance(registry.policy_for("no-scheme"), ExactScopePolicy)

    def test_register_and_lookup_is_case_insensitive(self) -> None:
        registry = ScopePolicyRegistry()
        policy = PrefixPolicy()
        registry.register("MailTo", policy)
        assert registry.policy_for("mailto:alice@example.com") is policy
        assert registry.schemes() == ["mailto"]

    def test_duplicate_registration(self) -> None:
        registry = ScopePolicyRegistry()
        registry.register("did", PrefixPolicy())
        with pytest.raises(ScopePolicyAlreadyRegisteredError) as exc_info:
            registry.register("did", ExactScopePolicy())
        assert isinstance(exc_info.value, ValueError)
        assert exc_info.value.scheme == "did"

    def test_replace(self) -> None:
        registry = ScopePolicyRegistry()
        registry.register("did", PrefixPolicy())
        replacement = ExactScopePolicy()
        registry.register("did", replacement, replace=True)
        assert registry.policy_for("did:key:z") is replacement

    def test_register_rejects_non_policy(self) -> None:
        with pytest.raises(TypeError):
            ScopePolicyRegistry().register("x", object())  # type: ignore[arg-type]

    def test_registered_policy_is_used(self) -> None:
        registry = ScopePolicyRegistry()
        assert not registry.contains("did:pkh:eip155", "did:pkh:eip155:1:0xabc")
        registry.register("did", PrefixPolicy())
        assert registry.contains("did:pkh:eip155", "did:pkh:eip155:1:0xabc")

    def test_cross_scheme_never_matches(self) -> None:
        registry = ScopePolicyRegistry(hierarchical_default=PrefixPolicy())
        registry.register("mailto", PrefixPolicy())
        assert not registry.contains("mailto:", "storage://mailto:")
        assert not registry.contains("storage://x", "https://x")

    def test_default_registry_is_shared_instance(self) -> None:
        assert isinstance(DEFAULT_SCOPE_POLICIES, ScopePolicyRegistry)
        assert DEFAULT_SCOPE_POLICIES.contains("storage://x/data", "storage://x/data/1")

    def test_concurrent_registration(self) -> None:
        registry = ScopePolicyRegistry()
        errors: list[Exception] = []

        def register(index: int) -> None:
            try:
                registry.register(f"scheme{index}", ExactScopePolicy())
            except Exception as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=register, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert not errors
        assert len(registry.schemes()) == 20
