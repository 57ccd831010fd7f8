"""Attenuation — is a delegated capability within its parent's grant?

A child capability is attenuated-valid against a parent capability when all
three clauses hold, checked in this order:

1. **Resource**: the child's resource is within the parent's resource under
   the scheme's :class:`~ucan_tokens.capabilities.scope.ScopePolicy`.
2. **Action**: the child's action equals the parent's, or the parent grants
   a wildcard covering it (``*`` or ``ns/*``).
3. **Caveats**: every caveat the parent imposes is present on the child and
   implied by the child's value under the key's
   :class:`~ucan_tokens.capabilities.caveats.CaveatRule`. A child may add
   caveats, never drop or loosen one.

All functions here are pure.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ucan_tokens.capabilities.capability import Capability
from ucan_tokens.capabilities.caveats import DEFAULT_CAVEAT_POLICIES, CaveatPolicyRegistry
from ucan_tokens.capabilities.scope import DEFAULT_SCOPE_POLICIES, ScopePolicyRegistry
from ucan_tokens.errors import AttenuationFailure

WILDCARD_ACTION = "*"

# Failure clauses ordered by how far the comparison got before failing.
_CLAUSE_RANK: dict[AttenuationFailure, int] = {
    AttenuationFailure.RESOURCE_OUT_OF_SCOPE: 0,
    AttenuationFailure.ACTION_NOT_PERMITTED: 1,
    AttenuationFailure.CAVEAT_VIOLATION: 2,
}


@dataclass(frozen=True)
class AttenuationResult:
    """Outcome of comparing one child capability with one parent capability.

    Parameters
    ----------
    valid:
        True when the child is within the parent's grant.
    reason:
        The failed clause, or None when valid.
    detail:
        Human-readable explanation of a failure (empty when valid).
    """

    valid: bool
    reason: AttenuationFailure | None = None
    detail: str = ""

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dictionary."""
        return {
            "valid": self.valid,
            "reason": self.reason.value if self.reason else None,
            "detail": self.detail,
        }


# ---------------------------------------------------------------------------
# Clauses
# ---------------------------------------------------------------------------


def action_permits(parent_action: str, child_action: str) -> bool:
    """Return True when *parent_action* covers *child_action*.

    ``*`` covers everything. ``ns/*`` covers ``ns/*`` and any action below
    ``ns/``. Any other parent action covers only itself.
    """
    if parent_action == WILDCARD_ACTION or parent_action == child_action:
        return True
    if parent_action.endswith("/*"):
        prefix = parent_action[:-1]
        return child_action.startswith(prefix) and len(child_action) > len(prefix)
    return False


def caveat_implies(
    key: str,
    child_value: Any,
    parent_value: Any,
    caveat_policies: CaveatPolicyRegistry | None = None,
) -> bool:
    """Return True when the child's value for caveat *key* keeps the parent's restriction.

    Keys without a registered rule require the child to repeat the parent's
    value exactly.
    """
    return (caveat_policies or DEFAULT_CAVEAT_POLICIES).implies(key, child_value, parent_value)


def caveats_satisfied(
    child_caveats: Mapping[str, Any],
    parent_caveats: Mapping[str, Any],
    caveat_policies: CaveatPolicyRegistry | None = None,
) -> str | None:
    """Return None when every parent caveat is implied, else the first offending key."""
    return (caveat_policies or DEFAULT_CAVEAT_POLICIES).first_violation(
        child_caveats, parent_caveats
    )


def _rank(result: AttenuationResult) -> int:
    return _CLAUSE_RANK.get(result.reason, -1) if result.reason else -1


# ---------------------------------------------------------------------------
# Public checks
# ---------------------------------------------------------------------------


def validate_capability_attenuation(
    child: Capability,
    parent: Capability,
    scope_policies: ScopePolicyRegistry | None = None,
    caveat_policies: CaveatPolicyRegistry | None = None,
) -> AttenuationResult:
    """Decide whether *child* is within the scope of *parent*.

    Parameters
    ----------
    child:
        The capability being delegated downstream.
    parent:
        The capability the delegator itself received.
    scope_policies:
        Per-scheme resource containment rules. Defaults to
        :data:`~ucan_tokens.capabilities.scope.DEFAULT_SCOPE_POLICIES`.
    caveat_policies:
        Per-key caveat implication rules. Defaults to
        :data:`~ucan_tokens.capabilities.caveats.DEFAULT_CAVEAT_POLICIES`,
        under which every caveat must be repeated unchanged.

    Returns
    -------
    AttenuationResult
    """
    policies = scope_policies or DEFAULT_SCOPE_POLICIES

    if not policies.contains(parent.resource, child.resource):
        return AttenuationResult(
            valid=False,
            reason=AttenuationFailure.RESOURCE_OUT_OF_SCOPE,
            detail=(
                f"resource {child.resource!r} is not within "
                f"parent resource {parent.resource!r}"
            ),
        )

    if not action_permits(parent.action, child.action):
        return AttenuationResult(
            valid=False,
            reason=AttenuationFailure.ACTION_NOT_PERMITTED,
            detail=(
                f"action {child.action!r} is not permitted by "
                f"parent action {parent.action!r}"
            ),
        )

    offending = caveats_satisfied(child.caveat_map(), parent.caveat_map(), caveat_policies)
    if offending is not None:
        return AttenuationResult(
            valid=False,
            reason=AttenuationFailure.CAVEAT_VIOLATION,
            detail=(
                f"caveat {offending!r} imposed by the parent is missing "
                "or loosened on the child"
            ),
        )

    return AttenuationResult(valid=True)


def find_granting_capability(
    child: Capability,
    parents: Iterable[Capability],
    scope_policies: ScopePolicyRegistry | None = None,
    caveat_policies: CaveatPolicyRegistry | None = None,
) -> tuple[Capability | None, AttenuationResult]:
    """Find the first parent capability that grants *child*.

    The child is granted when it attenuates against *any* parent capability.
    On failure the returned result is the closest miss: the comparison that
    progressed furthest through the clauses, earliest parent first, so
    diagnostics name the most specific clause that failed.

    Returns
    -------
    tuple[Capability | None, AttenuationResult]
        The granting parent (or None) and the deciding result.
    """
    closest: AttenuationResult | None = None
    for parent in parents:
        result = validate_capability_attenuation(
            child, parent, scope_policies, caveat_policies
        )
        if result.valid:
            return parent, result
        if closest is None or _rank(result) > _rank(closest):
            closest = result

    if closest is None:
        closest = AttenuationResult(
            valid=False,
            reason=AttenuationFailure.RESOURCE_OUT_OF_SCOPE,
            detail="parent grants no capabilities",
        )
    return None, closest


__all__ = [
    "AttenuationResult",
    "WILDCARD_ACTION",
    "action_permits",
    "caveat_implies",
    "caveats_satisfied",
    "find_granting_capability",
    "validate_capability_attenuation",
]
