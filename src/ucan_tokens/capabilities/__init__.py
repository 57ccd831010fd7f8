"""Capability model, resource-scope policies, caveat rules, and attenuation checks."""
from __future__ import annotations

from ucan_tokens.capabilities.attenuation import (
    AttenuationResult,
    action_permits,
    caveat_implies,
    find_granting_capability,
    validate_capability_attenuation,
)
from ucan_tokens.capabilities.capability import Capability, find_capability_problems
from ucan_tokens.capabilities.caveats import (
    DEFAULT_CAVEAT_POLICIES,
    AllowedValuesCaveatRule,
    CaveatPolicyRegistry,
    CaveatRule,
    CaveatRuleAlreadyRegisteredError,
    CeilingCaveatRule,
    ExactCaveatRule,
    FloorCaveatRule,
    RequiredValuesCaveatRule,
)
from ucan_tokens.capabilities.scope import (
    DEFAULT_SCOPE_POLICIES,
    ExactScopePolicy,
    HierarchicalScopePolicy,
    ScopePolicy,
    ScopePolicyAlreadyRegisteredError,
    ScopePolicyRegistry,
)

__all__ = [
    "AllowedValuesCaveatRule",
    "AttenuationResult",
    "Capability",
    "CaveatPolicyRegistry",
    "CaveatRule",
    "CaveatRuleAlreadyRegisteredError",
    "CeilingCaveatRule",
    "DEFAULT_CAVEAT_POLICIES",
    "DEFAULT_SCOPE_POLICIES",
    "ExactCaveatRule",
    "ExactScopePolicy",
    "FloorCaveatRule",
    "HierarchicalScopePolicy",
    "RequiredValuesCaveatRule",
    "ScopePolicy",
    "ScopePolicyAlreadyRegisteredError",
    "ScopePolicyRegistry",
    "action_permits",
    "caveat_implies",
    "find_capability_problems",
    "find_granting_capability",
    "validate_capability_attenuation",
]
