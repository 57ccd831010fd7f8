"""Caveat implication rules.

Caveats are opaque to the token format: nothing in ``{"limit": 10}`` says
whether 10 is a ceiling, a floor, or an exact value. How a child caveat
value may narrow a parent's is therefore a pluggable rule looked up per
caveat key in a :class:`CaveatPolicyRegistry`.

Keys without a registration use :class:`ExactCaveatRule`: the child must
carry the parent's value unchanged. A child can then never loosen a caveat
whose direction nobody declared.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def strict_equal(left: Any, right: Any) -> bool:
    """JSON-value equality that keeps booleans and numbers apart.

    Python treats ``True == 1`` and ``0 == False``; caveat values do not.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(
            strict_equal(left[key], right[key]) for key in left
        )
    if _is_list(left) and _is_list(right):
        return len(left) == len(right) and all(
            strict_equal(a, b) for a, b in zip(left, right)
        )
    return type(left) is type(right) and left == right


def _contains(items: Sequence[Any], value: Any) -> bool:
    return any(strict_equal(item, value) for item in items)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class CaveatRule(ABC):
    """Decides whether a child caveat value is at least as strict as the parent's."""

    @abstractmethod
    def implies(self, child_value: Any, parent_value: Any) -> bool:
        """Return True when *child_value* does not loosen *parent_value*."""


class ExactCaveatRule(CaveatRule):
    """The child must repeat the parent's value. The default for every key."""

    def implies(self, child_value: Any, parent_value: Any) -> bool:
        return strict_equal(child_value, parent_value)


class CeilingCaveatRule(CaveatRule):
    """Numeric upper bound: the child may lower it, never raise it."""

    def implies(self, child_value: Any, parent_value: Any) -> bool:
        return _is_number(child_value) and _is_number(parent_value) and child_value <= parent_value


class FloorCaveatRule(CaveatRule):
    """Numeric lower bound: the child may raise it, never lower it."""

    def implies(self, child_value: Any, parent_value: Any) -> bool:
        return _is_number(child_value) and _is_number(parent_value) and child_value >= parent_value


class AllowedValuesCaveatRule(CaveatRule):
    """A list of permitted values: the child's list must be a subset."""

    def implies(self, child_value: Any, parent_value: Any) -> bool:
        if not (_is_list(child_value) and _is_list(parent_value)):
            return False
        return all(_contains(parent_value, item) for item in child_value)


class RequiredValuesCaveatRule(CaveatRule):
    """A list of mandatory values: the child's list must be a superset."""

    def implies(self, child_value: Any, parent_value: Any) -> bool:
        if not (_is_list(child_value) and _is_list(parent_value)):
            return False
        return all(_contains(child_value, item) for item in parent_value)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class CaveatRuleAlreadyRegisteredError(ValueError):
    """Raised when a caveat key already has a rule registered."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"A caveat rule for key {key!r} is already registered.")


class CaveatPolicyRegistry:
    """Maps caveat keys to :class:`CaveatRule` instances.

    Example
    -------
    ::

        caveats = CaveatPolicyRegistry()
        caveats.register("maxSize", CeilingCaveatRule())
        caveats.register("minConfirmations", FloorCaveatRule())
        caveats.first_violation({"maxSize": 10}, {"maxSize": 100})  # None
    """

    def __init__(self, default: CaveatRule | None = None) -> None:
        self._rules: dict[str, CaveatRule] = {}
        self._default = default or ExactCaveatRule()
        self._lock = threading.Lock()

    def register(self, key: str, rule: CaveatRule, replace: bool = False) -> None:
        """Register *rule* for caveat *key*.

        Raises
        ------
        CaveatRuleAlreadyRegisteredError
            If the key is taken and ``replace`` is False.
        TypeError
            If *rule* is not a :class:`CaveatRule`.
        """
        if not isinstance(rule, CaveatRule):
            raise TypeError(f"{rule!r} is not a CaveatRule subclass instance.")
        with self._lock:
            if key in self._rules and not replace:
                raise CaveatRuleAlreadyRegisteredError(key)
            self._rules[key] = rule

    def rule_for(self, key: str) -> CaveatRule:
        """Return the rule governing caveat *key*."""
        with self._lock:
            return self._rules.get(key, self._default)

    def implies(self, key: str, child_value: Any, parent_value: Any) -> bool:
        return self.rule_for(key).implies(child_value, parent_value)

    def first_violation(
        self,
        child_caveats: Mapping[str, Any],
        parent_caveats: Mapping[str, Any],
    ) -> str | None:
        """Return None when every parent caveat is kept, else the first offending key.

        A child may add caveats of its own. A parent caveat missing from the
        child is a violation.
        """
        for key, parent_value in parent_caveats.items():
            if key not in child_caveats:
                return key
            if not self.implies(key, child_caveats[key], parent_value):
                return key
        return None

    def keys(self) -> list[str]:
        """Return the sorted list of explicitly registered caveat keys."""
        with self._lock:
            return sorted(self._rules)


DEFAULT_CAVEAT_POLICIES = CaveatPolicyRegistry()

__all__ = [
    "AllowedValuesCaveatRule",
    "CaveatPolicyRegistry",
    "CaveatRule",
    "CaveatRuleAlreadyRegisteredError",
    "CeilingCaveatRule",
    "DEFAULT_CAVEAT_POLICIES",
    "ExactCaveatRule",
    "FloorCaveatRule",
    "RequiredValuesCaveatRule",
    "strict_equal",
]
