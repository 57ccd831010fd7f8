"""Resource-scope containment policies.

Whether one resource lies within another depends on the URI scheme. A
``storage://host/path`` resource is hierarchical; a ``did:pkh:...`` resource
is not. Containment is therefore a pluggable policy looked up per scheme in
a :class:`ScopePolicyRegistry`.

Cross-scheme resources never match, whatever policy is registered.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from urllib.parse import unquote, urlsplit


class ScopePolicy(ABC):
    """Decides whether a child resource is within a parent resource."""

    @abstractmethod
    def contains(self, parent: str, child: str) -> bool:
        """Return True when *child* is equal to or narrower than *parent*."""


class ExactScopePolicy(ScopePolicy):
    """Equality only. Used for non-hierarchical schemes such as ``did:``."""

    def contains(self, parent: str, child: str) -> bool:
        return parent == child


class HierarchicalScopePolicy(ScopePolicy):
    """Path-prefix containment for ``scheme://authority/path`` resources.

    - scheme and authority must match (case-insensitively);
    - the child path must equal the parent path or sit below it on a ``/``
      boundary (``/data`` contains ``/data/1`` but not ``/database``);
    - a parent path ending in ``/*`` contains everything below its prefix;
    - a parent query string must be matched exactly;
    - child paths containing ``.`` or ``..`` segments (after percent-decoding)
      only match an identical parent.
    """

    def contains(self, parent: str, child: str) -> bool:
        if parent == child:
            return True

        parent_parts = urlsplit(parent)
        child_parts = urlsplit(child)

        if parent_parts.scheme.lower() != child_parts.scheme.lower():
            return False
        if parent_parts.netloc.lower() != child_parts.netloc.lower():
            return False
        if parent_parts.fragment and parent_parts.fragment != child_parts.fragment:
            return False
        if parent_parts.query and parent_parts.query != child_parts.query:
            return False

        child_path = unquote(child_parts.path)
        if _has_dot_segment(child_path):
            return False

        parent_path = unquote(parent_parts.path)
        if parent_path.endswith("/*"):
            parent_path = parent_path[:-2]
        parent_path = parent_path.rstrip("/")

        if not parent_path:
            return True
        return child_path == parent_path or child_path.startswith(parent_path + "/")


def _has_dot_segment(path: str) -> bool:
    return any(segment in (".", "..") for segment in path.split("/"))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ScopePolicyAlreadyRegisteredError(ValueError):
    """Raised when a scheme already has a policy registered."""

    def __init__(self, scheme: str) -> None:
        self.scheme = scheme
        super().__init__(f"A scope policy for scheme {scheme!r} is already registered.")


class ScopePolicyRegistry:
    """Maps URI schemes to :class:`ScopePolicy` instances.

    Schemes without an explicit registration fall back to
    :class:`HierarchicalScopePolicy` when the resource has an authority
    component (``scheme://...``) and to :class:`ExactScopePolicy` otherwise.

    Example
    -------
    ::

        registry = ScopePolicyRegistry()
        registry.register("did", ExactScopePolicy())
        registry.contains("storage://x/data", "storage://x/data/1")  # True
    """

    def __init__(
        self,
        hierarchical_default: ScopePolicy | None = None,
        opaque_default: ScopePolicy | None = None,
    ) -> None:
        self._policies: dict[str, ScopePolicy] = {}
        self._hierarchical_default = hierarchical_default or HierarchicalScopePolicy()
        self._opaque_default = opaque_default or ExactScopePolicy()
        self._lock = threading.Lock()

    def register(self, scheme: str, policy: ScopePolicy, replace: bool = False) -> None:
        """Register *policy* for *scheme*.

        Raises
        ------
        ScopePolicyAlreadyRegisteredError
            If the scheme is taken and ``replace`` is False.
        TypeError
            If *policy* is not a :class:`ScopePolicy`.
        """
        if not isinstance(policy, ScopePolicy):
            raise TypeError(f"{policy!r} is not a ScopePolicy subclass instance.")
        key = scheme.lower()
        with self._lock:
            if key in self._policies and not replace:
                raise ScopePolicyAlreadyRegisteredError(key)
            self._policies[key] = policy

    def policy_for(self, resource: str) -> ScopePolicy:
        """Return the policy governing *resource*."""
        scheme, sep, rest = resource.partition(":")
        with self._lock:
            registered = self._policies.get(scheme.lower()) if sep else None
        if registered is not None:
            return registered
        if sep and rest.startswith("//"):
            return self._hierarchical_default
        return self._opaque_default

    def contains(self, parent: str, child: str) -> bool:
        """Return True when *child* is within *parent* under the parent's policy."""
        parent_scheme = parent.partition(":")[0].lower()
        child_scheme = child.partition(":")[0].lower()
        if parent_scheme != child_scheme:
            return False
        return self.policy_for(parent).contains(parent, child)

    def schemes(self) -> list[str]:
        """Return the sorted list of explicitly registered schemes."""
        with self._lock:
            return sorted(self._policies)


DEFAULT_SCOPE_POLICIES = ScopePolicyRegistry()

__all__ = [
    "DEFAULT_SCOPE_POLICIES",
    "ExactScopePolicy",
    "HierarchicalScopePolicy",
    "ScopePolicy",
    "ScopePolicyAlreadyRegisteredError",
    "ScopePolicyRegistry",
]
