"""Capability — a single (resource, action, caveats) grant.

The wire form is the UCAN attenuation object::

    {"with": "storage://example.com/data", "can": "crud/read", "nb": {"maxSize": 1024}}

``nb`` is omitted when a capability carries no caveats. Caveat order is
preserved exactly as given so that re-serialization is stable.
"""
from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

CaveatPairs = tuple[tuple[str, Any], ...]


def _normalize_caveats(caveats: Mapping[str, Any] | Iterable[tuple[str, Any]] | None) -> CaveatPairs:
    """Return caveats as an ordered tuple of ``(key, value)`` pairs."""
    if caveats is None:
        return ()
    items = caveats.items() if isinstance(caveats, Mapping) else caveats
    pairs: list[tuple[str, Any]] = []
    seen: set[str] = set()
    for item in items:
        key, value = item
        if not isinstance(key, str):
            raise TypeError(f"Caveat keys must be strings, got {type(key).__name__}.")
        if key in seen:
            raise ValueError(f"Duplicate caveat key {key!r}.")
        seen.add(key)
        pairs.append((key, copy.deepcopy(value)))
    return tuple(pairs)


@dataclass(frozen=True)
class Capability:
    """A single authorized action on a resource, optionally constrained.

    Parameters
    ----------
    resource:
        URI-like resource identifier (the ``with`` field), e.g.
        ``"storage://example.com/data"``.
    action:
        The permitted action (the ``can`` field), e.g. ``"read"`` or
        ``"crud/read"``. ``"*"`` grants every action.
    caveats:
        Ordered key/value constraints (the ``nb`` field). A mapping or an
        iterable of pairs is accepted and stored as a tuple of pairs.

    Examples
    --------
    >>> cap = Capability("storage://example.com/data", "read", {"maxSize": 1024})
    >>> cap.to_dict()
    {'with': 'storage://example.com/data', 'can': 'read', 'nb': {'maxSize': 1024}}
    """

    resource: str
    action: str
    caveats: CaveatPairs = field(default=())

    def __post_init__(self) -> None:
        if not isinstance(self.resource, str):
            raise TypeError("Capability.resource must be a string.")
        if not isinstance(self.action, str):
            raise TypeError("Capability.action must be a string.")
        object.__setattr__(self, "caveats", _normalize_caveats(self.caveats))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def caveat_map(self) -> dict[str, Any]:
        """Return a fresh dict of this capability's caveats."""
        return {key: copy.deepcopy(value) for key, value in self.caveats}

    @property
    def scheme(self) -> str:
        """Lower-cased URI scheme of the resource, or ``""`` if it has none."""
        scheme, sep, _ = self.resource.partition(":")
        return scheme.lower() if sep else ""

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        """Serialize to the UCAN wire mapping."""
        data: dict[str, object] = {"with": self.resource, "can": self.action}
        if self.caveats:
            data["nb"] = self.caveat_map()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Capability":
        """Reconstruct a Capability from its wire mapping.

        Raises
        ------
        ValueError
            If ``with``/``can`` are missing or not strings, or ``nb`` is not
            a JSON object.
        """
        resource = data.get("with")
        action = data.get("can")
        if not isinstance(resource, str):
            raise ValueError("capability 'with' must be a string")
        if not isinstance(action, str):
            raise ValueError("capability 'can' must be a string")
        caveats = data.get("nb")
        if caveats is not None and not isinstance(caveats, Mapping):
            raise ValueError("capability 'nb' must be an object")
        return cls(resource=resource, action=action, caveats=caveats)

    def __str__(self) -> str:
        return f"{self.action}:{self.resource}"


def find_capability_problems(capabilities: Iterable[Capability]) -> list[str]:
    """Return a list of problems with a token's capability list.

    An empty list means the capabilities are structurally usable. Problems
    reported: no capabilities at all, and empty ``with`` or ``can`` values.
    """
    problems: list[str] = []
    caps = list(capabilities)
    if not caps:
        problems.append("token must grant at least one capability")
    for index, cap in enumerate(caps):
        if not cap.resource:
            problems.append(f"capability at index {index} has an empty 'with' field")
        if not cap.action:
            problems.append(f"capability at index {index} has an empty 'can' field")
    return problems


__all__ = ["Capability", "CaveatPairs", "find_capability_problems"]
