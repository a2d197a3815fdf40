"""
Permission requirements - the (resource, action) pair a protected operation demands.

A requirement is declared once, next to the operation it protects, and is the
only thing the decision engine needs to know about that operation. The policy
key derived from it ("Permission:{resource}:{action}") is produced here and
nowhere else, so bindings and lookups cannot drift apart.

Matching is exact and case-sensitive: ("Products", "Create") and
("products", "Create") are different requirements.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final

POLICY_PREFIX: Final[str] = "Permission"
_SEPARATOR: Final[str] = ":"


def _require_text(field: str, value: object) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"Permission {field} must be a non-empty string, got {value!r}")
    return value


def policy_key(resource: str, action: str) -> str:
    """Build the policy name for a (resource, action) pair."""
    return _SEPARATOR.join((POLICY_PREFIX, resource, action))


@dataclass(frozen=True, slots=True)
class PermissionRequirement:
    """
    Immutable (resource, action) requirement.

    Raises:
        ValueError: If resource or action is empty or not a string. A bad
            binding is a programming error and fails where it is declared.
    """

    resource: str
    action: str

    def __post_init__(self) -> None:
        _require_text("resource", self.resource)
        _require_text("action", self.action)
        if _SEPARATOR in self.resource:
            raise ValueError(
                f"Permission resource must not contain {_SEPARATOR!r}, got {self.resource!r}"
            )

    @property
    def policy_key(self) -> str:
        return policy_key(self.resource, self.action)

    @property
    def permission_name(self) -> str:
        """Catalog name, e.g. "Products.Create"."""
        return f"{self.resource}.{self.action}"

    @classmethod
    def from_policy_key(cls, key: str) -> PermissionRequirement:
        """
        Rebuild a requirement from its policy key.

        Args:
            key: A key in the form "Permission:{resource}:{action}"

        Returns:
            PermissionRequirement: The requirement the key was built from

        Raises:
            ValueError: If the key does not have the expected shape
        """
        prefix, sep, rest = key.partition(_SEPARATOR)
        if prefix != POLICY_PREFIX or not sep:
            raise ValueError(f"Not a permission policy key: {key!r}")
        resource, sep, action = rest.partition(_SEPARATOR)
        if not sep:
            raise ValueError(f"Not a permission policy key: {key!r}")
        return cls(resource, action)

    def __str__(self) -> str:
        return self.policy_key
