from __future__ import annotations

from typing import Protocol


class StoreUnavailableError(Exception):
    """Raised when the role/permission store cannot answer a query."""


class RolePermissionStore(Protocol):
    """Read-only queries the decision engine needs.

    Implementations must be safe to call concurrently and must compare
    resource and action by exact, case-sensitive equality. Any failure to
    answer is reported as StoreUnavailableError.
    """

    async def roles_of(self, principal_id: int) -> frozenset[str]:
        ...

    async def has_grant(
        self, role_names: frozenset[str], resource: str, action: str
    ) -> bool:
        ...
