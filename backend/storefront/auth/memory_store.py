from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping


class InMemoryRolePermissionStore:
    """Dict-backed RolePermissionStore for tests and local runs.

    ``latency`` adds an ``asyncio.sleep`` before every answer. Every call is
    appended to ``calls`` as ``(method, args)``.
    """

    def __init__(
        self,
        user_roles: Mapping[int, Iterable[str]] | None = None,
        role_grants: Mapping[str, Iterable[tuple[str, str]]] | None = None,
        *,
        latency: float = 0.0,
    ) -> None:
        self.user_roles: dict[int, frozenset[str]] = {
            user_id: frozenset(roles) for user_id, roles in (user_roles or {}).items()
        }
        self.role_grants: dict[str, frozenset[tuple[str, str]]] = {
            role: frozenset(grants) for role, grants in (role_grants or {}).items()
        }
        self.latency = latency
        self.calls: list[tuple[str, tuple[object, ...]]] = []

    async def _pause(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def roles_of(self, principal_id: int) -> frozenset[str]:
        self.calls.append(("roles_of", (principal_id,)))
        await self._pause()
        return self.user_roles.get(principal_id, frozenset())

    async def has_grant(
        self, role_names: frozenset[str], resource: str, action: str
    ) -> bool:
        self.calls.append(("has_grant", (role_names, resource, action)))
        await self._pause()
        pair = (resource, action)
        return any(pair in self.role_grants.get(role, frozenset()) for role in role_names)
