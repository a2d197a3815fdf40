"""
Permission decision engine.

This is the only place permission logic lives. For one principal and one
requirement it answers SUCCEED or FAIL:

1. Identity gate: no authenticated principal, or no usable id -> FAIL,
   without touching the store.
2. Role resolution: one store query. The SuperAdmin role -> SUCCEED.
3. Grant check: one store query for an exact (resource, action) grant on any
   of the principal's roles -> SUCCEED, otherwise FAIL.

Store errors are not caught here. They reach the caller, which must reject
the operation; an error never turns into SUCCEED.
"""
from __future__ import annotations

from enum import Enum
from typing import Final

from .principal import Principal
from .requirement import PermissionRequirement
from .store import RolePermissionStore

SUPER_ADMIN_ROLE: Final[str] = "SuperAdmin"


class Decision(str, Enum):
    SUCCEED = "succeed"
    FAIL = "fail"

    @property
    def succeeded(self) -> bool:
        return self is Decision.SUCCEED


class PermissionAuthorizationHandler:
    """Stateless evaluator over an injected RolePermissionStore."""

    def __init__(self, store: RolePermissionStore, *, principal_id_claim: str = "sub"):
        self.store = store
        self.principal_id_claim = principal_id_claim

    async def evaluate(
        self,
        principal: Principal | None,
        requirement: PermissionRequirement,
    ) -> Decision:
        """Decide whether ``principal`` satisfies ``requirement``.

        Args:
            principal: The caller; None is treated as anonymous
            requirement: The (resource, action) pair being demanded

        Returns:
            Decision: SUCCEED or FAIL

        Raises:
            StoreUnavailableError: If the store cannot answer
        """
        if principal is None or not principal.authenticated:
            return Decision.FAIL

        principal_id = principal.principal_id(self.principal_id_claim)
        if principal_id is None:
            return Decision.FAIL

        roles = frozenset(await self.store.roles_of(principal_id))
        if SUPER_ADMIN_ROLE in roles:
            return Decision.SUCCEED
        if not roles:
            return Decision.FAIL

        if await self.store.has_grant(roles, requirement.resource, requirement.action):
            return Decision.SUCCEED
        return Decision.FAIL
