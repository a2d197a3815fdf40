from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..crud.permission import PermissionRepository
from ..crud.role import RoleRepository
from .store import StoreUnavailableError

logger = logging.getLogger("storefront.authz.store")


class SqlRolePermissionStore:
    """RolePermissionStore over the roles/permissions tables.

    Inactive roles are invisible to both queries. Database and connection
    failures surface as StoreUnavailableError; nothing is retried here.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.role_repo = RoleRepository(session)
        self.permission_repo = PermissionRepository(session)

    async def roles_of(self, principal_id: int) -> frozenset[str]:
        try:
            names = await self.role_repo.get_user_role_names(principal_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Role lookup failed for principal %s: %s", principal_id, exc)
            raise StoreUnavailableError("role lookup failed") from exc
        return frozenset(names)

    async def has_grant(
        self, role_names: frozenset[str], resource: str, action: str
    ) -> bool:
        try:
            return await self.permission_repo.any_granted(role_names, resource, action)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Grant lookup failed for %s:%s: %s", resource, action, exc)
            raise StoreUnavailableError("grant lookup failed") from exc
