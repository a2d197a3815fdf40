from collections.abc import Iterable

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.permission import Permission
from ..models.role import Role
from ..models.role_permission import RolePermission


class PermissionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, permission_id: int) -> Permission | None:
        return await self.session.get(Permission, permission_id)

    async def list_all(self) -> list[Permission]:
        result = await self.session.execute(
            select(Permission).order_by(Permission.resource, Permission.action)
        )
        return list(result.scalars().all())

    async def list_for_roles(self, role_names: Iterable[str]) -> list[Permission]:
        names = list(role_names)
        if not names:
            return []
        result = await self.session.execute(
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .where(Role.name.in_(names))
            .where(Role.is_active)
            .order_by(Permission.resource, Permission.action)
            .distinct()
        )
        return list(result.scalars().all())

    async def any_granted(self, role_names: Iterable[str], resource: str, action: str) -> bool:
        names = list(role_names)
        if not names:
            return False
        # Plain equality keeps the match exact and case-sensitive on PostgreSQL.
        query = select(
            exists()
            .where(RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == Role.id)
            .where(Role.name.in_(names))
            .where(Role.is_active)
            .where(Permission.resource == resource)
            .where(Permission.action == action)
        )
        result = await self.session.execute(query)
        return bool(result.scalar())
