from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.role import Role
from ..models.user_role import UserRole


class RoleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_role_names(self, user_id: int) -> list[str]:
        result = await self.session.execute(
            select(Role.name)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .where(Role.is_active)
        )
        return list(result.scalars().all())
