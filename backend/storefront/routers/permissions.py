from collections import defaultdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.engine import SUPER_ADMIN_ROLE
from ..auth.enforcement import require_permission
from ..auth.store import RolePermissionStore, StoreUnavailableError
from ..crud.permission import PermissionRepository
from ..dependencies import get_current_principal_id, get_db, get_role_permission_store
from ..errors import AuthorizationUnavailableError, NotFoundError
from ..models.permission import Permission
from ..schemas.permission import MyPermissionsResponse, PermissionResponse

router = APIRouter(prefix="/api/permissions", tags=["permissions"])

read_roles = require_permission("Roles", "Read")


def _group_actions(permissions: list[Permission]) -> dict[str, list[str]]:
    grouped: dict[str, set[str]] = defaultdict(set)
    for permission in permissions:
        grouped[permission.resource].add(permission.action)
    return {resource: sorted(actions) for resource, actions in sorted(grouped.items())}


@router.get("", response_model=list[PermissionResponse], dependencies=[Depends(read_roles)])
async def list_permissions(db: AsyncSession = Depends(get_db)) -> list[Permission]:
    return await PermissionRepository(db).list_all()


@router.get(
    "/by-resource",
    response_model=dict[str, list[PermissionResponse]],
    dependencies=[Depends(read_roles)],
)
async def list_permissions_by_resource(
    db: AsyncSession = Depends(get_db),
) -> dict[str, list[Permission]]:
    grouped: dict[str, list[Permission]] = defaultdict(list)
    for permission in await PermissionRepository(db).list_all():
        grouped[permission.resource].append(permission)
    return dict(grouped)


@router.get("/my-permissions", response_model=MyPermissionsResponse)
async def my_permissions(
    principal_id: int = Depends(get_current_principal_id),
    store: RolePermissionStore = Depends(get_role_permission_store),
    db: AsyncSession = Depends(get_db),
) -> MyPermissionsResponse:
    try:
        roles = await store.roles_of(principal_id)
    except StoreUnavailableError as exc:
        raise AuthorizationUnavailableError() from exc

    repo = PermissionRepository(db)
    is_super_admin = SUPER_ADMIN_ROLE in roles
    if is_super_admin:
        permissions = await repo.list_all()
    else:
        permissions = await repo.list_for_roles(roles)

    return MyPermissionsResponse(
        roles=sorted(roles),
        is_super_admin=is_super_admin,
        permissions=_group_actions(permissions),
    )


@router.get(
    "/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(read_roles)],
)
async def get_permission(
    permission_id: int,
    db: AsyncSession = Depends(get_db),
) -> Permission:
    permission = await PermissionRepository(db).get_by_id(permission_id)
    if permission is None:
        raise NotFoundError("Permission not found")
    return permission
