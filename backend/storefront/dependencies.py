import logging
from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.engine import PermissionAuthorizationHandler
from .auth.principal import Principal
from .auth.sql_store import SqlRolePermissionStore
from .auth.store import RolePermissionStore
from .config import settings
from .database import get_session
from .errors import AuthError
from .security.token_inspection import ExpiredTokenError, InvalidTokenError, validate_access_token

logger = logging.getLogger("storefront.auth")

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_role_permission_store(db: AsyncSession = Depends(get_db)) -> RolePermissionStore:
    return SqlRolePermissionStore(db)


def get_authorization_handler(
    store: RolePermissionStore = Depends(get_role_permission_store),
) -> PermissionAuthorizationHandler:
    return PermissionAuthorizationHandler(
        store, principal_id_claim=settings.principal_id_claim
    )


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Resolve the caller from the bearer token.

    Missing, expired and invalid tokens all yield an anonymous principal;
    the decision engine then denies.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        return Principal.anonymous()

    try:
        payload = validate_access_token(credentials.credentials)
    except ExpiredTokenError:
        logger.info("Expired access token presented")
        return Principal.anonymous()
    except InvalidTokenError:
        logger.info("Invalid access token presented")
        return Principal.anonymous()

    return Principal.from_claims(payload)


async def get_current_principal_id(
    principal: Principal = Depends(get_principal),
) -> int:
    principal_id = principal.principal_id(settings.principal_id_claim)
    if principal_id is None:
        raise AuthError("Not authenticated")
    return principal_id
