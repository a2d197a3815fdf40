"""
Per-route permission enforcement.

Routes opt in explicitly:

    @router.post("/products", dependencies=[Depends(require_permission("Products", "Create"))])

The dependency resolves the caller, asks the decision engine and rejects the
request unless the decision is SUCCEED. Store failures and timeouts reject
with 503; a cancelled request never reaches the route handler.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, Request

from ..config import settings
from ..dependencies import get_authorization_handler, get_principal
from ..errors import AuthorizationUnavailableError, PermissionError
from .engine import PermissionAuthorizationHandler
from .principal import Principal
from .requirement import PermissionRequirement
from .store import StoreUnavailableError

logger = logging.getLogger("storefront.authz")


async def authorize(
    handler: PermissionAuthorizationHandler,
    principal: Principal | None,
    requirement: PermissionRequirement,
    *,
    timeout: float | None = None,
    context: str = "",
) -> None:
    """
    Enforce ``requirement`` for ``principal``, raising unless it is granted.

    Args:
        handler: The decision engine
        principal: The caller (None means anonymous)
        requirement: The permission being demanded
        timeout: Seconds to wait for a decision (None waits indefinitely)
        context: Free text for log lines, e.g. "GET /api/permissions"

    Raises:
        PermissionError: 403 when the decision is FAIL
        AuthorizationUnavailableError: 503 when the store fails or times out
    """
    try:
        decision = await asyncio.wait_for(
            handler.evaluate(principal, requirement), timeout=timeout
        )
    except StoreUnavailableError as exc:
        logger.error(
            "Authorization store unavailable policy=%s %s: %s",
            requirement.policy_key,
            context,
            exc,
        )
        raise AuthorizationUnavailableError(
            details={"policy": requirement.policy_key}
        ) from exc
    except asyncio.TimeoutError as exc:
        logger.error(
            "Authorization timed out after %ss policy=%s %s",
            timeout,
            requirement.policy_key,
            context,
        )
        raise AuthorizationUnavailableError(
            details={"policy": requirement.policy_key}
        ) from exc

    if not decision.succeeded:
        logger.warning(
            "Permission denied policy=%s authenticated=%s %s",
            requirement.policy_key,
            bool(principal and principal.authenticated),
            context,
        )
        raise PermissionError(
            f"Permission denied: {requirement.permission_name} required",
            details={"policy": requirement.policy_key},
        )


class PermissionDependency:
    """FastAPI dependency bound to one PermissionRequirement."""

    def __init__(self, requirement: PermissionRequirement, *, timeout: float | None = None):
        self.requirement = requirement
        self.timeout = timeout

    @property
    def policy_key(self) -> str:
        return self.requirement.policy_key

    async def __call__(
        self,
        request: Request,
        principal: Principal = Depends(get_principal),
        handler: PermissionAuthorizationHandler = Depends(get_authorization_handler),
    ) -> None:
        timeout = self.timeout if self.timeout is not None else settings.authz_timeout_seconds
        await authorize(
            handler,
            principal,
            self.requirement,
            timeout=timeout,
            context=f"{request.method} {request.url.path}",
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.policy_key!r})"


def require_permission(
    resource: str, action: str, *, timeout: float | None = None
) -> PermissionDependency:
    """Declare that a route needs (resource, action).

    The requirement is built immediately, so an empty resource or action
    fails at import time rather than on the first request.
    """
    return PermissionDependency(PermissionRequirement(resource, action), timeout=timeout)


def require_policy(key: str, *, timeout: float | None = None) -> PermissionDependency:
    """Same as require_permission, from a "Permission:{resource}:{action}" key."""
    return PermissionDependency(PermissionRequirement.from_policy_key(key), timeout=timeout)
