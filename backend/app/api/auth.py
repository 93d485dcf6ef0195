"""Auth and tenancy dependencies.

The managed auth service is represented by a bearer-token stub: the token is
``<user_id>`` or ``<user_id>:<email>``. Everything after that (tenant
resolution, platform role checks) runs against the real tables.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from backend.app.api.deps import get_directory
from backend.app.audit.logger import AuditContext, RequestInfo
from backend.app.config import Settings, get_settings
from backend.app.db.context import AuthSession, RequestContext
from backend.app.db.repositories import TenantDirectory
from backend.app.models.common import PlatformRoleName
from backend.app.tenancy.resolver import resolve_organization, resolve_platform_role


async def get_auth_session(
    authorization: Annotated[str | None, Header()] = None,
) -> AuthSession | None:
    """Extract the authenticated session from the authorization header.

    Args:
        authorization: Authorization header (e.g., "Bearer <user_id>:<email>")

    Returns:
        AuthSession, or None when no header was sent

    Raises:
        HTTPException: 401 if the header is present but malformed
    """
    if not authorization:
        return None

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:]  # Strip "Bearer "
    user_id_str, _, email = token.partition(":")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token (expected user_id[:email])",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return AuthSession(user_id=user_id, email=email or None)


async def require_auth_session(
    session: Annotated[AuthSession | None, Depends(get_auth_session)],
) -> AuthSession:
    """Require an authenticated session.

    Raises:
        HTTPException: 401 if unauthenticated
    """
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_current_context(
    request: Request,
    session: Annotated[AuthSession | None, Depends(get_auth_session)],
    directory: Annotated[TenantDirectory, Depends(get_directory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RequestContext:
    """Resolve the caller's tenant and build the request context.

    Raises:
        HTTPException: 403 when no organization can be resolved
    """
    org_id = await resolve_organization(
        session,
        directory,
        request.cookies.get(settings.tenant_cookie_name),
        verify_selection=settings.verify_platform_org_selection,
    )

    if org_id is None or session is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    return RequestContext(org_id=org_id, user_id=session.user_id)


async def get_platform_role(
    session: Annotated[AuthSession, Depends(require_auth_session)],
    directory: Annotated[TenantDirectory, Depends(get_directory)],
) -> PlatformRoleName | None:
    """Platform role of the authenticated caller, if any."""
    return await resolve_platform_role(session, directory)


async def require_platform_owner(
    role: Annotated[PlatformRoleName | None, Depends(get_platform_role)],
) -> PlatformRoleName:
    """Require the platform_owner role.

    Raises:
        HTTPException: 403 for everyone else
    """
    if role != PlatformRoleName.platform_owner:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: only platform owners can manage platform roles",
        )
    return role


async def get_audit_context(
    request: Request,
    session: Annotated[AuthSession | None, Depends(get_auth_session)],
) -> AuditContext:
    """Audit context for the current request."""
    return AuditContext(session=session, request=RequestInfo.from_headers(request.headers))
