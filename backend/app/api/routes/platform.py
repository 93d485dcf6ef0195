"""Platform administration endpoints - grant and revoke platform roles."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_audit_context, require_auth_session, require_platform_owner
from backend.app.api.deps import get_audit_logger
from backend.app.audit.logger import AuditContext, AuditLogger
from backend.app.db.context import AuthSession
from backend.app.db.engine import get_session
from backend.app.db.platform import (
    delete_platform_role,
    get_platform_role,
    get_profile,
    upsert_platform_role,
)
from backend.app.models.common import AuditEntityType, PlatformRoleName
from backend.app.models.platform import (
    GrantPlatformRoleRequest,
    PlatformRoleOut,
    PlatformRoleResponse,
)

router = APIRouter(prefix="/platform", tags=["platform"])


@router.patch("/users/{user_id}/platform-role", response_model=PlatformRoleResponse)
async def grant_platform_role(
    user_id: uuid.UUID,
    request: GrantPlatformRoleRequest,
    _owner: Annotated[PlatformRoleName, Depends(require_platform_owner)],
    session: Annotated[AsyncSession, Depends(get_session)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    audit_ctx: Annotated[AuditContext, Depends(get_audit_context)],
) -> PlatformRoleResponse:
    """Grant or change a user's platform role.

    Logs a create for a first grant, an update when replacing a role.

    Raises:
        HTTPException: 404 if the target user has no profile
    """
    if await get_profile(session, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    existing = await get_platform_role(session, user_id)
    before = PlatformRoleOut.model_validate(existing).to_record() if existing else None

    row = await upsert_platform_role(session, user_id, request.role)
    granted = PlatformRoleOut.model_validate(row)

    if before is None:
        audit.log_create(audit_ctx, AuditEntityType.platform_role, granted.to_record())
    else:
        audit.log_update(
            audit_ctx, AuditEntityType.platform_role, user_id, before, granted.to_record()
        )

    return PlatformRoleResponse(data=granted)


@router.delete("/users/{user_id}/platform-role")
async def revoke_platform_role(
    user_id: uuid.UUID,
    auth: Annotated[AuthSession, Depends(require_auth_session)],
    _owner: Annotated[PlatformRoleName, Depends(require_platform_owner)],
    session: Annotated[AsyncSession, Depends(get_session)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    audit_ctx: Annotated[AuditContext, Depends(get_audit_context)],
) -> dict[str, object]:
    """Revoke a user's platform role.

    Raises:
        HTTPException: 400 when revoking your own role, 404 if no role exists
    """
    # Lockout protection
    if user_id == auth.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove your own platform owner role",
        )

    existing = await get_platform_role(session, user_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Platform role not found")

    revoked = PlatformRoleOut.model_validate(existing).to_record()
    await delete_platform_role(session, user_id)

    audit.log_delete(audit_ctx, AuditEntityType.platform_role, revoked)

    return {"success": True, "message": "Platform role revoked"}
