"""Organization endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_platform_role, require_auth_session
from backend.app.db.context import AuthSession
from backend.app.db.engine import get_session
from backend.app.db.platform import get_profile, list_organizations
from backend.app.models.common import OrgRole, PlatformRoleName
from backend.app.models.platform import MyOrganizationsResponse, OrganizationOut

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("/my-organizations", response_model=MyOrganizationsResponse)
async def my_organizations(
    auth: Annotated[AuthSession, Depends(require_auth_session)],
    platform_role: Annotated[PlatformRoleName | None, Depends(get_platform_role)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MyOrganizationsResponse:
    """Organizations the caller can switch between.

    Platform users see every live organization; everyone else only their own.

    Raises:
        HTTPException: 404 if the caller has no profile
    """
    profile = await get_profile(session, auth.user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")

    if platform_role is not None:
        organizations = await list_organizations(session)
    elif profile.organization_id is not None:
        organizations = await list_organizations(session, only_id=profile.organization_id)
    else:
        organizations = []

    return MyOrganizationsResponse(
        data=[OrganizationOut.model_validate(org) for org in organizations],
        current_organization_id=profile.organization_id,
        user_role=OrgRole(profile.role) if profile.role in OrgRole.__members__ else None,
        platform_role=platform_role,
    )
