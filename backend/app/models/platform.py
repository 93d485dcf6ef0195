"""Organization and platform-role models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from backend.app.models.common import OrganizationType, OrgRole, PlatformRoleName


class OrganizationOut(BaseModel):
    """Organization row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    type: OrganizationType
    website: str | None = None
    notes: str | None = None
    created_at: datetime


class MyOrganizationsResponse(BaseModel):
    """Response for GET /organizations/my-organizations."""

    success: bool = True
    data: list[OrganizationOut]
    current_organization_id: UUID | None
    user_role: OrgRole | None
    platform_role: PlatformRoleName | None


class GrantPlatformRoleRequest(BaseModel):
    """Request body for PATCH /platform/users/{id}/platform-role."""

    role: PlatformRoleName


class PlatformRoleOut(BaseModel):
    """Platform role row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    role: PlatformRoleName
    created_at: datetime
    updated_at: datetime

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict used as the audit snapshot, keyed by the user id."""
        record = self.model_dump(mode="json")
        record["id"] = record["user_id"]
        return record


class PlatformRoleResponse(BaseModel):
    """Response for platform role grant."""

    success: bool = True
    data: PlatformRoleOut
