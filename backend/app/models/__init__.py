"""Models package - re-exports for convenience."""

from backend.app.models.audit import AuditLogOut, AuditLogPage
from backend.app.models.common import (
    AuditAction,
    AuditEntityType,
    CompanyStatus,
    OrganizationType,
    OrgRole,
    PlatformRoleName,
)
from backend.app.models.company import CompanyCreate, CompanyOut, CompanyUpdate
from backend.app.models.platform import (
    GrantPlatformRoleRequest,
    MyOrganizationsResponse,
    OrganizationOut,
    PlatformRoleOut,
    PlatformRoleResponse,
)

__all__ = [
    # Common
    "AuditAction",
    "AuditEntityType",
    "CompanyStatus",
    "OrganizationType",
    "OrgRole",
    "PlatformRoleName",
    # Audit
    "AuditLogOut",
    "AuditLogPage",
    # Companies
    "CompanyCreate",
    "CompanyOut",
    "CompanyUpdate",
    # Platform
    "GrantPlatformRoleRequest",
    "MyOrganizationsResponse",
    "OrganizationOut",
    "PlatformRoleOut",
    "PlatformRoleResponse",
]
