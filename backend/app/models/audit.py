"""Audit log API models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from backend.app.models.common import AuditAction, AuditEntityType


class AuditLogOut(BaseModel):
    """Single audit trail entry as returned by GET /audit-logs."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID | None
    entity_type: AuditEntityType
    entity_id: UUID | None
    action: AuditAction
    user_id: UUID | None
    user_email: str | None
    ip_address: str | None
    user_agent: str | None
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    changed_fields: list[str] | None
    metadata: dict[str, Any] | None
    created_at: datetime


class AuditLogPage(BaseModel):
    """Paginated audit log listing."""

    data: list[AuditLogOut]
    count: int
    success: bool = True
