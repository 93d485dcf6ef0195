"""Audit trail read endpoint."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from backend.app.api.deps import get_audit_store
from backend.app.db.context import RequestContext
from backend.app.db.repositories import AuditLogFilter, AuditLogStore
from backend.app.middleware.ratelimit import enforce_rate_limit
from backend.app.models.audit import AuditLogOut, AuditLogPage
from backend.app.models.common import AuditAction, AuditEntityType

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


@router.get("", response_model=AuditLogPage)
async def list_audit_logs(
    ctx: Annotated[RequestContext, Depends(enforce_rate_limit)],
    store: Annotated[AuditLogStore, Depends(get_audit_store)],
    entity_type: AuditEntityType | None = None,
    entity_id: uuid.UUID | None = None,
    action: AuditAction | None = None,
    user_id: uuid.UUID | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> AuditLogPage:
    """List audit entries for the caller's organization, newest first.

    Args:
        ctx: Request context (org_id, user_id)
        store: Audit log store
        entity_type: Only entries for this entity type
        entity_id: Only entries for this entity
        action: Only this action
        user_id: Only entries by this actor
        start_date: Entries created at or after this time
        end_date: Entries created at or before this time
        limit: Page size (max 500)
        offset: Rows to skip

    Returns:
        Page of entries plus the total matching count
    """
    filters = AuditLogFilter(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )

    page = await store.list_entries(ctx.org_id, filters, limit=limit, offset=offset)

    return AuditLogPage(
        data=[AuditLogOut.model_validate(entry) for entry in page.entries],
        count=page.total,
    )
