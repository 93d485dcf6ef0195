"""PostgreSQL-specific integration test for JSONB audit columns.

Requires a real PostgreSQL instance (sqlite stores plain JSON).

Run with: DATABASE_URL='postgresql://...' pytest -m postgres
"""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from backend.app.db.engine import create_session_factory
from backend.app.db.models import AuditLog
from backend.app.db.repositories import AuditLogEntry, AuditLogFilter
from backend.app.db.sql_repositories import SqlAuditLogStore
from backend.app.models.common import AuditAction, AuditEntityType


@pytest.mark.postgres
@pytest.mark.asyncio
async def test_audit_values_roundtrip_as_jsonb(postgres_engine: AsyncEngine) -> None:
    """Nested old/new values survive a JSONB round trip and can be queried."""
    session_factory = create_session_factory(postgres_engine)
    store = SqlAuditLogStore(session_factory)
    org_id = uuid.uuid4()
    entity_id = uuid.uuid4()

    await store.insert(
        AuditLogEntry(
            organization_id=org_id,
            entity_type=AuditEntityType.company,
            entity_id=entity_id,
            action=AuditAction.update,
            user_id=uuid.uuid4(),
            user_email="pg@example.com",
            ip_address="203.0.113.7",
            user_agent="pytest",
            old_values={"attributes": {"tier": 1, "tags": ["a", "b"]}},
            new_values={"attributes": {"tier": 2, "tags": ["a", "b"]}},
            changed_fields=["attributes"],
            metadata={"source": "import"},
            created_at=datetime.now(timezone.utc),
        )
    )

    page = await store.list_entries(org_id, AuditLogFilter(entity_id=entity_id))
    assert page.total == 1
    assert page.entries[0].new_values == {"attributes": {"tier": 2, "tags": ["a", "b"]}}
    assert page.entries[0].changed_fields == ["attributes"]

    # JSON path operators work on the stored column
    async with session_factory() as session:
        result = await session.execute(
            select(AuditLog.id).where(AuditLog.new_values[("attributes", "tier")].as_integer() == 2)
        )
        assert result.scalar_one_or_none() is not None
