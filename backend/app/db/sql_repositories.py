"""SQL implementations of repository interfaces."""

import uuid
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.db.models import AuditLog, Organization, PlatformRole, Profile
from backend.app.db.repositories import (
    AuditLogEntry,
    AuditLogFilter,
    AuditLogPageResult,
    PlatformRoleRecord,
    ProfileRecord,
)
from backend.app.models.common import AuditAction, AuditEntityType, PlatformRoleName


class SqlTenantDirectory:
    """SQL implementation of TenantDirectory."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_platform_role(self, user_id: uuid.UUID) -> PlatformRoleRecord | None:
        """Get the platform role for a user."""
        result = await self._session.execute(
            select(PlatformRole).where(PlatformRole.user_id == user_id)
        )
        row = result.scalar_one_or_none()

        if row is None:
            return None

        return PlatformRoleRecord(
            user_id=row.user_id,
            role=PlatformRoleName(row.role),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def get_profile(self, user_id: uuid.UUID) -> ProfileRecord | None:
        """Get a user's profile."""
        result = await self._session.execute(select(Profile).where(Profile.id == user_id))
        row = result.scalar_one_or_none()

        if row is None:
            return None

        return ProfileRecord(
            id=row.id,
            organization_id=row.organization_id,
            role=row.role,
            full_name=row.full_name,
        )

    async def organization_exists(self, org_id: uuid.UUID) -> bool:
        """Check that an organization exists and is not soft-deleted."""
        result = await self._session.execute(
            select(Organization.id).where(
                Organization.id == org_id, Organization.deleted_at.is_(None)
            )
        )
        return result.scalar_one_or_none() is not None


class SqlAuditLogStore:
    """SQL implementation of AuditLogStore.

    Each call opens its own session: writes run detached from the request
    that triggered them, after the request session may already be closed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, entry: AuditLogEntry) -> None:
        """Append an entry."""
        row = AuditLog(
            id=entry.id or uuid.uuid4(),
            organization_id=entry.organization_id,
            entity_type=entry.entity_type.value,
            entity_id=entry.entity_id,
            action=entry.action.value,
            user_id=entry.user_id,
            user_email=entry.user_email,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            old_values=entry.old_values,
            new_values=entry.new_values,
            changed_fields=entry.changed_fields,
            metadata_=entry.metadata,
            created_at=entry.created_at,
        )

        async with self._session_factory() as session:
            session.add(row)
            await session.commit()

        entry.id = row.id

    async def list_entries(
        self,
        org_id: uuid.UUID,
        filters: AuditLogFilter,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> AuditLogPageResult:
        """List entries for one organization, newest first."""
        conditions = [AuditLog.organization_id == org_id]

        if filters.entity_type is not None:
            conditions.append(AuditLog.entity_type == filters.entity_type.value)
        if filters.entity_id is not None:
            conditions.append(AuditLog.entity_id == filters.entity_id)
        if filters.action is not None:
            conditions.append(AuditLog.action == filters.action.value)
        if filters.user_id is not None:
            conditions.append(AuditLog.user_id == filters.user_id)
        if filters.start_date is not None:
            conditions.append(AuditLog.created_at >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(AuditLog.created_at <= filters.end_date)

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(AuditLog).where(*conditions)
            )
            result = await session.execute(
                select(AuditLog)
                .where(*conditions)
                .order_by(AuditLog.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            rows = result.scalars().all()

        return AuditLogPageResult(entries=[_to_entry(row) for row in rows], total=total or 0)

    async def prune_older_than(self, cutoff: datetime) -> int:
        """Delete entries created before cutoff."""
        async with self._session_factory() as session:
            result = await session.execute(delete(AuditLog).where(AuditLog.created_at < cutoff))
            await session.commit()

        return result.rowcount or 0


def _to_entry(row: AuditLog) -> AuditLogEntry:
    return AuditLogEntry(
        id=row.id,
        organization_id=row.organization_id,
        entity_type=AuditEntityType(row.entity_type),
        entity_id=row.entity_id,
        action=AuditAction(row.action),
        user_id=row.user_id,
        user_email=row.user_email,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        old_values=row.old_values,
        new_values=row.new_values,
        changed_fields=row.changed_fields,
        metadata=row.metadata_,
        created_at=row.created_at,
    )
