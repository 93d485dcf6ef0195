"""Repository helpers for organizations and platform roles."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import Organization, PlatformRole, Profile
from backend.app.models.common import PlatformRoleName


async def list_organizations(
    session: AsyncSession, only_id: uuid.UUID | None = None
) -> list[Organization]:
    """List live organizations by name, optionally narrowed to one ID."""
    query = select(Organization).where(Organization.deleted_at.is_(None))
    if only_id is not None:
        query = query.where(Organization.id == only_id)

    result = await session.execute(query.order_by(Organization.name))
    return list(result.scalars().all())


async def get_profile(session: AsyncSession, user_id: uuid.UUID) -> Profile | None:
    """Get a profile row by user ID."""
    result = await session.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def get_platform_role(session: AsyncSession, user_id: uuid.UUID) -> PlatformRole | None:
    """Get a platform role row by user ID."""
    result = await session.execute(select(PlatformRole).where(PlatformRole.user_id == user_id))
    return result.scalar_one_or_none()


async def upsert_platform_role(
    session: AsyncSession, user_id: uuid.UUID, role: PlatformRoleName
) -> PlatformRole:
    """Grant a platform role, replacing any existing one."""
    now = datetime.now(timezone.utc)
    row = await get_platform_role(session, user_id)

    if row is None:
        row = PlatformRole(user_id=user_id, role=role.value, created_at=now, updated_at=now)
        session.add(row)
    else:
        row.role = role.value
        row.updated_at = now

    await session.commit()
    return row


async def delete_platform_role(session: AsyncSession, user_id: uuid.UUID) -> None:
    """Revoke a platform role."""
    await session.execute(delete(PlatformRole).where(PlatformRole.user_id == user_id))
    await session.commit()
