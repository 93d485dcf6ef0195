"""Repository helpers for company operations."""

import re
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import RequestContext
from backend.app.db.models import Company
from backend.app.db.queries import query_companies


def extract_domain(url: str | None) -> str | None:
    """Normalize a website URL to a bare lowercase domain.

    ``https://www.Acme.com:8080/about`` -> ``acme.com``.
    """
    if not url:
        return None
    result = url.strip()
    if not result:
        return None

    result = re.sub(r"^https?://", "", result, flags=re.IGNORECASE)
    result = re.sub(r"^www\.", "", result, flags=re.IGNORECASE)
    result = re.sub(r"[/?#].*$", "", result)
    result = re.sub(r":\d+$", "", result)
    result = result.lower().strip()

    return result or None


async def get_company(session: AsyncSession, company_id: uuid.UUID) -> Company | None:
    """Get a live company by ID regardless of tenant.

    Callers compare ``organization_id`` themselves so they can tell
    "not found" from "belongs to another org".
    """
    result = await session.execute(
        select(Company).where(Company.id == company_id, Company.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def find_company_by_domain(
    session: AsyncSession,
    ctx: RequestContext,
    domain: str,
    exclude_id: uuid.UUID | None = None,
) -> Company | None:
    """Find a live company in the caller's org with the given domain."""
    query = query_companies(ctx).where(Company.domain == domain)
    if exclude_id is not None:
        query = query.where(Company.id != exclude_id)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


async def list_companies(
    session: AsyncSession, ctx: RequestContext, *, limit: int = 50, offset: int = 0
) -> list[Company]:
    """List live companies for the caller's org, newest first."""
    result = await session.execute(
        query_companies(ctx).order_by(Company.created_at.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all())


async def insert_company(
    session: AsyncSession, ctx: RequestContext, fields: dict[str, Any]
) -> Company:
    """Insert a company into the caller's org."""
    now = datetime.now(timezone.utc)
    company = Company(
        id=uuid.uuid4(),
        organization_id=ctx.org_id,
        domain=extract_domain(fields.get("website")),
        created_at=now,
        updated_at=now,
        **fields,
    )
    session.add(company)
    await session.commit()
    return company


async def update_company(
    session: AsyncSession, company: Company, changes: dict[str, Any]
) -> Company:
    """Apply field changes to a company and bump ``updated_at``."""
    for key, value in changes.items():
        setattr(company, key, value)

    if "website" in changes:
        company.domain = extract_domain(changes["website"])

    company.updated_at = datetime.now(timezone.utc)
    await session.commit()
    return company


async def soft_delete_company(session: AsyncSession, company: Company) -> Company:
    """Mark a company deleted."""
    now = datetime.now(timezone.utc)
    company.deleted_at = now
    company.updated_at = now
    await session.commit()
    return company
