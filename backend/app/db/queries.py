"""Tenancy-safe query helpers."""

from sqlalchemy import Select, select

from backend.app.db.context import RequestContext
from backend.app.db.models import Company


def query_companies(ctx: RequestContext) -> Select[tuple[Company]]:
    """Select live companies with org scoping enforced.

    Args:
        ctx: Request context with the resolved org_id

    Returns:
        Select filtered by organization_id, excluding soft-deleted rows
    """
    return select(Company).where(
        Company.organization_id == ctx.org_id, Company.deleted_at.is_(None)
    )

