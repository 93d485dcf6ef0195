"""Company endpoints - tenant-scoped CRUD with audit logging."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_audit_context
from backend.app.api.deps import get_audit_logger
from backend.app.audit.logger import AuditContext, AuditLogger
from backend.app.db.companies import (
    extract_domain,
    find_company_by_domain,
    get_company,
    insert_company,
    list_companies,
    soft_delete_company,
    update_company,
)
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Company
from backend.app.middleware.ratelimit import enforce_rate_limit
from backend.app.models.common import AuditEntityType
from backend.app.models.company import CompanyCreate, CompanyOut, CompanyUpdate

router = APIRouter(prefix="/companies", tags=["companies"])


async def _get_owned_company(
    session: AsyncSession, company_id: uuid.UUID, ctx: RequestContext
) -> Company:
    """Fetch a live company and enforce that it belongs to the caller's org.

    Raises:
        HTTPException: 404 if not found, 403 if it belongs to another org
    """
    company = await get_company(session, company_id)

    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")

    if company.organization_id != ctx.org_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    return company


async def _ensure_domain_available(
    session: AsyncSession,
    ctx: RequestContext,
    website: str | None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    domain = extract_domain(website)
    if domain is None:
        return

    existing = await find_company_by_domain(session, ctx, domain, exclude_id=exclude_id)
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A company with domain '{domain}' already exists ({existing.name})",
        )


@router.get("", response_model=list[CompanyOut])
async def list_companies_endpoint(
    ctx: Annotated[RequestContext, Depends(enforce_rate_limit)],
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[CompanyOut]:
    """List companies in the caller's organization."""
    companies = await list_companies(session, ctx, limit=limit, offset=offset)
    return [CompanyOut.model_validate(company) for company in companies]


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company(
    request: CompanyCreate,
    ctx: Annotated[RequestContext, Depends(enforce_rate_limit)],
    session: Annotated[AsyncSession, Depends(get_session)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    audit_ctx: Annotated[AuditContext, Depends(get_audit_context)],
) -> CompanyOut:
    """Create a company in the caller's organization.

    Raises:
        HTTPException: 409 if another company in the org has the same domain
    """
    await _ensure_domain_available(session, ctx, request.website)

    company = await insert_company(session, ctx, request.model_dump(mode="json"))
    created = CompanyOut.model_validate(company)

    audit.log_create(audit_ctx, AuditEntityType.company, created.to_record())

    return created


@router.get("/{company_id}", response_model=CompanyOut)
async def get_company_endpoint(
    company_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(enforce_rate_limit)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CompanyOut:
    """Get a single company."""
    company = await _get_owned_company(session, company_id, ctx)
    return CompanyOut.model_validate(company)


@router.patch("/{company_id}", response_model=CompanyOut)
async def update_company_endpoint(
    company_id: uuid.UUID,
    request: CompanyUpdate,
    ctx: Annotated[RequestContext, Depends(enforce_rate_limit)],
    session: Annotated[AsyncSession, Depends(get_session)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    audit_ctx: Annotated[AuditContext, Depends(get_audit_context)],
) -> CompanyOut:
    """Update a company; only fields present in the body are applied."""
    company = await _get_owned_company(session, company_id, ctx)
    before = CompanyOut.model_validate(company).to_record()

    changes = request.model_dump(mode="json", exclude_unset=True)
    if "website" in changes:
        await _ensure_domain_available(session, ctx, changes["website"], exclude_id=company.id)

    company = await update_company(session, company, changes)
    updated = CompanyOut.model_validate(company)

    audit.log_update(audit_ctx, AuditEntityType.company, company.id, before, updated.to_record())

    return updated


@router.delete("/{company_id}", response_model=CompanyOut)
async def delete_company_endpoint(
    company_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(enforce_rate_limit)],
    session: Annotated[AsyncSession, Depends(get_session)],
    audit: Annotated[AuditLogger, Depends(get_audit_logger)],
    audit_ctx: Annotated[AuditContext, Depends(get_audit_context)],
) -> CompanyOut:
    """Soft-delete a company."""
    company = await _get_owned_company(session, company_id, ctx)

    company = await soft_delete_company(session, company)
    deleted = CompanyOut.model_validate(company)

    audit.log_delete(audit_ctx, AuditEntityType.company, deleted.to_record())

    return deleted
