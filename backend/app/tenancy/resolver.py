"""Tenant resolution: which organization's data may the caller access.

Every tenant-scoped route goes through ``resolve_organization``. The resolver
never raises; any lookup fault degrades to ``None``, and callers treat ``None``
uniformly as "deny access".

Rules:
- No session (no user id) -> None.
- Platform users (a ``platform_roles`` row exists) may pick the active
  organization with the selection cookie. A present, non-empty cookie wins.
- Everyone else, and platform users without a selection, get the profile's
  home ``organization_id`` (which may itself be None).
"""

import logging
import uuid

from backend.app.db.context import AuthSession
from backend.app.db.repositories import TenantDirectory
from backend.app.models.common import PlatformRoleName
from backend.app.utils.metrics import tenant_resolutions_total

logger = logging.getLogger(__name__)


async def resolve_organization(
    session: AuthSession | None,
    directory: TenantDirectory,
    selected_org: str | None = None,
    *,
    verify_selection: bool = False,
) -> uuid.UUID | None:
    """Resolve the organization the caller acts on.

    Args:
        session: Authenticated session, or None when unauthenticated
        directory: Profile / platform role lookups
        selected_org: Raw value of the active-organization cookie, if any
        verify_selection: Require a cookie-selected organization to exist

    Returns:
        Organization ID, or None when the caller has no tenant
    """
    try:
        if session is None or session.user_id is None:
            tenant_resolutions_total.labels(outcome="no_session").inc()
            return None

        platform_role = await directory.get_platform_role(session.user_id)
        selected_org = selected_org.strip() if selected_org else None

        if platform_role is not None and selected_org:
            org_id = uuid.UUID(selected_org)
            if verify_selection and not await directory.organization_exists(org_id):
                logger.warning(
                    "Platform user selected unknown organization",
                    extra={"structured": {"user_id": str(session.user_id), "org_id": selected_org}},
                )
                tenant_resolutions_total.labels(outcome="denied").inc()
                return None
            tenant_resolutions_total.labels(outcome="selection").inc()
            return org_id

        profile = await directory.get_profile(session.user_id)
        org_id = profile.organization_id if profile is not None else None

        tenant_resolutions_total.labels(outcome="profile" if org_id else "denied").inc()
        return org_id
    except Exception as e:
        logger.warning(
            "Tenant resolution failed, denying access",
            extra={"structured": {"error_reason": type(e).__name__}},
        )
        tenant_resolutions_total.labels(outcome="error").inc()
        return None


async def resolve_platform_role(
    session: AuthSession | None, directory: TenantDirectory
) -> PlatformRoleName | None:
    """Resolve the caller's platform role, or None for regular users."""
    try:
        if session is None or session.user_id is None:
            return None

        record = await directory.get_platform_role(session.user_id)
        return record.role if record is not None else None
    except Exception as e:
        logger.warning(
            "Platform role lookup failed",
            extra={"structured": {"error_reason": type(e).__name__}},
        )
        return None
