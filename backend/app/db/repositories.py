"""Repository protocol interfaces for data access."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from backend.app.models.common import AuditAction, AuditEntityType, PlatformRoleName


@dataclass
class ProfileRecord:
    """Profile data record."""

    id: UUID
    organization_id: UUID | None
    role: str
    full_name: str | None = None


@dataclass
class PlatformRoleRecord:
    """Platform role data record."""

    user_id: UUID
    role: PlatformRoleName
    created_at: datetime
    updated_at: datetime


@dataclass
class AuditLogEntry:
    """Audit trail row, as written by the audit logger."""

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
    id: UUID | None = None


@dataclass
class AuditLogFilter:
    """Optional filters for audit log queries. Unset fields do not filter."""

    entity_type: AuditEntityType | None = None
    entity_id: UUID | None = None
    action: AuditAction | None = None
    user_id: UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass
class AuditLogPageResult:
    """One page of audit entries plus the total matching count."""

    entries: list[AuditLogEntry] = field(default_factory=list)
    total: int = 0


class TenantDirectory(Protocol):
    """Point lookups over identities and tenants."""

    async def get_platform_role(self, user_id: UUID) -> PlatformRoleRecord | None:
        """Get the platform role for a user.

        Args:
            user_id: User ID

        Returns:
            Platform role record or None if the user is not a platform user
        """
        ...

    async def get_profile(self, user_id: UUID) -> ProfileRecord | None:
        """Get a user's profile.

        Args:
            user_id: User ID (= profile ID)

        Returns:
            Profile record or None if not found
        """
        ...

    async def organization_exists(self, org_id: UUID) -> bool:
        """Check that an organization exists and is not soft-deleted."""
        ...


class AuditLogStore(Protocol):
    """Append-only store for audit trail entries."""

    async def insert(self, entry: AuditLogEntry) -> None:
        """Append an entry.

        Args:
            entry: Entry to write

        Raises:
            Exception: Any store failure; callers decide whether to swallow it
        """
        ...

    async def list_entries(
        self,
        org_id: UUID,
        filters: AuditLogFilter,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> AuditLogPageResult:
        """List entries for one organization, newest first.

        Args:
            org_id: Organization ID (enforces tenancy)
            filters: Optional filters
            limit: Page size
            offset: Rows to skip

        Returns:
            Page of entries and the total count
        """
        ...

    async def prune_older_than(self, cutoff: datetime) -> int:
        """Delete entries created before cutoff.

        Returns:
            Number of deleted entries
        """
        ...


@dataclass
class RetryAfter:
    """Rate limit retry-after information."""

    seconds: int


class RateLimiter(Protocol):
    """Rate limiter interface."""

    async def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available.

        Args:
            key: Rate limit key
            now: Current timestamp

        Returns:
            RetryAfter if over quota, None if allowed
        """
        ...
