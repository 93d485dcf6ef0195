"""In-memory implementations of repository interfaces."""

import uuid
from datetime import datetime, timedelta

from backend.app.db.repositories import (
    AuditLogEntry,
    AuditLogFilter,
    AuditLogPageResult,
    PlatformRoleRecord,
    ProfileRecord,
    RetryAfter,
)
from backend.app.models.common import PlatformRoleName


class InMemoryTenantDirectory:
    """In-memory implementation of TenantDirectory."""

    def __init__(self) -> None:
        self._profiles: dict[uuid.UUID, ProfileRecord] = {}
        self._platform_roles: dict[uuid.UUID, PlatformRoleRecord] = {}
        self._organizations: set[uuid.UUID] = set()

    def add_organization(self, org_id: uuid.UUID) -> None:
        """Register an existing organization."""
        self._organizations.add(org_id)

    def add_profile(
        self, user_id: uuid.UUID, organization_id: uuid.UUID | None, role: str = "user"
    ) -> ProfileRecord:
        """Register a profile."""
        record = ProfileRecord(id=user_id, organization_id=organization_id, role=role)
        self._profiles[user_id] = record
        return record

    def grant_platform_role(
        self, user_id: uuid.UUID, role: PlatformRoleName
    ) -> PlatformRoleRecord:
        """Grant (or replace) a platform role."""
        now = datetime.now()
        existing = self._platform_roles.get(user_id)
        record = PlatformRoleRecord(
            user_id=user_id,
            role=role,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._platform_roles[user_id] = record
        return record

    async def get_platform_role(self, user_id: uuid.UUID) -> PlatformRoleRecord | None:
        """Get the platform role for a user."""
        return self._platform_roles.get(user_id)

    async def get_profile(self, user_id: uuid.UUID) -> ProfileRecord | None:
        """Get a user's profile."""
        return self._profiles.get(user_id)

    async def organization_exists(self, org_id: uuid.UUID) -> bool:
        """Check that an organization exists."""
        return org_id in self._organizations


class InMemoryAuditLogStore:
    """In-memory implementation of AuditLogStore."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    @property
    def entries(self) -> list[AuditLogEntry]:
        """All entries in insertion order."""
        return list(self._entries)

    async def insert(self, entry: AuditLogEntry) -> None:
        """Append an entry."""
        if entry.id is None:
            entry.id = uuid.uuid4()
        self._entries.append(entry)

    async def list_entries(
        self,
        org_id: uuid.UUID,
        filters: AuditLogFilter,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> AuditLogPageResult:
        """List entries for one organization, newest first."""
        matched = [
            entry
            for entry in self._entries
            # Enforce tenancy
            if entry.organization_id == org_id and _matches(entry, filters)
        ]
        matched.sort(key=lambda x: x.created_at, reverse=True)

        return AuditLogPageResult(entries=matched[offset : offset + limit], total=len(matched))

    async def prune_older_than(self, cutoff: datetime) -> int:
        """Delete entries created before cutoff."""
        kept = [entry for entry in self._entries if entry.created_at >= cutoff]
        removed = len(self._entries) - len(kept)
        self._entries = kept
        return removed


def _matches(entry: AuditLogEntry, filters: AuditLogFilter) -> bool:
    if filters.entity_type is not None and entry.entity_type != filters.entity_type:
        return False
    if filters.entity_id is not None and entry.entity_id != filters.entity_id:
        return False
    if filters.action is not None and entry.action != filters.action:
        return False
    if filters.user_id is not None and entry.user_id != filters.user_id:
        return False
    if filters.start_date is not None and entry.created_at < filters.start_date:
        return False
    if filters.end_date is not None and entry.created_at > filters.end_date:
        return False
    return True


class InMemoryRateLimiter:
    """In-memory implementation of RateLimiter using fixed window."""

    def __init__(self, max_requests: int, window_seconds: int = 60) -> None:
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests per window
            window_seconds: Window size in seconds (default 60)
        """
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._windows: dict[str, tuple[datetime, int]] = {}

    async def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available."""
        if key not in self._windows:
            self._windows[key] = (now, 1)
            return None

        window_start, count = self._windows[key]
        window_end = window_start + timedelta(seconds=self._window_seconds)

        if now >= window_end:
            self._windows[key] = (now, 1)
            return None

        if count >= self._max_requests:
            return RetryAfter(seconds=max(1, int((window_end - now).total_seconds())))

        self._windows[key] = (window_start, count + 1)
        return None
