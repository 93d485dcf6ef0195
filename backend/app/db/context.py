"""Request context for tenancy enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AuthSession:
    """Authenticated identity issued by the auth service.

    Only consumed here; never created or persisted by this service.
    """

    user_id: UUID
    email: str | None = None


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the resolved org and acting user.

    Used to enforce tenancy boundaries in all database operations.
    """

    org_id: UUID
    user_id: UUID
