"""Shared FastAPI dependencies for stores and the audit logger."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.audit.logger import AuditLogger
from backend.app.config import get_settings
from backend.app.db.engine import get_session, get_session_factory
from backend.app.db.repositories import AuditLogStore, TenantDirectory
from backend.app.db.sql_repositories import SqlAuditLogStore, SqlTenantDirectory

_audit_store: AuditLogStore | None = None
_audit_logger: AuditLogger | None = None


def get_directory(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TenantDirectory:
    """Tenant directory bound to the request's database session."""
    return SqlTenantDirectory(session)


def get_audit_store() -> AuditLogStore:
    """Get global audit log store instance."""
    global _audit_store
    if _audit_store is None:
        _audit_store = SqlAuditLogStore(get_session_factory())
    return _audit_store


def get_audit_logger() -> AuditLogger:
    """Get global audit logger instance.

    One instance per process so shutdown can drain every pending write.
    """
    global _audit_logger
    if _audit_logger is None:
        settings = get_settings()
        _audit_logger = AuditLogger(
            get_audit_store(),
            enabled=settings.audit_logs_enabled,
            skip_fields=frozenset(settings.audit_skip_fields),
        )
    return _audit_logger


def peek_audit_logger() -> AuditLogger | None:
    """Return the audit logger if one was created, without creating it."""
    return _audit_logger
