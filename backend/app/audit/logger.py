"""Fire-and-forget audit trail writer.

Route handlers call ``log_create`` / ``log_update`` / ``log_delete`` after a
successful mutation. Each call builds the entry immediately (so later changes
to the caller's dicts cannot leak into it) and schedules the store write as a
detached asyncio task. The caller never awaits the write, and a failed write
is reported to the diagnostic log only.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder

from backend.app.audit.diff import DEFAULT_SKIP_FIELDS, ChangeSet, Record, compute_changes
from backend.app.db.context import AuthSession
from backend.app.db.repositories import AuditLogEntry, AuditLogStore
from backend.app.models.common import AuditAction, AuditEntityType
from backend.app.utils.logging import StructuredAuditLogger
from backend.app.utils.metrics import PrometheusAuditMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestInfo:
    """Client metadata captured from the incoming request."""

    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str] | None) -> "RequestInfo":
        """Extract client IP and user agent, best-effort.

        The IP is the first ``x-forwarded-for`` hop, falling back to
        ``x-real-ip``. Missing or unreadable headers yield None.
        """
        if headers is None:
            return cls()

        try:
            lowered = {key.lower(): value for key, value in headers.items()}

            ip_address = None
            forwarded_for = lowered.get("x-forwarded-for")
            if forwarded_for:
                ip_address = forwarded_for.split(",")[0].strip() or None
            if ip_address is None:
                ip_address = lowered.get("x-real-ip") or None

            return cls(ip_address=ip_address, user_agent=lowered.get("user-agent") or None)
        except Exception:
            logger.debug("Could not read request headers for audit entry", exc_info=True)
            return cls()


@dataclass(frozen=True)
class AuditContext:
    """Explicit per-request context for audit entries."""

    session: AuthSession | None = None
    request: RequestInfo = field(default_factory=RequestInfo)


def _user_info(session: AuthSession | None) -> tuple[uuid.UUID | None, str | None]:
    try:
        if session is None:
            return (None, None)
        return (session.user_id, session.email)
    except Exception:
        return (None, None)


def _as_uuid(value: Any) -> uuid.UUID | None:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class AuditLogger:
    """Builds audit entries and writes them in the background."""

    def __init__(
        self,
        store: AuditLogStore,
        *,
        enabled: bool = True,
        skip_fields: frozenset[str] = DEFAULT_SKIP_FIELDS,
        metrics: PrometheusAuditMetrics | None = None,
        diagnostics: StructuredAuditLogger | None = None,
    ) -> None:
        """Initialize audit logger.

        Args:
            store: Destination for entries
            enabled: When False every entry point is a no-op
            skip_fields: Keys ignored when diffing updates
            metrics: Metrics sink (default: Prometheus)
            diagnostics: Diagnostic log for write outcomes
        """
        self._store = store
        self._enabled = enabled
        self._skip_fields = skip_fields
        self._metrics = metrics or PrometheusAuditMetrics()
        self._diagnostics = diagnostics or StructuredAuditLogger()
        # Strong refs so detached tasks are not garbage collected mid-write
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        """Number of writes scheduled but not yet settled."""
        return len(self._pending)

    def log_create(
        self,
        ctx: AuditContext,
        entity_type: AuditEntityType,
        record: Record,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a create. ``record`` is the inserted row and should carry ``id``."""
        self._log(
            ctx,
            AuditAction.create,
            entity_type,
            entity_id=record.get("id"),
            old=None,
            new=record,
            metadata=metadata,
        )

    def log_update(
        self,
        ctx: AuditContext,
        entity_type: AuditEntityType,
        entity_id: uuid.UUID | str,
        old_record: Record,
        new_record: Record,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log an update. Skipped entirely when no tracked field changed."""
        self._log(
            ctx,
            AuditAction.update,
            entity_type,
            entity_id=entity_id,
            old=old_record,
            new=new_record,
            metadata=metadata,
        )

    def log_delete(
        self,
        ctx: AuditContext,
        entity_type: AuditEntityType,
        record: Record,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a (soft) delete. ``record`` is the deleted row."""
        self._log(
            ctx,
            AuditAction.delete,
            entity_type,
            entity_id=record.get("id"),
            old=record,
            new=None,
            metadata=metadata,
        )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding writes to settle (shutdown and tests)."""
        if not self._pending:
            return
        await asyncio.wait(set(self._pending), timeout=timeout)

    def _log(
        self,
        ctx: AuditContext,
        action: AuditAction,
        entity_type: AuditEntityType,
        *,
        entity_id: Any,
        old: Record | None,
        new: Record | None,
        metadata: dict[str, Any] | None,
    ) -> None:
        if not self._enabled:
            return

        try:
            changes = compute_changes(action, old, new, self._skip_fields)
            if changes.is_noop:
                self._metrics.inc_skipped(entity_type.value, "no_changes")
                return

            entry = self._build_entry(ctx, action, entity_type, entity_id, old, new, changes, metadata)
            task = asyncio.get_running_loop().create_task(self._write(entry))
        except Exception:
            # Never fail the mutation that triggered the audit entry
            logger.exception(
                "Failed to schedule audit write",
                extra={"structured": {"entity_type": entity_type.value, "action": action.value}},
            )
            return

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _build_entry(
        self,
        ctx: AuditContext,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: Any,
        old: Record | None,
        new: Record | None,
        changes: ChangeSet,
        metadata: dict[str, Any] | None,
    ) -> AuditLogEntry:
        user_id, user_email = _user_info(ctx.session)

        # Org from the new row for create/update, the old row for delete
        org_id = None
        if new is not None:
            org_id = new.get("organization_id")
        if org_id is None and old is not None:
            org_id = old.get("organization_id")

        return AuditLogEntry(
            organization_id=_as_uuid(org_id),
            entity_type=entity_type,
            entity_id=_as_uuid(entity_id),
            action=action,
            user_id=user_id,
            user_email=user_email,
            ip_address=ctx.request.ip_address,
            user_agent=ctx.request.user_agent,
            old_values=jsonable_encoder(changes.old_values),
            new_values=jsonable_encoder(changes.new_values),
            changed_fields=changes.changed_fields,
            metadata=jsonable_encoder(metadata) if metadata is not None else None,
            created_at=datetime.now(timezone.utc),
        )

    async def _write(self, entry: AuditLogEntry) -> None:
        start = time.perf_counter()
        try:
            await self._store.insert(entry)
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            self._metrics.record_write(entry.entity_type.value, entry.action.value, "error", latency_ms)
            self._diagnostics.log_write(entry, "error", latency_ms, error=e)
            return

        latency_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_write(entry.entity_type.value, entry.action.value, "success", latency_ms)
        self._diagnostics.log_write(entry, "success", latency_ms)
