"""Logging setup and structured audit-write logging."""

import logging
from typing import Any

from backend.app.db.repositories import AuditLogEntry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class StructuredAuditLogger:
    """Structured diagnostic logger for audit trail writes.

    This is the diagnostic channel: failed writes end up here and nowhere else.
    """

    def log_write(
        self,
        entry: AuditLogEntry,
        outcome: str,
        latency_ms: float,
        error: BaseException | None = None,
    ) -> None:
        """Log an audit write attempt with structured data."""
        log_data: dict[str, Any] = {
            "entity_type": entry.entity_type.value,
            "entity_id": str(entry.entity_id) if entry.entity_id else None,
            "action": entry.action.value,
            "org_id": str(entry.organization_id) if entry.organization_id else None,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        log_msg = f"Audit write: {entry.entity_type.value}.{entry.action.value} - {outcome}"

        if error is None:
            logger.debug(log_msg, extra={"structured": log_data})
        else:
            log_data["error_reason"] = type(error).__name__
            logger.error(log_msg, exc_info=error, extra={"structured": log_data})
