"""Delete audit trail entries older than the retention window.

Usage:
    python -m scripts.prune_audit_logs [--days N]
"""

import argparse
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from backend.app.api.deps import get_audit_store
from backend.app.config import get_settings
from backend.app.db.repositories import AuditLogStore
from backend.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)


async def prune_audit_logs(
    store: AuditLogStore, retention_days: int, now: datetime | None = None
) -> int:
    """Delete entries created more than ``retention_days`` before ``now``.

    Returns:
        Number of deleted entries
    """
    if retention_days < 1:
        raise ValueError("retention_days must be at least 1")

    if now is None:
        now = datetime.now(timezone.utc)

    cutoff = now - timedelta(days=retention_days)
    deleted = await store.prune_older_than(cutoff)

    logger.info(
        "Pruned audit logs",
        extra={"structured": {"cutoff": cutoff.isoformat(), "deleted": deleted}},
    )
    return deleted


def main() -> None:
    """Prune audit logs using the configured retention."""
    settings = get_settings()
    configure_logging(settings.log_level)

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--days", type=int, default=settings.audit_retention_days)
    args = parser.parse_args()

    deleted = asyncio.run(prune_audit_logs(get_audit_store(), args.days))
    print(f"Deleted {deleted} audit log entries older than {args.days} days")


if __name__ == "__main__":
    main()
