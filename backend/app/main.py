"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.app.api.deps import peek_audit_logger
from backend.app.api.routes.audit_logs import router as audit_logs_router
from backend.app.api.routes.companies import router as companies_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.organizations import router as organizations_router
from backend.app.api.routes.platform import router as platform_router
from backend.app.config import get_settings
from backend.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup, flush pending audit writes on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)

    yield

    audit_logger = peek_audit_logger()
    if audit_logger is not None and audit_logger.pending_count:
        logger.info(
            "Draining pending audit writes",
            extra={"structured": {"pending": audit_logger.pending_count}},
        )
        await audit_logger.drain(timeout=settings.audit_drain_timeout_sec)


app = FastAPI(title="ABM Platform API", version="0.1.0", lifespan=lifespan)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(companies_router)
app.include_router(audit_logs_router)
app.include_router(organizations_router)
app.include_router(platform_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "ABM Platform API", "version": "0.1.0"}
