"""
alertcapture - FastAPI Application
Main entry point for the alert packet capture service.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from alertcapture import __version__
from alertcapture.config.settings import get_settings
from alertcapture.controllers.alert_controller import legacy_router
from alertcapture.controllers.alert_controller import router as alert_router
from alertcapture.models.api_models import HealthResponse
from alertcapture.services.capture_orchestrator import CaptureOrchestrator
from alertcapture.utils.logger import get_module_logger, setup_logging

# Setup logger for this module
logger = get_module_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()

    setup_logging(settings.log_level)

    missing = settings.missing_credentials()
    if missing:
        # Not fatal: each alert fails with a credential error until configured
        logger.warning(f"Service credentials not configured: {', '.join(missing)}")
    if not settings.packet_capture_storage_account:
        logger.warning("PACKET_CAPTURE_STORAGE_ACCOUNT is not configured")

    app.state.settings = settings
    app.state.capture_orchestrator = CaptureOrchestrator(settings)
    logger.info(
        f"alertcapture started (max captures per watcher: {settings.max_packet_captures}, "
        f"capture duration: {settings.capture_time_limit_seconds}s)"
    )

    yield

    logger.info("alertcapture shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="alertcapture",
    description="Provisions packet captures on virtual machines in response to monitoring alerts",
    version=__version__,
    lifespan=lifespan
)
app.state.settings = get_settings()

app.include_router(alert_router)
app.include_router(legacy_router)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check with configuration completeness."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        service="alertcapture",
        version=__version__,
        credentials_configured=not settings.missing_credentials(),
        storage_account_configured=bool(settings.packet_capture_storage_account),
    )


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "alertcapture.main:app",
        host=settings.host,
        port=settings.port,
    )
