"""FastAPI application for the Rack Firmware Orchestrator."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
import uvicorn

from rack_firmware.api.routes import router
from rack_firmware.config.settings import get_settings
from rack_firmware.services.firmware_service import get_firmware_service
from rack_firmware.utils.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown hooks.

    Startup:
    - Initialize logger
    - Create data and firmware cache directories
    - Build the firmware service

    Shutdown:
    - Report background download runs still in flight (they are not cancelled)
    """
    settings = get_settings()
    logger = configure_logging(settings)
    logger.info("Rack Firmware Orchestrator starting up...")

    for directory in (Path(settings.data_dir), Path(settings.cache_root)):
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {directory}")

    service = get_firmware_service()
    if settings.fleet_manager_url:
        logger.info(f"Fleet manager: {settings.fleet_manager_url}")
    else:
        logger.warning("Fleet manager URL not set, firmware apply and job status are disabled")

    logger.info(f"Rack Firmware Orchestrator ready on port {settings.port}")

    yield

    if service.runner.pending:
        logger.warning(
            f"Shutting down with {service.runner.pending} firmware download runs in flight"
        )
    logger.info("Rack Firmware Orchestrator shutting down...")


app = FastAPI(
    title="Rack Firmware Orchestrator",
    description="Firmware caching and deployment for rack compute trays, switches and power shelves",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "rack-firmware", "version": "1.0.0"}


def main():
    """Main entry point for running the server."""
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
        access_log=True,
    )


if __name__ == "__main__":
    main()
