"""
FastAPI application entry point for the Clinic Outcomes API.

Configures logging and CORS, registers the API routers, and starts the ASGI
server when executed directly. The service is stateless: every endpoint
computes its answer from the request body, so there is no connection pool
or cache to set up or tear down.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinic_outcomes import __version__
from clinic_outcomes.api import api_router
from clinic_outcomes.core.config import get_settings
from clinic_outcomes.services.instruments import list_registry_entries

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Log the instrument catalog and analytics defaults around the app's lifetime.

    On startup:
        - Record which instrument codes are registered
        - Record the leadership defaults taken from Settings

    On shutdown:
        - Record that the service stopped
    """
    # Startup
    logger.info(f"{settings.app_name} starting")
    logger.info(
        "Instrument registry: "
        + ", ".join(entry.code.value for entry in list_registry_entries())
    )
    logger.info(
        f"Analytics defaults: window={settings.default_time_window.value}, "
        f"includeOverrides={settings.include_overrides_by_default}, "
        f"mcidCounting={settings.mcid_counting_mode.value}"
    )

    yield

    # Shutdown
    logger.info(f"{settings.app_name} shutting down")


# Application
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description=(
        "Outcome instrument scoring and leadership analytics for the clinic "
        "outcomes platform. Provides endpoints for instrument scoring, score "
        "progress, MCID summaries, and population rollups."
    ),
    lifespan=lifespan,
)

# CORS origins come from Settings.cors_allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# /instruments and /analytics
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Liveness probe. The service holds no connections, so this never degrades.

    Returns:
        {"status": "healthy"}
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Service metadata with links to the interactive and OpenAPI docs.

    Returns:
        Dict with the configured app name, package version, and doc paths
    """
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Local development server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "clinic_outcomes.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
