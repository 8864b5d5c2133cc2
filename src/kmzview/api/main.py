"""
Main FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kmzview import __version__
from kmzview.api.error_handlers import register_error_handlers
from kmzview.api.kmz import router as kmz_router
from kmzview.api.middleware import (
    LoggingContextMiddleware,
    RequestCorrelationMiddleware,
)
from kmzview.api.upload import router as upload_router
from kmzview.core.config import settings
from kmzview.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for FastAPI application.

    Configures logging on startup; JSON logs to a rotating file in production.
    """
    log_file = None
    if settings.environment == "production":
        log_file = Path(settings.uploads_dir) / "logs" / "kmzview.log"

    setup_logging(
        log_level="DEBUG" if settings.environment == "development" else "INFO",
        log_file=log_file,
        json_logs=(settings.environment == "production"),
        enable_console=True,
    )
    logger.info(f"Starting kmzview API v{__version__} in {settings.environment} mode")

    yield

    logger.info("Shutting down kmzview API")


app = FastAPI(
    title="kmzview API",
    description="KMZ upload and NetworkLink/GroundOverlay viewer",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added in reverse order of execution
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(RequestCorrelationMiddleware)

register_error_handlers(app)

app.include_router(upload_router)
app.include_router(kmz_router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root() -> dict[str, str]:
    """
    Root endpoint returning API information.

    Returns:
        dict[str, str]: API information including name and version.
    """
    return {
        "name": "kmzview API",
        "version": __version__,
        "description": "KMZ upload and viewer",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def run() -> None:
    """Run the API with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run("kmzview.api.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
