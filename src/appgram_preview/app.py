"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the survey catalog once
  - CORS middleware
  - Global exception handlers (ValueError / KeyError → 400 / 404)
  - Portal routes under ``/portal`` and graph routes under ``/api``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``appgram-preview`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appgram_surveys.catalog import SurveyCatalog

from appgram_preview.config import PreviewSettings, load_settings
from appgram_preview.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from appgram_preview.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the survey catalog at startup unless one was injected."""
    settings: PreviewSettings = app.state.settings

    if getattr(app.state, "catalog", None) is None:
        catalog = SurveyCatalog(survey_dir=settings.survey_dir)
        catalog.load()
        app.state.catalog = catalog

    yield

    logger.info("Preview server shutting down")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: PreviewSettings | None = None,
    catalog: SurveyCatalog | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    A pre-loaded *catalog* skips loading in the lifespan handler.
    """
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Appgram Survey Preview",
        description="Local stand-in for the Appgram portal survey endpoints",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.catalog = catalog

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — reports how many surveys are loaded."""
        loaded = app.state.catalog
        if loaded is None:
            return {"status": "starting"}
        return {"status": "ok", "surveys": len(loaded)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``appgram-preview``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "appgram_preview.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
