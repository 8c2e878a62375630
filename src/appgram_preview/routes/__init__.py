"""Route registration — portal endpoints under ``/portal``, tooling under ``/api``."""

from fastapi import FastAPI

from appgram_preview.routes.graph import router as graph_router
from appgram_preview.routes.surveys import router as surveys_router

PORTAL_PREFIX = "/portal"
API_PREFIX = "/api"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under their prefixes."""
    app.include_router(surveys_router, prefix=PORTAL_PREFIX)
    app.include_router(graph_router, prefix=API_PREFIX)
