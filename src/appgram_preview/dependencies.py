"""FastAPI dependency injection — provides the survey catalog."""

from fastapi import Request

from appgram_surveys.catalog import SurveyCatalog


def get_catalog(request: Request) -> SurveyCatalog:
    """Return the catalog singleton loaded during lifespan."""
    return request.app.state.catalog
