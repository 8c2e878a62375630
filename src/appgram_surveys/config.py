"""Client configuration — reads settings from environment variables.

All settings have defaults suitable for talking to a local preview server.
In production the values are typically overridden via env vars.
"""

import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientSettings:
    """Immutable client configuration read from the environment."""

    # Portal API root, e.g. https://api.appgram.dev
    base_url: str = "http://localhost:8090"
    project_id: str = ""
    org_slug: str | None = None
    project_slug: str | None = None

    # Per-request timeout in seconds
    timeout: float = 30.0

    # Fingerprint file (None → ~/.appgram/fingerprint)
    fingerprint_path: str | None = None

    log_level: str = "INFO"


def load_settings() -> ClientSettings:
    """Build settings from ``APPGRAM_*`` environment variables."""
    return ClientSettings(
        base_url=os.getenv("APPGRAM_BASE_URL", "http://localhost:8090"),
        project_id=os.getenv("APPGRAM_PROJECT_ID", ""),
        org_slug=os.getenv("APPGRAM_ORG_SLUG") or None,
        project_slug=os.getenv("APPGRAM_PROJECT_SLUG") or None,
        timeout=float(os.getenv("APPGRAM_TIMEOUT", "30")),
        fingerprint_path=os.getenv("APPGRAM_FINGERPRINT_PATH") or None,
        log_level=os.getenv("APPGRAM_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(settings: ClientSettings | None = None, *, level: str | None = None) -> None:
    """Apply the SDK log format at ``settings.log_level`` (or *level*).

    Meant for entry points only; library code never configures logging.
    """
    if settings is None:
        settings = load_settings()
    name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
