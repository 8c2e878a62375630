"""Preview server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PreviewSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "127.0.0.1"
    port: int = 8090

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Survey directory (None → SurveyCatalog default, which is surveys/ from repo root)
    survey_dir: str | None = None

    # Logging
    log_level: str = "INFO"


def load_settings() -> PreviewSettings:
    """Build settings from ``PREVIEW_*`` environment variables."""
    raw_origins = os.getenv("PREVIEW_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return PreviewSettings(
        host=os.getenv("PREVIEW_HOST", "127.0.0.1"),
        port=int(os.getenv("PREVIEW_PORT", "8090")),
        cors_origins=origins,
        survey_dir=os.getenv("PREVIEW_SURVEY_DIR") or None,
        log_level=os.getenv("PREVIEW_LOG_LEVEL", "INFO").upper(),
    )
