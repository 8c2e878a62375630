"""SurveyCatalog — loads survey definitions from YAML files.

Offline counterpart of the portal: each ``*.yaml`` / ``*.yml`` file under the
catalog directory holds one survey.  Two layouts are accepted::

    # nested
    survey:
      id: srv_feedback
      slug: product-feedback
      name: Product feedback
    nodes:
      - id: n1
        question_type: yes_no
        ...

    # flat, exactly what GET /portal/surveys/{slug} returns
    id: srv_feedback
    slug: product-feedback
    name: Product feedback
    nodes: [...]

The catalog backs the preview server and the terminal walker, and can be
handed to :class:`~appgram_surveys.session.SurveySession` as a source.

Usage::

    catalog = SurveyCatalog()       # APPGRAM_SURVEY_DIR, or surveys/ in a checkout
    catalog.load()
    definition = catalog.get_by_slug("product-feedback")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from appgram_surveys.errors import NotFoundError
from appgram_surveys.interfaces import SurveySource
from appgram_surveys.models.survey import SurveyDefinition

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def default_survey_dir() -> Path:
    """Directory used when a catalog is built without one.

    ``APPGRAM_SURVEY_DIR`` wins.  Otherwise the ``surveys/`` folder of the
    source checkout this module lives in is used; an installed package has
    none, so the directory must then be given explicitly.

    Raises:
        FileNotFoundError: if neither applies
    """
    env = os.getenv("APPGRAM_SURVEY_DIR")
    if env:
        return Path(env)
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").is_file() and (parent / "surveys").is_dir():
            return parent / "surveys"
    raise FileNotFoundError(
        "No default survey directory; pass survey_dir or set APPGRAM_SURVEY_DIR"
    )


def load_yaml(path: Path | str) -> Any:
    """Parse one YAML file with ``yaml.safe_load``."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def load_survey_file(path: Path | str) -> SurveyDefinition:
    """Parse one survey YAML file into a :class:`SurveyDefinition`.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the document is not a mapping or fails validation
    """
    raw = load_yaml(path)
    if not isinstance(raw, dict):
        raise ValueError(f"Survey file {path} must contain a mapping")
    if "survey" in raw:
        return SurveyDefinition(survey=raw["survey"], nodes=raw.get("nodes") or [])
    return SurveyDefinition.from_api(raw)


# ---------------------------------------------------------------------------
# SurveyCatalog
# ---------------------------------------------------------------------------

class SurveyCatalog(SurveySource):
    """In-memory index of survey definitions loaded from a directory.

    Attributes populated after :meth:`load`:

        by_slug — dict[slug, SurveyDefinition]
        by_id   — dict[survey_id, SurveyDefinition]
    """

    def __init__(self, survey_dir: str | Path | None = None) -> None:
        if survey_dir is None:
            survey_dir = default_survey_dir()
        self._base = Path(survey_dir)

        # Populated by load()
        self.by_slug: dict[str, SurveyDefinition] = {}
        self.by_id: dict[str, SurveyDefinition] = {}

    @property
    def directory(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse every survey file under the catalog directory.

        Raises ``FileNotFoundError`` if the directory is missing and
        ``ValueError`` on invalid files or duplicate slugs / ids.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing survey directory: {self._base}")

        self.by_slug.clear()
        self.by_id.clear()
        files = sorted([*self._base.glob("*.yaml"), *self._base.glob("*.yml")])
        for path in files:
            self.add(load_survey_file(path), source=str(path))

        logger.info("SurveyCatalog loaded: %d survey(s) from %s", len(self.by_slug), self._base)

    def add(self, definition: SurveyDefinition, *, source: str = "<memory>") -> None:
        """Register one definition.  Raises ``ValueError`` on duplicates."""
        survey = definition.survey
        if survey.slug in self.by_slug:
            raise ValueError(f"Survey slug '{survey.slug}' already exists ({source})")
        if survey.id in self.by_id:
            raise ValueError(f"Survey id '{survey.id}' already exists ({source})")
        self.by_slug[survey.slug] = definition
        self.by_id[survey.id] = definition

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.by_slug)

    def slugs(self) -> list[str]:
        return sorted(self.by_slug)

    def get_by_slug(self, slug: str) -> SurveyDefinition:
        """Raises ``KeyError`` if the slug is unknown."""
        return self.by_slug[slug]

    def get_by_id(self, survey_id: str) -> SurveyDefinition:
        """Raises ``KeyError`` if the id is unknown."""
        return self.by_id[survey_id]

    async def get_survey(self, slug: str) -> SurveyDefinition:
        definition = self.by_slug.get(slug)
        if definition is None:
            raise NotFoundError(f"Survey not found: {slug}")
        return definition
