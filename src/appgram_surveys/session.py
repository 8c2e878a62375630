"""SurveySession — fetch a survey by slug and hand out its navigator.

Glue between the collaborators and the state machine.  A session fetches the
survey once, keeps a user-facing error string when that fails (no automatic
retry; :meth:`refetch` is the manual retry action) and builds a
:class:`~appgram_surveys.navigator.SurveyNavigator` wired to the submitter
and the respondent's fingerprint.

Usage::

    session = SurveySession(client, client, "product-feedback")
    nav = await session.load()
    if nav is None:
        show_error(session.error)
"""

from __future__ import annotations

import logging
from typing import Any

from appgram_surveys.errors import AppgramError, get_error_message
from appgram_surveys.fingerprint import get_fingerprint
from appgram_surveys.interfaces import FingerprintProvider, ResponseSubmitter, SurveySource
from appgram_surveys.models.survey import Survey, SurveyDefinition
from appgram_surveys.navigator import SurveyNavigator

logger = logging.getLogger(__name__)


class SurveySession:
    """One rendered survey: its definition, load status and navigator.

    Args:
        source: where the survey definition is fetched from
        submitter: where the finished response is posted
        slug: the survey's public slug
        fingerprint: respondent fingerprint provider
        external_user_id: optional integrator-side user id for attribution
        metadata: optional metadata attached to the response
    """

    def __init__(
        self,
        source: SurveySource,
        submitter: ResponseSubmitter,
        slug: str,
        *,
        fingerprint: FingerprintProvider = get_fingerprint,
        external_user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._source = source
        self._submitter = submitter
        self.slug = slug
        self._fingerprint = fingerprint
        self._external_user_id = external_user_id
        self._metadata = metadata

        self.definition: SurveyDefinition | None = None
        self.navigator: SurveyNavigator | None = None
        self.error: str | None = None
        self.is_loading = False
        self._closed = False

    @property
    def survey(self) -> Survey | None:
        return None if self.definition is None else self.definition.survey

    async def load(self) -> SurveyNavigator | None:
        """Fetch the survey and build a fresh navigator.

        Returns None (and sets :attr:`error`) when the survey is not
        available.  An empty slug is a no-op.
        """
        if not self.slug:
            return None

        self.is_loading = True
        self.error = None
        error: str | None = None
        try:
            definition = await self._source.get_survey(self.slug)
        except AppgramError as exc:
            logger.warning("Could not load survey %s: %s", self.slug, exc)
            definition = None
            error = get_error_message(exc, "Failed to fetch survey")
        except Exception as exc:
            logger.exception("Unexpected error loading survey %s", self.slug)
            definition = None
            error = get_error_message(exc, "An error occurred")
        finally:
            self.is_loading = False

        if self._closed:
            # Stale fetch: the session was closed while waiting
            return None

        if definition is None:
            self.error = error
            return None

        if self.navigator is not None:
            self.navigator.close()
        self.definition = definition
        self.navigator = SurveyNavigator(
            definition.nodes,
            survey_id=definition.survey.id,
            submitter=self._submitter,
            fingerprint=self._fingerprint,
            external_user_id=self._external_user_id,
            metadata=self._metadata,
        )
        return self.navigator

    async def refetch(self) -> SurveyNavigator | None:
        """Manual retry of :meth:`load`; starts a new walk on success."""
        return await self.load()

    def close(self) -> None:
        """Tear down; pending fetches and submissions stop updating state."""
        self._closed = True
        if self.navigator is not None:
            self.navigator.close()
