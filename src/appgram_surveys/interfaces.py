"""Abstract interfaces for the survey core's external collaborators.

The navigator and the session only ever talk to these contracts.  The SDK
ships concrete implementations (:class:`~appgram_surveys.client.AppgramClient`
for both, :class:`~appgram_surveys.catalog.SurveyCatalog` as an offline
source) but integrators may plug in their own.

Typical integration flow::

    source: SurveySource = AppgramClient(base_url=..., project_id=...)
    definition = await source.get_survey("product-feedback")

    navigator = SurveyNavigator(
        definition.nodes,
        survey_id=definition.survey.id,
        submitter=source,            # AppgramClient is also a submitter
    )
    navigator.answer(navigator.current_node.id, True)
    await navigator.advance()
"""

from abc import ABC, abstractmethod
from typing import Callable

from appgram_surveys.models.survey import (
    SubmissionPayload,
    SurveyDefinition,
    SurveyResponse,
)

# Synchronous provider of a stable, opaque respondent id.
FingerprintProvider = Callable[[], str]


class SurveySource(ABC):
    """Where survey definitions come from."""

    @abstractmethod
    async def get_survey(self, slug: str) -> SurveyDefinition:
        """Fetch a survey and its nodes by slug.

        Parameters
        ----------
        slug:
            The survey's public slug.

        Returns
        -------
        SurveyDefinition
            Survey metadata plus its node records.

        Raises
        ------
        NotFoundError
            No survey with that slug.
        NetworkError
            The source could not be reached.
        """
        ...


class ResponseSubmitter(ABC):
    """Where finished answer sets go."""

    @abstractmethod
    async def submit_response(
        self, survey_id: str, payload: SubmissionPayload
    ) -> SurveyResponse:
        """Store one survey response.

        Parameters
        ----------
        survey_id:
            Id of the survey being answered.
        payload:
            The assembled submission body.

        Returns
        -------
        SurveyResponse
            The stored response as echoed back.

        Raises
        ------
        AppgramError
            On any failure; the message is shown to the respondent.
        """
        ...
