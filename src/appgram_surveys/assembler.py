"""Submission assembly — answers map to the portal's submission body."""

from __future__ import annotations

from typing import Any, Mapping

from appgram_surveys.models.answer import Answer
from appgram_surveys.models.survey import SubmissionAnswer, SubmissionPayload


def build_submission(
    answers: Mapping[str, Answer],
    survey_id: str,
    fingerprint: str,
    external_user_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> SubmissionPayload:
    """Build the submission payload for a finished survey.

    One record per answered node, carrying only the fields populated for
    that node's question type.  Nodes without a recorded answer (skipped,
    or routed around) are not included.  Record order follows the mapping's
    iteration order and carries no meaning.

    Raises:
        ValueError: if ``fingerprint`` is empty — every response must be
            attributable.
    """
    if not fingerprint:
        raise ValueError("fingerprint is required to submit a survey response")

    records = [
        SubmissionAnswer(node_id=node_id, **answer.model_dump(exclude_none=True))
        for node_id, answer in answers.items()
        if answer is not None and not answer.is_empty
    ]

    return SubmissionPayload(
        survey_id=survey_id,
        fingerprint=fingerprint,
        external_user_id=external_user_id,
        metadata=metadata,
        answers=records,
    )
