"""Portal survey endpoints — the three calls the SDK client makes.

Responses use the portal's ``{"success": true, "data": ...}`` envelope.
Submitted responses are validated against the survey's nodes, logged and
echoed back with fresh ids; nothing is stored.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from appgram_surveys.catalog import SurveyCatalog
from appgram_surveys.constants import DEFAULT_SUCCESS_MESSAGE
from appgram_surveys.models.survey import (
    AnsweredNodeRef,
    SubmissionAnswer,
    SurveyAnswer,
    SurveyDefinition,
    SurveyResponse,
)

from appgram_preview.dependencies import get_catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/surveys", tags=["surveys"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class SubmitResponseRequest(BaseModel):
    """Body for POST /surveys/{survey_id}/responses."""
    fingerprint: str
    external_user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    answers: List[SubmissionAnswer] = []


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _active(definition: SurveyDefinition) -> SurveyDefinition:
    if not definition.survey.is_active:
        raise ValueError(f"Survey '{definition.survey.slug}' is inactive")
    return definition


def _envelope(data: Any) -> dict:
    return {"success": True, "data": data}


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/customization/{survey_id}")
def get_survey_customization(
    survey_id: str,
    catalog: SurveyCatalog = Depends(get_catalog),
) -> dict:
    """Display settings for a survey's widget.

    Raises 404 (via KeyError) for an unknown survey id.
    """
    survey = catalog.get_by_id(survey_id).survey
    return _envelope({
        "survey_id": survey.id,
        "title": survey.name,
        "description": survey.description,
        "success_message": DEFAULT_SUCCESS_MESSAGE,
    })


@router.get("/{slug}")
def get_public_survey(
    slug: str,
    catalog: SurveyCatalog = Depends(get_catalog),
) -> dict:
    """Return survey metadata with its nodes, flat like the portal does.

    Unknown and inactive surveys both return 404.
    """
    definition = _active(catalog.get_by_slug(slug))
    data = definition.to_api()
    data["number_of_questions"] = sum(1 for n in definition.nodes if not n.is_terminal)
    return _envelope(data)


@router.post("/{survey_id}/responses", status_code=201)
def submit_survey_response(
    survey_id: str,
    body: SubmitResponseRequest,
    catalog: SurveyCatalog = Depends(get_catalog),
) -> dict:
    """Accept a response and echo it back as the portal would store it.

    Raises 400 for an empty fingerprint or answers to nodes outside the
    survey, 404 for an unknown or inactive survey.
    """
    definition = _active(catalog.get_by_id(survey_id))
    if not body.fingerprint:
        raise ValueError("fingerprint must not be empty")

    nodes = {n.id: n for n in definition.nodes}
    unknown = [a.node_id for a in body.answers if a.node_id not in nodes]
    if unknown:
        raise ValueError(f"Answers reference nodes outside the survey: {', '.join(unknown)}")

    response_id = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    answers = []
    for a in body.answers:
        node = nodes[a.node_id]
        answers.append(SurveyAnswer(
            id=str(uuid.uuid4()),
            response_id=response_id,
            created_at=now,
            node=AnsweredNodeRef(
                id=node.id,
                question=node.question,
                question_type=node.question_type,
                result_message=node.result_message,
            ),
            **a.model_dump(),
        ))

    response = SurveyResponse(
        id=response_id,
        survey_id=survey_id,
        external_user_id=body.external_user_id,
        fingerprint=body.fingerprint,
        metadata=body.metadata or {},
        created_at=now,
        answers=answers,
    )
    logger.info(
        "Response %s for survey %s: %d answer(s)",
        response_id, survey_id, len(answers),
    )
    return _envelope(response.model_dump(mode="json"))
