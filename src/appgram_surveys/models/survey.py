"""Survey, response and submission models — the portal API contract.

  Read side (GET /portal/surveys/{slug}):
    - Survey: survey metadata
    - SurveyDefinition: a survey plus its nodes, as returned by the portal

  Write side (POST /portal/surveys/{survey_id}/responses):
    - SubmissionAnswer: one answered node in the submission body
    - SubmissionPayload: the full submission body (``SurveySubmitInput``)
    - SurveyResponse / SurveyAnswer: the stored response echoed back
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from appgram_surveys.models.node import QuestionType, SurveyNode


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------

class Survey(BaseModel):
    """Survey metadata.  ``nodes`` are split off into :class:`SurveyDefinition`."""

    id: str
    project_id: Optional[str] = None
    name: str
    slug: str
    description: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    number_of_questions: Optional[int] = None
    number_of_responses: Optional[int] = None


class SurveyDefinition(BaseModel):
    """A survey together with the node records that make up its tree."""

    survey: Survey
    nodes: List[SurveyNode] = []

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> SurveyDefinition:
        """Build from the portal's flat ``{...survey fields, nodes: [...]}`` shape."""
        fields = dict(data)
        nodes = fields.pop("nodes", None) or []
        return cls(survey=Survey(**fields), nodes=nodes)

    def to_api(self) -> Dict[str, Any]:
        """Inverse of :meth:`from_api` — the flat portal shape."""
        data = self.survey.model_dump(mode="json", exclude_none=True)
        data["nodes"] = [n.model_dump(mode="json") for n in self.nodes]
        return data


# ---------------------------------------------------------------------------
# Write side
# ---------------------------------------------------------------------------

class SubmissionAnswer(BaseModel):
    """One answered node inside a submission.  Only populated fields are sent."""

    node_id: str
    answer: Optional[bool] = None
    answer_text: Optional[str] = None
    answer_options: Optional[List[str]] = None
    answer_rating: Optional[int] = None


class SubmissionPayload(BaseModel):
    """Body of a survey response submission.

    ``survey_id`` travels in the URL, not in the body, so it is excluded from
    serialisation.
    """

    survey_id: str = Field(exclude=True)
    fingerprint: str
    external_user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    answers: List[SubmissionAnswer] = []

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with unset optional fields dropped."""
        return self.model_dump(mode="json", exclude_none=True)


# Portal name for the same body
SurveySubmitInput = SubmissionPayload


class AnsweredNodeRef(BaseModel):
    """Compact node reference embedded in a stored answer."""

    id: str
    question: str
    question_type: Optional[QuestionType] = None
    result_message: Optional[str] = None


class SurveyAnswer(BaseModel):
    """A stored answer, as echoed back by the portal."""

    id: str
    response_id: str
    node_id: str

    answer: Optional[bool] = None
    answer_text: Optional[str] = None
    answer_options: Optional[List[str]] = None
    answer_rating: Optional[int] = None

    created_at: Optional[datetime] = None
    node: Optional[AnsweredNodeRef] = None


class SurveyResponse(BaseModel):
    """A stored survey response."""

    id: str
    survey_id: str
    external_user_id: Optional[str] = None
    fingerprint: str
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    answers: Optional[List[SurveyAnswer]] = None
