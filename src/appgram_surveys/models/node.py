"""Survey node models for decision-tree surveys.

A survey is a flat list of nodes.  Each node is either a question or a
terminal result node (``result_message`` set).  The six question types share
one record type; fields that only make sense for some types are optional:

    - yes_no: legacy ``answer_yes_node_id`` / ``answer_no_node_id`` routing
    - short_answer / paragraph: free text
    - multiple_choice / checkboxes: ``options`` list
    - rating: ``min_rating`` / ``max_rating`` bounds (default 1..5)

Routing after an answer is resolved by :class:`~appgram_surveys.evaluator.BranchEvaluator`
from ``branches`` (first match wins) and the ``next_node_id`` fallback.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

from appgram_surveys.constants import DEFAULT_MAX_RATING, DEFAULT_MIN_RATING

QuestionType = Literal[
    "yes_no", "short_answer", "paragraph", "multiple_choice", "checkboxes", "rating",
]


# --- Shared option/branch models ---

class NodeOption(BaseModel):
    """A selectable option with a stored value and a display label."""

    value: str
    label: str


class BranchCondition(BaseModel):
    """Predicate applied to the answer of the node that owns the branch.

    ``type`` and ``value`` are kept as received.  An operator outside
    ``CONDITION_TYPES`` or a value that cannot be coerced is tolerated here;
    the evaluator treats it as a non-match.
    """

    type: str
    value: Any = None


class Branch(BaseModel):
    """Conditional edge: if ``condition`` matches, go to ``next_node_id``.

    A branch without a target never routes anywhere.
    """

    condition: BranchCondition
    next_node_id: Optional[str] = None


# --- Node ---

class SurveyNode(BaseModel):
    """One question or result node of a survey decision tree."""

    id: str
    survey_id: Optional[str] = None
    parent_id: Optional[str] = None
    question: str = ""
    question_type: QuestionType

    # multiple_choice / checkboxes
    options: List[NodeOption] = []

    # rating
    min_rating: Optional[int] = None
    max_rating: Optional[int] = None

    is_required: bool = True

    # Legacy yes/no routing
    answer_yes_node_id: Optional[str] = None
    answer_no_node_id: Optional[str] = None

    # Conditional routing for all question types
    branches: List[Branch] = []
    next_node_id: Optional[str] = None

    result_message: Optional[str] = None
    sort_order: int = 0

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("options", "branches", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        # The portal sends null for unused list fields
        return [] if v is None else v

    @field_validator("is_required", mode="before")
    @classmethod
    def _required_by_default(cls, v: Any) -> Any:
        return True if v is None else v

    @model_validator(mode="after")
    def _chk_rating(self):
        lo, hi = self.rating_bounds
        if lo > hi:
            raise ValueError(
                f"node {self.id}: min_rating ({lo}) must be <= max_rating ({hi})"
            )
        return self

    @property
    def is_terminal(self) -> bool:
        """True for display-only result nodes."""
        return self.result_message is not None

    @property
    def rating_bounds(self) -> tuple[int, int]:
        """Inclusive (min, max) rating range with defaults applied."""
        lo = DEFAULT_MIN_RATING if self.min_rating is None else self.min_rating
        hi = DEFAULT_MAX_RATING if self.max_rating is None else self.max_rating
        return lo, hi

    @property
    def option_values(self) -> List[str]:
        return [o.value for o in self.options]
