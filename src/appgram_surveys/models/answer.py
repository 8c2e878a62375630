"""Answer model and per-type coercion of raw answer values.

An ``Answer`` carries exactly one populated field, chosen by the question
type of the node it answers:

    yes_no                      -> answer (bool)
    short_answer, paragraph     -> answer_text (str)
    multiple_choice, checkboxes -> answer_options (list[str], selection order)
    rating                      -> answer_rating (int)

The field names match the portal's submission wire format so an answer can
be dumped straight into a submission record.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel

from appgram_surveys.constants import CHOICE_TYPES, TEXT_TYPES
from appgram_surveys.models.node import SurveyNode

_ANSWER_FIELDS = ("answer", "answer_text", "answer_options", "answer_rating")

_TRUTHY = {"yes", "true", "y", "1"}
_FALSY = {"no", "false", "n", "0"}


class Answer(BaseModel):
    """The recorded answer for one node."""

    answer: Optional[bool] = None
    answer_text: Optional[str] = None
    answer_options: Optional[List[str]] = None
    answer_rating: Optional[int] = None

    @classmethod
    def yes_no(cls, value: bool) -> Answer:
        return cls(answer=value)

    @classmethod
    def text(cls, value: str) -> Answer:
        return cls(answer_text=value)

    @classmethod
    def options(cls, values: List[str]) -> Answer:
        return cls(answer_options=list(dict.fromkeys(values)))

    @classmethod
    def rating(cls, value: int) -> Answer:
        return cls(answer_rating=value)

    @property
    def is_empty(self) -> bool:
        """True when no field is populated."""
        return all(getattr(self, f) is None for f in _ANSWER_FIELDS)


def answer_for_node(node: SurveyNode, value: Any) -> Answer:
    """Coerce a raw UI value into an ``Answer`` for ``node``.

    Accepts an ``Answer`` as-is, a wire-format dict (any of the ``answer_*``
    keys), or a plain value interpreted by ``node.question_type``.

    Raises:
        ValueError: if the value cannot be an answer to this node (wrong
            shape, unknown option, rating out of bounds).
    """
    if isinstance(value, Answer):
        return value
    if isinstance(value, dict) and any(k in value for k in _ANSWER_FIELDS):
        return Answer(**value)

    qt = node.question_type
    if qt == "yes_no":
        return Answer.yes_no(_coerce_bool(node, value))
    if qt in TEXT_TYPES:
        if not isinstance(value, str):
            raise ValueError(
                f"node {node.id}: {qt} answer must be a string, got {type(value).__name__}"
            )
        return Answer.text(value)
    if qt in CHOICE_TYPES:
        return Answer.options(_coerce_options(node, value))
    if qt == "rating":
        return Answer.rating(_coerce_rating(node, value))
    raise ValueError(f"node {node.id}: unsupported question_type {qt!r}")


# ------------------------------------------------------------------
# Type-specific coercion
# ------------------------------------------------------------------

def _coerce_bool(node: SurveyNode, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        norm = value.strip().lower()
        if norm in _TRUTHY:
            return True
        if norm in _FALSY:
            return False
    raise ValueError(f"node {node.id}: yes_no answer must be yes/no, got {value!r}")


def _coerce_options(node: SurveyNode, value: Any) -> List[str]:
    if isinstance(value, str):
        selected = [value]
    elif isinstance(value, (list, tuple, set, frozenset)):
        selected = [str(v) for v in value]
    else:
        raise ValueError(
            f"node {node.id}: options answer must be a string or a list, "
            f"got {type(value).__name__}"
        )

    # Keep selection order, drop repeats
    selected = list(dict.fromkeys(selected))

    if node.options:
        allowed = set(node.option_values)
        unknown = [v for v in selected if v not in allowed]
        if unknown:
            raise ValueError(f"node {node.id}: unknown option(s) {unknown}")
    if node.question_type == "multiple_choice" and len(selected) > 1:
        raise ValueError(f"node {node.id}: multiple_choice accepts a single option")
    return selected


def _coerce_rating(node: SurveyNode, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"node {node.id}: rating must be an integer, got a boolean")
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"node {node.id}: rating must be an integer, got {value!r}") from None
    if not num.is_integer():
        raise ValueError(f"node {node.id}: rating must be an integer, got {value!r}")

    rating = int(num)
    lo, hi = node.rating_bounds
    if not lo <= rating <= hi:
        raise ValueError(f"node {node.id}: rating {rating} outside {lo}..{hi}")
    return rating
