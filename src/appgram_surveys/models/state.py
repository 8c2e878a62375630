"""Navigation state models — what the navigator reports after each transition.

State types:
  - ActiveState: a question is on screen and accepts answers
  - TerminalState: a result node is on screen; no further input
  - SubmittingState: the answer set is being posted
  - SubmittedState: the submitter accepted the response
  - FailedState: the submitter failed; the navigator can retry

The ``NavigationState`` union covers all five so callers can dispatch on
``type``.
"""

from typing import Literal, Optional

from pydantic import BaseModel

from appgram_surveys.models.survey import SurveyResponse


class ActiveState(BaseModel):
    """A question node is active.

    ``node_id`` is None when the survey has no resolvable root; callers
    treat that like an error screen.
    """

    type: Literal["active"] = "active"
    node_id: Optional[str] = None


class TerminalState(BaseModel):
    """A display-only result node was reached."""

    type: Literal["terminal"] = "terminal"
    node_id: str
    result_message: str


class SubmittingState(BaseModel):
    """The response is in flight."""

    type: Literal["submitting"] = "submitting"


class SubmittedState(BaseModel):
    """The response was accepted."""

    type: Literal["submitted"] = "submitted"
    success_message: str
    response: Optional[SurveyResponse] = None


class FailedState(BaseModel):
    """The submission failed.  ``error`` is safe to show to the respondent."""

    type: Literal["failed"] = "failed"
    error: str


# Callers can match on state.type to pick what to render.
NavigationState = ActiveState | TerminalState | SubmittingState | SubmittedState | FailedState
