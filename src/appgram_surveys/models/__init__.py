"""Public model re-exports for appgram_surveys.

Consumers should import from ``appgram_surveys.models`` rather than
reaching into sub-modules directly.
"""

# --- Nodes ---
from appgram_surveys.models.node import (
    Branch,
    BranchCondition,
    NodeOption,
    QuestionType,
    SurveyNode,
)

# --- Answers ---
from appgram_surveys.models.answer import Answer, answer_for_node

# --- Survey / response ---
from appgram_surveys.models.survey import (
    AnsweredNodeRef,
    SubmissionAnswer,
    SubmissionPayload,
    Survey,
    SurveyAnswer,
    SurveyDefinition,
    SurveyResponse,
    SurveySubmitInput,
)

# --- Navigation state ---
from appgram_surveys.models.state import (
    ActiveState,
    FailedState,
    NavigationState,
    SubmittedState,
    SubmittingState,
    TerminalState,
)

__all__ = [
    # Nodes
    "Branch",
    "BranchCondition",
    "NodeOption",
    "QuestionType",
    "SurveyNode",
    # Answers
    "Answer",
    "answer_for_node",
    # Survey / response
    "AnsweredNodeRef",
    "SubmissionAnswer",
    "SubmissionPayload",
    "Survey",
    "SurveyAnswer",
    "SurveyDefinition",
    "SurveyResponse",
    "SurveySubmitInput",
    # State
    "ActiveState",
    "FailedState",
    "NavigationState",
    "SubmittedState",
    "SubmittingState",
    "TerminalState",
]
