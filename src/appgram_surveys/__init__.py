"""appgram_surveys — decision-tree survey SDK for the Appgram portal.

Public API:
    SurveyNavigator  — per-respondent state machine (answer / advance / back / retry)
    BranchEvaluator  — resolves the next node from a node and its answer
    NodeRepository   — ordered, read-only node collection with root lookup
    build_submission — answers map to the submission payload
    SurveySession    — fetch a survey by slug and build its navigator

Collaborators:
    SurveySource      — ABC: fetch a survey definition by slug
    ResponseSubmitter — ABC: store a finished response
    AppgramClient     — httpx client implementing both
    SurveyCatalog     — YAML-backed offline SurveySource
    get_fingerprint   — stable anonymous respondent id

Errors:
    AppgramError, NotFoundError, NetworkError
"""

from appgram_surveys.assembler import build_submission
from appgram_surveys.catalog import SurveyCatalog, load_survey_file
from appgram_surveys.client import AppgramClient
from appgram_surveys.errors import AppgramError, NetworkError, NotFoundError
from appgram_surveys.evaluator import BranchEvaluator
from appgram_surveys.fingerprint import fingerprint_provider, get_fingerprint, reset_fingerprint
from appgram_surveys.interfaces import FingerprintProvider, ResponseSubmitter, SurveySource
from appgram_surveys.models import (
    ActiveState,
    Answer,
    Branch,
    BranchCondition,
    FailedState,
    NavigationState,
    NodeOption,
    SubmissionAnswer,
    SubmissionPayload,
    SubmittedState,
    SubmittingState,
    Survey,
    SurveyDefinition,
    SurveyNode,
    SurveyResponse,
    TerminalState,
)
from appgram_surveys.navigator import SurveyNavigator
from appgram_surveys.repository import NodeRepository
from appgram_surveys.session import SurveySession

__all__ = [
    # Core
    "SurveyNavigator",
    "BranchEvaluator",
    "NodeRepository",
    "build_submission",
    "SurveySession",
    # Collaborators
    "SurveySource",
    "ResponseSubmitter",
    "FingerprintProvider",
    "AppgramClient",
    "SurveyCatalog",
    "load_survey_file",
    "fingerprint_provider",
    "get_fingerprint",
    "reset_fingerprint",
    # Errors
    "AppgramError",
    "NotFoundError",
    "NetworkError",
    # Models
    "Answer",
    "Branch",
    "BranchCondition",
    "NodeOption",
    "SubmissionAnswer",
    "SubmissionPayload",
    "Survey",
    "SurveyDefinition",
    "SurveyNode",
    "SurveyResponse",
    # State
    "NavigationState",
    "ActiveState",
    "TerminalState",
    "SubmittingState",
    "SubmittedState",
    "FailedState",
]
