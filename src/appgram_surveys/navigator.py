"""SurveyNavigator — the per-respondent survey state machine.

One navigator instance owns one respondent's walk through one survey: the
stack of visited node ids, the answers recorded so far and the current
:data:`~appgram_surveys.models.state.NavigationState`.  It is synchronous
except for the final submission, which is awaited inside :meth:`advance` /
:meth:`retry`.

State transitions::

    active ──advance──► active            (next question)
       │       └──────► terminal          (next node has a result message)
       │       └──────► submitting ──► submitted
       │                     └───────► failed ──retry/advance──► submitting
       ◄──back── active
       ◄──back── failed                   (back to the last question)

Usage::

    nav = SurveyNavigator(nodes, survey_id="s1", submitter=client)
    nav.answer(nav.current_node.id, True)
    state = await nav.advance()
    if state.type == "terminal":
        show(state.result_message)
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from appgram_surveys.assembler import build_submission
from appgram_surveys.constants import DEFAULT_SUCCESS_MESSAGE, MAX_PATH_LENGTH
from appgram_surveys.errors import AppgramError, get_error_message
from appgram_surveys.evaluator import BranchEvaluator
from appgram_surveys.fingerprint import get_fingerprint
from appgram_surveys.interfaces import FingerprintProvider, ResponseSubmitter
from appgram_surveys.models.answer import Answer, answer_for_node
from appgram_surveys.models.node import SurveyNode
from appgram_surveys.models.state import (
    ActiveState,
    FailedState,
    NavigationState,
    SubmittedState,
    SubmittingState,
    TerminalState,
)
from appgram_surveys.models.survey import SubmissionPayload
from appgram_surveys.repository import NodeRepository

logger = logging.getLogger(__name__)


class SurveyNavigator:
    """Walks one respondent through a survey decision tree.

    Args:
        nodes: the survey's nodes, or a prebuilt :class:`NodeRepository`
        survey_id: id used for the submission
        submitter: collaborator that stores the finished response
        fingerprint: provider of the respondent fingerprint; called once
            per submission attempt
        external_user_id: optional integrator-side user id
        metadata: optional free-form metadata attached to the response
        max_path_length: once the path holds this many entries, the next
            advance ends the survey instead of pushing
    """

    def __init__(
        self,
        nodes: NodeRepository | Iterable[SurveyNode],
        *,
        survey_id: str,
        submitter: ResponseSubmitter,
        fingerprint: FingerprintProvider = get_fingerprint,
        external_user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        max_path_length: int = MAX_PATH_LENGTH,
    ) -> None:
        self._repo = nodes if isinstance(nodes, NodeRepository) else NodeRepository(nodes)
        self._evaluator = BranchEvaluator()
        self._survey_id = survey_id
        self._submitter = submitter
        self._fingerprint = fingerprint
        self._external_user_id = external_user_id
        self._metadata = metadata
        self._max_path_length = max_path_length

        self._answers: dict[str, Answer] = {}
        self._closed = False

        root = self._repo.root
        self._path: list[str] = [root.id] if root is not None else []
        if root is None:
            logger.warning("Survey %s has no nodes; nothing to navigate", survey_id)
        self._state: NavigationState = self._state_for(root)

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def survey_id(self) -> str:
        return self._survey_id

    @property
    def repository(self) -> NodeRepository:
        return self._repo

    @property
    def path(self) -> tuple[str, ...]:
        """Visited node ids; the last one is the current node."""
        return tuple(self._path)

    @property
    def answers(self) -> dict[str, Answer]:
        """Copy of the recorded answers keyed by node id."""
        return dict(self._answers)

    @property
    def current_node(self) -> SurveyNode | None:
        """The node on top of the path, or None if it cannot be resolved."""
        if not self._path:
            return None
        return self._repo.get(self._path[-1])

    @property
    def current_answer(self) -> Answer | None:
        node = self.current_node
        return None if node is None else self._answers.get(node.id)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def can_advance(self) -> bool:
        """True if :meth:`advance` would do something right now."""
        if self._closed or self._state.type not in ("active", "failed"):
            return False
        node = self.current_node
        if node is None or node.is_terminal:
            return False
        return not (node.is_required and not self._has_answer(node.id))

    @property
    def can_go_back(self) -> bool:
        if self._state.type == "failed":
            return True
        return self._state.type == "active" and len(self._path) > 1

    def get_answer(self, node_id: str) -> Answer | None:
        return self._answers.get(node_id)

    # ==================================================================
    # Transitions
    # ==================================================================

    def answer(self, node_id: str, value: Any) -> Answer:
        """Record (or overwrite) the answer for ``node_id``.

        ``value`` may be an :class:`Answer`, a wire-format dict, or a plain
        value coerced by the node's question type.  Never changes state;
        earlier nodes on the path can be re-answered too.

        Raises:
            ValueError: if the value does not fit the node, or the node is
                unknown and ``value`` is not already an ``Answer``.
        """
        if isinstance(value, Answer):
            recorded = value
        else:
            node = self._repo.get(node_id)
            if node is None:
                raise ValueError(f"Node not found: {node_id}")
            recorded = answer_for_node(node, value)

        self._answers[node_id] = recorded
        return recorded

    def clear_answer(self, node_id: str) -> None:
        """Drop the answer for ``node_id`` (e.g. an optional question was reset)."""
        self._answers.pop(node_id, None)

    async def advance(self) -> NavigationState:
        """Move past the current node.

        No-op while submitting, after the survey ended, when the current
        node is a required question without an answer, or when there is no
        current node.  From ``failed``, the current node is re-evaluated, so
        a changed answer can still route somewhere else.
        """
        if self._closed:
            return self._state

        kind = self._state.type
        if kind == "submitting":
            logger.debug("advance() ignored: submission already in flight")
            return self._state
        if kind in ("terminal", "submitted"):
            return self._state

        node = self.current_node
        if node is None:
            logger.warning(
                "advance() with no current node (path=%s) in survey %s",
                self._path, self._survey_id,
            )
            return self._state

        if node.is_required and not self._has_answer(node.id):
            return self._state

        next_id = self._evaluator.next_node(node, self._answers.get(node.id), self._repo)
        target = self._repo.get(next_id)

        if next_id is not None and target is None:
            logger.warning(
                "Node %s routes to unknown node %s; ending survey %s",
                node.id, next_id, self._survey_id,
            )
        elif target is not None and len(self._path) >= self._max_path_length:
            logger.warning(
                "Survey %s path reached %d entries (cyclic routing?); ending survey",
                self._survey_id, len(self._path),
            )
            target = None

        if target is None:
            return await self._submit()

        self._path.append(target.id)
        self._state = self._state_for(target)
        return self._state

    def back(self) -> NavigationState:
        """Return to the previous question.

        From ``active``, pops the path (no-op at the root).  From
        ``failed``, returns to the last question without popping.  No-op in
        every other state.
        """
        kind = self._state.type
        if kind == "failed":
            self._state = self._state_for(self.current_node)
            return self._state
        if kind != "active" or len(self._path) <= 1:
            return self._state

        self._path.pop()
        self._state = self._state_for(self.current_node)
        return self._state

    async def retry(self) -> NavigationState:
        """Resubmit after a failure.  No-op in any other state."""
        if self._closed or self._state.type != "failed":
            return self._state
        return await self._submit()

    def close(self) -> None:
        """Detach the navigator; in-flight submissions no longer update state."""
        self._closed = True

    # ==================================================================
    # Submission
    # ==================================================================

    def build_submission(self, fingerprint: str) -> SubmissionPayload:
        """Assemble the submission for the answers recorded so far."""
        return build_submission(
            self._answers,
            self._survey_id,
            fingerprint,
            external_user_id=self._external_user_id,
            metadata=self._metadata,
        )

    async def _submit(self) -> NavigationState:
        self._state = SubmittingState()

        outcome: NavigationState
        try:
            payload = self.build_submission(self._fingerprint())
            logger.info(
                "Submitting survey %s with %d answer(s)",
                self._survey_id, len(payload.answers),
            )
            response = await self._submitter.submit_response(self._survey_id, payload)
        except (AppgramError, ValueError) as exc:
            logger.warning("Survey %s submission failed: %s", self._survey_id, exc)
            outcome = FailedState(
                error=get_error_message(exc, "Failed to submit survey response")
            )
        except Exception as exc:
            logger.exception("Unexpected error submitting survey %s", self._survey_id)
            outcome = FailedState(error=get_error_message(exc, "An error occurred"))
        else:
            outcome = SubmittedState(success_message=DEFAULT_SUCCESS_MESSAGE, response=response)

        if self._closed:
            logger.debug("Navigator closed during submission; discarding %s", outcome.type)
            return outcome

        self._state = outcome
        return outcome

    # ==================================================================
    # Helpers
    # ==================================================================

    def _has_answer(self, node_id: str) -> bool:
        ans = self._answers.get(node_id)
        return ans is not None and not ans.is_empty

    @staticmethod
    def _state_for(node: SurveyNode | None) -> NavigationState:
        if node is None:
            return ActiveState(node_id=None)
        if node.is_terminal:
            return TerminalState(node_id=node.id, result_message=node.result_message)
        return ActiveState(node_id=node.id)
