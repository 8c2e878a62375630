"""SurveyNavigator state machine tests.

Covers the transitions documented in navigator.py:

  | From        | Action                      | To                               |
  |-------------|-----------------------------|----------------------------------|
  | active      | advance, successor exists   | active(next) / terminal(next)    |
  | active      | advance, no successor       | submitting → submitted / failed  |
  | active      | advance, required unanswered| active (no-op)                   |
  | active      | back, path > 1              | active(previous)                 |
  | failed      | retry / advance             | submitting → submitted / failed  |
  | failed      | back                        | active(last question)            |
  | terminal    | advance / back              | terminal (no-op)                 |
  | submitting  | advance                     | submitting (no-op)               |

Plus the stale-response guard after close() and the path-length cap for
cyclic routing.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from appgram_surveys.constants import DEFAULT_SUCCESS_MESSAGE
from appgram_surveys.errors import NetworkError
from appgram_surveys.interfaces import ResponseSubmitter
from appgram_surveys.models.answer import Answer
from appgram_surveys.models.state import (
    ActiveState,
    FailedState,
    SubmittedState,
    SubmittingState,
    TerminalState,
)
from appgram_surveys.models.survey import SurveyResponse
from appgram_surveys.navigator import SurveyNavigator
from appgram_surveys.repository import NodeRepository

from helpers.builders import RecordingSubmitter, branch, node, options, result_node


def _nav(nodes, submitter, **kwargs):
    kwargs.setdefault("fingerprint", lambda: "fp-test")
    return SurveyNavigator(nodes, survey_id="s1", submitter=submitter, **kwargs)


async def _wait_for_call(submitter, count=1):
    """Yield to the loop until the submitter has seen ``count`` calls."""
    for _ in range(100):
        if len(submitter.calls) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError("submitter was never called")


# =====================================================================
# Initial state
# =====================================================================


class TestInitialState:
    def test_starts_active_on_root(self, submitter):
        nav = _nav([node("r"), node("n2", parent_id="r")], submitter)
        assert nav.state == ActiveState(node_id="r")
        assert nav.path == ("r",)
        assert nav.current_node.id == "r"

    def test_root_is_first_parentless_node(self, submitter):
        nodes = [
            node("child", parent_id="top", sort_order=0),
            node("top", sort_order=1),
        ]
        nav = _nav(nodes, submitter)
        assert nav.current_node.id == "top"

    def test_accepts_prebuilt_repository(self, submitter):
        repo = NodeRepository([node("r")])
        nav = _nav(repo, submitter)
        assert nav.repository is repo

    @pytest.mark.asyncio
    async def test_empty_survey_has_no_active_node(self, submitter):
        nav = _nav([], submitter)
        assert nav.state == ActiveState(node_id=None)
        assert nav.current_node is None
        assert nav.can_advance is False
        assert await nav.advance() == ActiveState(node_id=None)
        assert submitter.calls == []

    def test_root_result_node_starts_terminal(self, submitter):
        nav = _nav([result_node("end", "Bye")], submitter)
        assert nav.state == TerminalState(node_id="end", result_message="Bye")


# =====================================================================
# Scenarios
# =====================================================================


class TestScenarios:
    @pytest.mark.asyncio
    async def test_yes_no_legacy_routing(self, submitter):
        """Root yes_no with both legacy ids; a yes answer moves to N2."""
        nodes = [
            node("root", "yes_no", question="Do you like it?",
                 answer_yes_node_id="N2", answer_no_node_id="N3"),
            node("N2", parent_id="root"),
            node("N3", parent_id="root"),
        ]
        nav = _nav(nodes, submitter)
        nav.answer("root", {"answer": True})
        state = await nav.advance()
        assert state == ActiveState(node_id="N2")
        assert nav.path == ("root", "N2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating,expected", [(5, "N9"), (2, "N10")])
    async def test_rating_branch(self, submitter, rating, expected):
        nodes = [
            node("rate", "rating", min_rating=1, max_rating=5,
                 branches=[branch("gte", 4, "N9")], next_node_id="N10"),
            node("N9", parent_id="rate"),
            node("N10", parent_id="rate"),
        ]
        nav = _nav(nodes, submitter)
        nav.answer("rate", {"answer_rating": rating})
        state = await nav.advance()
        assert state == ActiveState(node_id=expected)

    @pytest.mark.asyncio
    async def test_checkboxes_contains(self, submitter):
        nodes = [
            node("pick", "checkboxes", options=options("a", "b", "c"),
                 branches=[branch("contains", "b", "N5")]),
            node("N5", parent_id="pick"),
        ]
        nav = _nav(nodes, submitter)
        nav.answer("pick", ["a", "b"])
        assert await nav.advance() == ActiveState(node_id="N5")

    @pytest.mark.asyncio
    async def test_last_node_submits(self, submitter):
        """No successor: the machine passes through submitting exactly once."""
        submitter.gate = asyncio.Event()
        nav = _nav([node("only")], submitter)
        nav.answer("only", "done")

        task = asyncio.create_task(nav.advance())
        await _wait_for_call(submitter)
        assert nav.state == SubmittingState()
        assert nav.can_advance is False

        submitter.gate.set()
        state = await task
        assert isinstance(state, SubmittedState)
        assert state.success_message == DEFAULT_SUCCESS_MESSAGE
        assert state.response.id == "resp-1"
        assert len(submitter.calls) == 1


# =====================================================================
# advance()
# =====================================================================


class TestAdvance:
    @pytest.mark.asyncio
    async def test_required_without_answer_is_noop(self, submitter):
        nav = _nav([node("r", next_node_id="n2"), node("n2")], submitter)
        assert nav.can_advance is False
        assert await nav.advance() == ActiveState(node_id="r")
        assert nav.path == ("r",)

    @pytest.mark.asyncio
    async def test_required_with_empty_answer_is_noop(self, submitter):
        nav = _nav([node("r", next_node_id="n2"), node("n2")], submitter)
        nav.answer("r", Answer())
        assert await nav.advance() == ActiveState(node_id="r")

    @pytest.mark.asyncio
    async def test_optional_without_answer_uses_fallback(self, submitter):
        nodes = [
            node("r", "paragraph", is_required=False,
                 branches=[branch("contains", "x", "b")], next_node_id="n2"),
            node("b"),
            node("n2"),
        ]
        nav = _nav(nodes, submitter)
        assert nav.can_advance is True
        assert await nav.advance() == ActiveState(node_id="n2")

    @pytest.mark.asyncio
    async def test_optional_yes_no_skipped_takes_no_side(self, submitter):
        nodes = [
            node("r", "yes_no", is_required=False,
                 answer_yes_node_id="y", answer_no_node_id="n"),
            node("y"),
            node("n"),
        ]
        nav = _nav(nodes, submitter)
        assert await nav.advance() == ActiveState(node_id="n")

    @pytest.mark.asyncio
    async def test_required_defaults_to_true(self, submitter):
        nav = _nav([node("r", is_required=None, next_node_id="n2"), node("n2")], submitter)
        assert nav.current_node.is_required is True
        assert await nav.advance() == ActiveState(node_id="r")

    @pytest.mark.asyncio
    async def test_result_node_becomes_terminal(self, submitter):
        nodes = [
            node("r", "yes_no", answer_yes_node_id="end", answer_no_node_id="q2"),
            result_node("end", "Thanks for the yes"),
            node("q2"),
        ]
        nav = _nav(nodes, submitter)
        nav.answer("r", True)
        state = await nav.advance()
        assert state == TerminalState(node_id="end", result_message="Thanks for the yes")

    @pytest.mark.asyncio
    async def test_terminal_is_final(self, submitter):
        """Terminal nodes are display-only: no advance, no back, no submit."""
        nodes = [node("r", next_node_id="end"), result_node("end", "Bye")]
        nav = _nav(nodes, submitter)
        nav.answer("r", "x")
        terminal = await nav.advance()

        assert await nav.advance() == terminal
        assert nav.back() == terminal
        assert nav.can_advance is False
        assert nav.can_go_back is False
        assert submitter.calls == []

    @pytest.mark.asyncio
    async def test_unknown_successor_ends_survey(self, submitter):
        nav = _nav([node("r", next_node_id="ghost")], submitter)
        nav.answer("r", "x")
        state = await nav.advance()
        assert isinstance(state, SubmittedState)
        assert nav.path == ("r",)

    @pytest.mark.asyncio
    async def test_overwriting_answer_reroutes(self, submitter):
        nodes = [
            node("r", "yes_no", answer_yes_node_id="y", answer_no_node_id="n"),
            node("y"),
            node("n"),
        ]
        nav = _nav(nodes, submitter)
        nav.answer("r", True)
        nav.answer("r", False)
        assert await nav.advance() == ActiveState(node_id="n")

    @pytest.mark.asyncio
    async def test_same_answer_twice_is_idempotent(self, submitter):
        nodes = [
            node("r", "rating", branches=[branch("gte", 4, "hi")], next_node_id="lo"),
            node("hi"),
            node("lo"),
        ]
        once = _nav(nodes, submitter)
        once.answer("r", 4)
        twice = _nav(nodes, submitter)
        twice.answer("r", 4)
        twice.answer("r", 4)
        assert await once.advance() == await twice.advance() == ActiveState(node_id="hi")

    @pytest.mark.asyncio
    async def test_cycle_is_capped(self, submitter):
        nodes = [node("a", next_node_id="b"), node("b", next_node_id="a")]
        nav = _nav(nodes, submitter, max_path_length=3)
        nav.answer("a", "x")
        nav.answer("b", "y")

        assert await nav.advance() == ActiveState(node_id="b")
        assert await nav.advance() == ActiveState(node_id="a")
        state = await nav.advance()
        assert isinstance(state, SubmittedState)
        assert nav.path == ("a", "b", "a")
        assert len(submitter.calls) == 1


# =====================================================================
# answer()
# =====================================================================


class TestAnswer:
    def test_records_coerced_answer(self, submitter):
        nav = _nav([node("r", "rating")], submitter)
        recorded = nav.answer("r", "4")
        assert recorded == Answer.rating(4)
        assert nav.get_answer("r") == Answer.rating(4)
        assert nav.current_answer == Answer.rating(4)

    def test_invalid_value_raises(self, submitter):
        nav = _nav([node("r", "rating")], submitter)
        with pytest.raises(ValueError, match="outside"):
            nav.answer("r", 9)
        assert nav.get_answer("r") is None

    def test_unknown_node_raw_value_raises(self, submitter):
        nav = _nav([node("r")], submitter)
        with pytest.raises(ValueError, match="Node not found"):
            nav.answer("ghost", "x")

    def test_unknown_node_answer_object_recorded(self, submitter):
        nav = _nav([node("r")], submitter)
        nav.answer("ghost", Answer.text("x"))
        assert nav.get_answer("ghost") == Answer.text("x")

    def test_answer_never_changes_state(self, submitter):
        nav = _nav([node("r"), node("n2")], submitter)
        before = nav.state
        nav.answer("n2", "later")
        assert nav.state == before

    def test_clear_answer(self, submitter):
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")
        nav.clear_answer("r")
        nav.clear_answer("r")
        assert nav.get_answer("r") is None

    def test_answers_property_is_a_copy(self, submitter):
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")
        nav.answers.clear()
        assert nav.get_answer("r") == Answer.text("x")


# =====================================================================
# back()
# =====================================================================


class TestBack:
    @pytest.mark.asyncio
    async def test_back_to_root_keeps_answer(self, submitter):
        nav = _nav([node("r", next_node_id="n2"), node("n2")], submitter)
        nav.answer("r", "first")
        await nav.advance()
        assert nav.can_go_back is True

        assert nav.back() == ActiveState(node_id="r")
        assert nav.path == ("r",)
        assert nav.get_answer("r") == Answer.text("first")

    def test_back_at_root_is_noop(self, submitter):
        nav = _nav([node("r")], submitter)
        assert nav.can_go_back is False
        assert nav.back() == ActiveState(node_id="r")
        assert nav.path == ("r",)

    @pytest.mark.asyncio
    async def test_back_then_new_branch(self, submitter):
        """Answers on the abandoned branch stay and are still submitted."""
        nodes = [
            node("r", "yes_no", answer_yes_node_id="y", answer_no_node_id="n"),
            node("y"),
            node("n"),
        ]
        nav = _nav(nodes, submitter)
        nav.answer("r", True)
        await nav.advance()
        nav.answer("y", "yes branch")
        nav.back()

        nav.answer("r", False)
        assert await nav.advance() == ActiveState(node_id="n")
        nav.answer("n", "no branch")
        await nav.advance()

        _, payload = submitter.calls[0]
        assert {a.node_id for a in payload.answers} == {"r", "y", "n"}


# =====================================================================
# Submission failures and retry
# =====================================================================


class TestSubmission:
    @pytest.mark.asyncio
    async def test_payload_contents(self):
        submitter = RecordingSubmitter()
        nodes = [node("r", "yes_no", next_node_id="q"), node("q", "rating")]
        nav = _nav(
            nodes, submitter,
            external_user_id="u-1", metadata={"plan": "pro"},
        )
        nav.answer("r", "yes")
        await nav.advance()
        nav.answer("q", 5)
        await nav.advance()

        survey_id, payload = submitter.calls[0]
        assert survey_id == "s1"
        assert payload.fingerprint == "fp-test"
        assert payload.external_user_id == "u-1"
        assert payload.metadata == {"plan": "pro"}
        assert payload.to_wire() == {
            "fingerprint": "fp-test",
            "external_user_id": "u-1",
            "metadata": {"plan": "pro"},
            "answers": [
                {"node_id": "r", "answer": True},
                {"node_id": "q", "answer_rating": 5},
            ],
        }

    @pytest.mark.asyncio
    async def test_failure_then_retry(self):
        submitter = RecordingSubmitter(fail_with=NetworkError("Portal unreachable"))
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")

        state = await nav.advance()
        assert state == FailedState(error="Portal unreachable")
        assert nav.can_go_back is True

        submitter.fail_with = None
        state = await nav.retry()
        assert isinstance(state, SubmittedState)
        assert len(submitter.calls) == 2

    @pytest.mark.asyncio
    async def test_submitter_awaited_once(self):
        """AsyncMock standing in for the portal client."""
        submitter = AsyncMock(spec=ResponseSubmitter)
        submitter.submit_response.return_value = SurveyResponse(
            id="r1", survey_id="s1", fingerprint="fp-test",
        )
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")

        state = await nav.advance()
        submitter.submit_response.assert_awaited_once()
        survey_id, payload = submitter.submit_response.await_args.args
        assert survey_id == "s1"
        assert [a.node_id for a in payload.answers] == ["r"]
        assert state.response.id == "r1"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failed(self):
        submitter = RecordingSubmitter(fail_with=RuntimeError("boom"))
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")
        assert await nav.advance() == FailedState(error="boom")

    @pytest.mark.asyncio
    async def test_empty_fingerprint_fails(self, submitter):
        nav = _nav([node("r")], submitter, fingerprint=lambda: "")
        nav.answer("r", "x")
        state = await nav.advance()
        assert isinstance(state, FailedState)
        assert "fingerprint" in state.error
        assert submitter.calls == []

    @pytest.mark.asyncio
    async def test_advance_from_failed_resubmits(self):
        submitter = RecordingSubmitter(fail_with=NetworkError())
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")
        await nav.advance()

        submitter.fail_with = None
        assert isinstance(await nav.advance(), SubmittedState)

    @pytest.mark.asyncio
    async def test_back_from_failed_keeps_path(self):
        submitter = RecordingSubmitter(fail_with=NetworkError())
        nav = _nav([node("r", next_node_id="q"), node("q")], submitter)
        nav.answer("r", "x")
        await nav.advance()
        nav.answer("q", "y")
        await nav.advance()

        assert nav.back() == ActiveState(node_id="q")
        assert nav.path == ("r", "q")

    @pytest.mark.asyncio
    async def test_retry_outside_failed_is_noop(self, submitter):
        nav = _nav([node("r")], submitter)
        assert await nav.retry() == ActiveState(node_id="r")
        assert submitter.calls == []

    @pytest.mark.asyncio
    async def test_double_advance_submits_once(self, submitter):
        submitter.gate = asyncio.Event()
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")

        first = asyncio.create_task(nav.advance())
        await _wait_for_call(submitter)
        assert await nav.advance() == SubmittingState()
        assert nav.back() == SubmittingState()

        submitter.gate.set()
        await first
        assert len(submitter.calls) == 1

    @pytest.mark.asyncio
    async def test_submitted_is_final(self, submitter):
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")
        done = await nav.advance()
        assert await nav.advance() == done
        assert await nav.retry() == done
        assert len(submitter.calls) == 1


# =====================================================================
# close()
# =====================================================================


class TestClose:
    @pytest.mark.asyncio
    async def test_late_outcome_ignored_after_close(self, submitter):
        submitter.gate = asyncio.Event()
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")

        task = asyncio.create_task(nav.advance())
        await _wait_for_call(submitter)
        nav.close()
        submitter.gate.set()

        outcome = await task
        assert isinstance(outcome, SubmittedState)
        assert nav.state == SubmittingState()
        assert nav.is_closed is True

    @pytest.mark.asyncio
    async def test_closed_navigator_does_not_advance(self, submitter):
        nav = _nav([node("r")], submitter)
        nav.answer("r", "x")
        nav.close()
        assert await nav.advance() == ActiveState(node_id="r")
        assert submitter.calls == []
