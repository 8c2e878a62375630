"""BranchEvaluator — resolves the successor of a node from its answer.

Resolution order (first applicable rule wins):

  1. **yes_no legacy routing**: ``answer_yes_node_id`` / ``answer_no_node_id``
     for the side the answer took (no answer counts as "no"), when that side
     is set
  2. **branches**: conditions evaluated in declaration order; the first match
     returns its ``next_node_id``
  3. **next_node_id**: the fallback successor
  4. ``None``: end of survey

Conditions never raise.  A condition whose type does not fit the answer's
shape (e.g. ``gt`` against a text answer), whose operator is unknown or whose
value cannot be coerced simply does not match.  A branch without a target is
skipped.
"""

from __future__ import annotations

import logging
from typing import Any

from appgram_surveys.constants import CONDITION_TYPES, YES_TEXT
from appgram_surveys.models.answer import Answer
from appgram_surveys.models.node import BranchCondition, SurveyNode
from appgram_surveys.repository import NodeRepository

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    """Stringify a condition value the way the portal does.

    Booleans become ``"true"``/``"false"`` and integral floats drop their
    ``.0`` so that ``3.0`` compares equal to the option value ``"3"``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float | None:
    """Numeric view of a condition value, or None if it has none."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class BranchEvaluator:
    """Pure routing function over a node and its recorded answer."""

    def next_node(
        self,
        node: SurveyNode,
        answer: Answer | None,
        all_nodes: NodeRepository | None = None,
    ) -> str | None:
        """Return the id of the node that follows ``node``, or None.

        Args:
            node: the node that was just answered
            answer: its recorded answer; None when an optional question was
                    skipped.  A skipped yes_no counts as "no"; branches never
                    match a missing answer
            all_nodes: unused for routing; accepted so callers can pass the
                    survey context uniformly (see :meth:`resolve_next`)

        Returns:
            The successor id (which may not exist in the survey), or None
            for end of survey.
        """
        # --- 1. Legacy yes/no routing ---
        if node.question_type == "yes_no":
            is_yes = answer is not None and self._is_yes(answer)
            target = node.answer_yes_node_id if is_yes else node.answer_no_node_id
            if target:
                return target

        # --- 2. Branches, first match wins ---
        if answer is not None and not answer.is_empty:
            for branch in node.branches:
                if branch.next_node_id and self.matches(branch.condition, answer):
                    return branch.next_node_id

        # --- 3. Fallback ---
        if node.next_node_id:
            return node.next_node_id

        # --- 4. End of survey ---
        return None

    def resolve_next(
        self,
        node: SurveyNode,
        answer: Answer | None,
        all_nodes: NodeRepository,
    ) -> SurveyNode | None:
        """Like :meth:`next_node` but returns the node record.

        An id that is not part of ``all_nodes`` resolves to None (end of
        survey) and is logged.
        """
        next_id = self.next_node(node, answer, all_nodes)
        if next_id is None:
            return None
        target = all_nodes.get(next_id)
        if target is None:
            logger.warning("Node %s routes to unknown node %s", node.id, next_id)
        return target

    # ------------------------------------------------------------------
    # Condition evaluation
    # ------------------------------------------------------------------

    @staticmethod
    def _is_yes(answer: Answer) -> bool:
        return answer.answer_text == YES_TEXT or answer.answer is True

    def matches(self, cond: BranchCondition, answer: Answer) -> bool:
        """Evaluate one branch condition against an answer.

        Each answer shape the operator applies to is checked; the condition
        matches if any of them does.
        """
        op = cond.type
        if op not in CONDITION_TYPES:
            logger.warning("Unknown branch condition type: %s", op)
            return False

        if op == "equals":
            return self._equals(cond.value, answer)
        if op == "contains":
            return self._contains(cond.value, answer)
        if op in ("gt", "lt", "gte", "lte"):
            return self._compare_rating(op, cond.value, answer)
        return False

    @staticmethod
    def _equals(value: Any, answer: Answer) -> bool:
        if value is None:
            return False
        expected = _as_text(value)

        if answer.answer_text is not None and answer.answer_text == expected:
            return True

        if answer.answer_rating is not None:
            # "3" == 3: compare numerically
            num = _as_number(value)
            if num is not None and answer.answer_rating == num:
                return True

        opts = answer.answer_options
        if opts is not None and len(opts) == 1 and opts[0] == expected:
            return True

        return False

    @staticmethod
    def _contains(value: Any, answer: Answer) -> bool:
        if value is None:
            return False
        needle = _as_text(value)

        if answer.answer_text and needle in answer.answer_text:
            return True
        if answer.answer_options is not None and needle in answer.answer_options:
            return True
        return False

    @staticmethod
    def _compare_rating(op: str, value: Any, answer: Answer) -> bool:
        """Numeric comparison; only rating answers take part."""
        if answer.answer_rating is None:
            return False
        threshold = _as_number(value)
        if threshold is None:
            return False

        rating = answer.answer_rating
        if op == "gt":
            return rating > threshold
        if op == "lt":
            return rating < threshold
        if op == "gte":
            return rating >= threshold
        if op == "lte":
            return rating <= threshold
        return False
