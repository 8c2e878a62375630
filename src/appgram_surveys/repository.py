"""NodeRepository — immutable, ordered view over one survey's nodes.

The repository is built once per survey session from the node records the
portal returns and is read-only afterwards.  It provides:

  - canonical ordering by ``sort_order`` (stable for equal values)
  - root resolution: the first node with ``parent_id`` null, falling back to
    the lowest ``sort_order`` node
  - lookup by node id
  - authoring checks (dangling references, branches that can never fire,
    unreachable nodes, cycles) that the navigator itself never runs

Usage::

    repo = NodeRepository(definition.nodes)
    root = repo.root
    node = repo.get("n2")
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from appgram_surveys.constants import CONDITION_TYPES
from appgram_surveys.models.node import SurveyNode

logger = logging.getLogger(__name__)


class NodeRepository:
    """Read-only ordered collection of :class:`SurveyNode` for one survey."""

    def __init__(self, nodes: Iterable[SurveyNode]) -> None:
        # sorted() is stable, so equal sort_order keeps the portal's order
        self._nodes: tuple[SurveyNode, ...] = tuple(
            sorted(nodes, key=lambda n: n.sort_order)
        )
        self._by_id: dict[str, SurveyNode] = {}
        for node in self._nodes:
            if node.id in self._by_id:
                logger.warning("Duplicate node id %s; keeping the first", node.id)
                continue
            self._by_id[node.id] = node

        self._root: SurveyNode | None = next(
            (n for n in self._nodes if n.parent_id is None),
            self._nodes[0] if self._nodes else None,
        )

    # ------------------------------------------------------------------
    # Collection protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[SurveyNode]:
        return iter(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    @property
    def nodes(self) -> tuple[SurveyNode, ...]:
        """All nodes in canonical order."""
        return self._nodes

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    @property
    def root(self) -> SurveyNode | None:
        """The entry node, or None for an empty survey."""
        return self._root

    def get(self, node_id: str | None) -> SurveyNode | None:
        """Return the node with ``node_id``, or None if unknown."""
        if node_id is None:
            return None
        return self._by_id.get(node_id)

    def require(self, node_id: str) -> SurveyNode:
        """Like :meth:`get` but raises ``KeyError`` for unknown ids."""
        node = self._by_id.get(node_id)
        if node is None:
            raise KeyError(f"Node not found: {node_id}")
        return node

    # ------------------------------------------------------------------
    # Authoring checks
    # ------------------------------------------------------------------

    @staticmethod
    def successor_ids(node: SurveyNode) -> list[str]:
        """Every node id ``node`` can route to, in evaluation order, no repeats."""
        targets: list[str] = []
        if node.question_type == "yes_no":
            targets += [node.answer_yes_node_id, node.answer_no_node_id]
        targets += [b.next_node_id for b in node.branches if b.condition.type in CONDITION_TYPES]
        targets.append(node.next_node_id)
        return list(dict.fromkeys(t for t in targets if t))

    def dangling_references(self) -> list[tuple[str, str]]:
        """(source_id, target_id) pairs whose target is not in the survey."""
        return [
            (node.id, target)
            for node in self._nodes
            for target in self.successor_ids(node)
            if target not in self._by_id
        ]

    def invalid_branches(self) -> list[tuple[str, str]]:
        """(node_id, reason) for branches the evaluator will never take."""
        problems: list[tuple[str, str]] = []
        for node in self._nodes:
            for branch in node.branches:
                if branch.condition.type not in CONDITION_TYPES:
                    problems.append((node.id, f"unknown condition type '{branch.condition.type}'"))
                elif not branch.next_node_id:
                    problems.append((node.id, "branch has no next_node_id"))
        return problems

    def reachable_ids(self) -> set[str]:
        """Ids reachable from the root by any routing rule (root included)."""
        if self._root is None:
            return set()
        seen: set[str] = set()
        stack = [self._root.id]
        while stack:
            node_id = stack.pop()
            if node_id in seen or node_id not in self._by_id:
                continue
            seen.add(node_id)
            stack.extend(self.successor_ids(self._by_id[node_id]))
        return seen

    def unreachable_ids(self) -> list[str]:
        """Ids of nodes no path from the root can reach, in canonical order."""
        reachable = self.reachable_ids()
        return [n.id for n in self._nodes if n.id not in reachable]

    def has_cycle(self) -> bool:
        """True if some routing path from the root revisits a node."""
        if self._root is None:
            return False

        # Iterative DFS with white/grey/black colouring
        grey, black = 1, 2
        colour: dict[str, int] = {}
        stack: list[tuple[str, Iterator[str]]] = []

        colour[self._root.id] = grey
        stack.append((self._root.id, iter(self.successor_ids(self._root))))
        while stack:
            node_id, children = stack[-1]
            child = next(children, None)
            if child is None:
                colour[node_id] = black
                stack.pop()
                continue
            if child not in self._by_id:
                continue
            state = colour.get(child)
            if state == grey:
                return True
            if state is None:
                colour[child] = grey
                stack.append((child, iter(self.successor_ids(self._by_id[child]))))
        return False
