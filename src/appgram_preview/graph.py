"""Survey graph builder — cytoscape-style nodes/edges for a survey tree.

Every routing rule of a node becomes an edge labelled with what triggers
it: ``yes`` / ``no`` for legacy yes_no routing, the condition for a branch
(``>= 4``, ``contains export``) and ``next`` for the fallback.  Targets
that are not part of the survey get a virtual ``missing`` node so the
dangling reference is visible.
"""

from __future__ import annotations

from typing import Any, Dict, List

from appgram_surveys.models.node import BranchCondition, SurveyNode
from appgram_surveys.models.survey import SurveyDefinition
from appgram_surveys.repository import NodeRepository

_OP_LABELS = {
    "equals": "=",
    "contains": "contains",
    "gt": ">",
    "lt": "<",
    "gte": ">=",
    "lte": "<=",
}


def _condition_label(cond: BranchCondition) -> str:
    return f"{_OP_LABELS.get(cond.type, cond.type)} {cond.value}"


def _node_data(node: SurveyNode, *, is_root: bool) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": node.id,
        "label": node.result_message if node.is_terminal else node.question,
        "type": "result" if node.is_terminal else node.question_type,
        "required": node.is_required,
        "root": is_root,
    }
    if node.options:
        data["options"] = [o.model_dump() for o in node.options]
    if node.question_type == "rating":
        data["min_rating"], data["max_rating"] = node.rating_bounds
    return data


def _edges_for(node: SurveyNode) -> List[Dict[str, Any]]:
    edges: List[Dict[str, Any]] = []

    def add(target: str | None, label: str) -> None:
        if target:
            edges.append({"data": {"source": node.id, "target": target, "label": label}})

    if node.question_type == "yes_no":
        add(node.answer_yes_node_id, "yes")
        add(node.answer_no_node_id, "no")
    for branch in node.branches:
        add(branch.next_node_id, _condition_label(branch.condition))
    add(node.next_node_id, "next")
    return edges


def build_survey_graph(definition: SurveyDefinition) -> Dict[str, Any]:
    """Build ``{nodes, edges, checks}`` for one survey."""
    repo = NodeRepository(definition.nodes)
    root_id = repo.root.id if repo.root is not None else None

    nodes = [{"data": _node_data(n, is_root=n.id == root_id)} for n in repo]
    edges: List[Dict[str, Any]] = []
    for node in repo:
        edges.extend(_edges_for(node))

    # Virtual nodes for dangling targets
    missing = sorted({target for _, target in repo.dangling_references()})
    for target in missing:
        nodes.append({"data": {"id": target, "label": target, "type": "missing"}})

    return {
        "nodes": nodes,
        "edges": edges,
        "checks": {
            "root": root_id,
            "dangling": [list(pair) for pair in repo.dangling_references()],
            "invalid_branches": [list(pair) for pair in repo.invalid_branches()],
            "unreachable": repo.unreachable_ids(),
            "has_cycle": repo.has_cycle(),
        },
    }
