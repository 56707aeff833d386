"""
Structural validation for algorithm definitions.

Checks the closed-graph invariant (every successor named by a next-map
or declared by an evaluator exists), that every option value of every
decision resolves, that entry nodes exist, and that every result key
is known to the result catalog.
"""

from collections import deque
from typing import assert_never

from diastology.config.logging_config import get_logger
from diastology.exceptions import GraphValidationError
from diastology.models.algorithm_models import Algorithm
from diastology.models.node_models import DecisionNode, EvaluatorNode, Node, ResultNode
from diastology.services.result_catalog import StaticResultCatalog, get_result_catalog
from diastology.services.transitions import resolve_next

logger = get_logger(__name__)


def successors(node: Node) -> list[str]:
    """Every node id ``node`` can lead to."""
    if isinstance(node, DecisionNode):
        return list(node.next_nodes.values())
    elif isinstance(node, EvaluatorNode):
        return list(node.targets)
    elif isinstance(node, ResultNode):
        return []
    else:
        assert_never(node)


def find_problems(
    algorithm: Algorithm,
    catalog: StaticResultCatalog | None = None,
) -> list[str]:
    """Return a human-readable description of every violated invariant."""
    catalog = catalog or get_result_catalog()
    problems: list[str] = []

    if not algorithm.has_node(algorithm.start_node_id):
        problems.append(f"start node {algorithm.start_node_id} does not exist")
    for mode in algorithm.modes:
        if not algorithm.has_node(mode.start_node_id):
            problems.append(f"mode {mode.id} enters at missing node {mode.start_node_id}")

    for key, node in algorithm.nodes.items():
        if key != node.id:
            problems.append(f"node {node.id} is registered under id {key}")

        if isinstance(node, DecisionNode):
            for option in node.options:
                if resolve_next(node, option.value) is None:
                    problems.append(f"option {option.value} of {node.id} has no successor")
            for value, target in node.next_nodes.items():
                if not algorithm.has_node(target):
                    problems.append(f"{node.id} maps {value} to missing node {target}")
        elif isinstance(node, EvaluatorNode):
            for target in node.targets:
                if not algorithm.has_node(target):
                    problems.append(f"evaluator {node.id} targets missing node {target}")
        elif isinstance(node, ResultNode):
            if node.result_key not in catalog:
                problems.append(f"result {node.id} uses unknown key {node.result_key.value}")
        else:
            assert_never(node)

    return problems


def validate_algorithm(
    algorithm: Algorithm,
    catalog: StaticResultCatalog | None = None,
) -> None:
    """
    Validate an algorithm definition.

    Raises:
        GraphValidationError: If any structural invariant is violated.
    """
    problems = find_problems(algorithm, catalog)
    if problems:
        logger.error("Algorithm failed validation", algorithm_id=algorithm.id, problems=problems)
        raise GraphValidationError(algorithm.id, problems)
    logger.debug("Algorithm validated", algorithm_id=algorithm.id, node_count=len(algorithm.nodes))


def reachable_node_ids(algorithm: Algorithm) -> set[str]:
    """Node ids reachable from the default entry or any mode entry."""
    entries = [algorithm.start_node_id, *(mode.start_node_id for mode in algorithm.modes)]
    seen: set[str] = set()
    queue = deque(node_id for node_id in entries if algorithm.has_node(node_id))

    while queue:
        node_id = queue.popleft()
        if node_id in seen:
            continue
        seen.add(node_id)
        for target in successors(algorithm.nodes[node_id]):
            if algorithm.has_node(target) and target not in seen:
                queue.append(target)

    return seen
