"""
Pytest Configuration and Fixtures

Shared fixtures for decision graph engine tests.
"""
import pytest

from diastology.models.algorithm_models import Algorithm, AlgorithmMode, Citation
from diastology.models.node_models import (
    AnswerRemap,
    ResultKey,
    decision_node,
    evaluator_node,
    index_nodes,
    result_node,
)
from diastology.services.algorithm_registry import AlgorithmRegistry
from diastology.services.navigator import AlgorithmNavigator
from diastology.services.result_catalog import StaticResultCatalog


TEST_CITATION = Citation(
    authors="Doe, J.",
    title="Test graph",
    journal="Journal of Tests (2024)",
    url="https://example.org/test",
)


def build_algorithm(algorithm_id: str, start_node_id: str, *nodes, modes=()) -> Algorithm:
    """Assemble a small algorithm for engine tests."""
    return Algorithm(
        id=algorithm_id,
        name=algorithm_id,
        description="Synthetic graph",
        citation=TEST_CITATION,
        modes=modes,
        start_node_id=start_node_id,
        nodes=index_nodes(*nodes),
    )


@pytest.fixture
def build():
    """Factory for small synthetic algorithms."""
    return build_algorithm


@pytest.fixture
def catalog() -> StaticResultCatalog:
    """Default result catalog."""
    return StaticResultCatalog()


@pytest.fixture
def registry(catalog) -> AlgorithmRegistry:
    """Registry holding the built-in algorithms."""
    return AlgorithmRegistry(catalog=catalog)


@pytest.fixture
def navigator(registry, catalog) -> AlgorithmNavigator:
    """Navigator over the built-in algorithms."""
    return AlgorithmNavigator(registry=registry, catalog=catalog, max_evaluator_chain=32)


@pytest.fixture
def chained_algorithm() -> Algorithm:
    """
    start --yes--> evalA -> evalB -> finish --done--> end

    evalA copies the ``start`` answer into the ``copied`` slot.
    """
    return build_algorithm(
        "chained",
        "start",
        decision_node("start", "Begin?", [("yes", "Yes")], {"yes": "evalA"}),
        evaluator_node(
            "evalA",
            lambda context: "evalB",
            targets=["evalB"],
            remaps=[AnswerRemap(source="start", target="copied")],
        ),
        evaluator_node("evalB", lambda context: "finish", targets=["finish"]),
        decision_node("finish", "Done?", [("done", "Done")], {"done": "end"}),
        result_node("end", ResultKey.NORMAL),
        modes=(AlgorithmMode(id="only", name="Only", start_node_id="start"),),
    )


@pytest.fixture
def cyclic_algorithm() -> Algorithm:
    """Two evaluators that route to each other forever."""
    return build_algorithm(
        "cyclic",
        "start",
        decision_node("start", "Begin?", [("yes", "Yes")], {"yes": "ping"}),
        evaluator_node("ping", lambda context: "pong", targets=["pong"]),
        evaluator_node("pong", lambda context: "ping", targets=["ping"]),
    )


@pytest.fixture
def evaluator_entry_algorithm() -> Algorithm:
    """Algorithm whose default entry node is an evaluator."""
    return build_algorithm(
        "evaluator_entry",
        "router",
        evaluator_node("router", lambda context: "question", targets=["question"]),
        decision_node("question", "Anything?", [("yes", "Yes"), ("no", "No")], {"*": "end"}),
        result_node("end", ResultKey.INDETERMINATE),
    )


@pytest.fixture
def synthetic_navigator(
    catalog,
    chained_algorithm,
    cyclic_algorithm,
    evaluator_entry_algorithm,
) -> AlgorithmNavigator:
    """Navigator over the synthetic graphs with a short evaluator chain limit."""
    registry = AlgorithmRegistry(
        [chained_algorithm, cyclic_algorithm, evaluator_entry_algorithm],
        catalog=catalog,
    )
    return AlgorithmNavigator(registry=registry, catalog=catalog, max_evaluator_chain=5)
