"""
Algorithm navigator.

Stateful traversal of one algorithm for one session. The navigator owns
the position, the history of steps taken and the accumulated answer set;
algorithm definitions are shared read-only through the registry.

Evaluator nodes are resolved automatically: after every transition any
evaluator that became current is evaluated and recorded as its own
history entry, so callers only ever land on a decision or a result.
Each history entry records the answer slots it overwrote, which makes
``go_back`` an exact inverse of the step it pops.
"""

from collections.abc import Mapping
from typing import Any, assert_never

from pydantic import ValidationError

from diastology.config.config import get_settings
from diastology.config.logging_config import get_logger
from diastology.exceptions import (
    EvaluatorCycleError,
    InvalidAnswerError,
    NavigationStateError,
    SerializationError,
)
from diastology.models.algorithm_models import Algorithm, Citation
from diastology.models.context import SessionContext
from diastology.models.node_models import DecisionNode, EvaluatorNode, Node, ResultNode
from diastology.models.result_models import ResultDescriptor
from diastology.models.session_models import (
    AUTO_EVALUATION,
    HistoryEntry,
    NavigationState,
    NavigationStatus,
)
from diastology.services.algorithm_registry import AlgorithmRegistry, get_algorithm_registry
from diastology.services.result_catalog import StaticResultCatalog, get_result_catalog
from diastology.services.transitions import apply_remaps, resolve_next, restore_answers

logger = get_logger(__name__)


class AlgorithmNavigator:
    """
    Navigation engine for a single session.

    Every mutating operation works on a copy of the session state and
    commits it only once the whole step, including chained evaluators,
    has succeeded.
    """

    def __init__(
        self,
        registry: AlgorithmRegistry | None = None,
        catalog: StaticResultCatalog | None = None,
        max_evaluator_chain: int | None = None,
    ):
        """
        Initialize the navigator.

        Args:
            registry: Algorithm registry. If None, uses the singleton.
            catalog: Result catalog. If None, uses the singleton.
            max_evaluator_chain: Evaluator steps allowed per transition.
                If None, taken from settings.
        """
        self.registry = registry or get_algorithm_registry()
        self.catalog = catalog or get_result_catalog()
        if max_evaluator_chain is None:
            max_evaluator_chain = get_settings().max_evaluator_chain
        self.max_evaluator_chain = max_evaluator_chain

        self._algorithm: Algorithm | None = None
        self._state: NavigationState | None = None

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_algorithm(self, algorithm_id: str, mode_id: str | None = None) -> Node:
        """
        Start a fresh session at the entry node of ``mode_id``.

        Unknown modes fall back to the default entry node.

        Raises:
            AlgorithmNotFoundError: If the algorithm is not registered.
        """
        algorithm = self.registry.get(algorithm_id)
        mode = algorithm.get_mode(mode_id)

        state = NavigationState(
            algorithm_id=algorithm.id,
            mode_id=mode.id if mode else None,
            current_node_id=algorithm.entry_node_id(mode_id),
        )
        self._resolve_evaluators(algorithm, state)

        self._algorithm = algorithm
        self._state = state

        logger.info(
            "Session started",
            algorithm_id=algorithm.id,
            mode_id=state.mode_id,
            node_id=state.current_node_id,
        )
        return self._current_node()

    def submit_answer(self, value: str) -> Node:
        """
        Answer the current node and advance.

        On a decision the value is recorded and the successor resolved
        through the next-map. On an evaluator the value is ignored and the
        evaluator is resolved. Trailing evaluators are resolved before
        returning.

        Raises:
            NavigationStateError: If no session is active or it is at a result.
            InvalidAnswerError: If the decision has no successor for ``value``.
            EvaluatorCycleError: If evaluator resolution does not terminate.
        """
        algorithm, state = self._require_session()
        node = algorithm.get_node(state.current_node_id)
        working = state.model_copy(deep=True)

        if isinstance(node, DecisionNode):
            next_id = resolve_next(node, value)
            if next_id is None:
                logger.warning(
                    "Answer rejected",
                    algorithm_id=algorithm.id,
                    node_id=node.id,
                    answer=value,
                )
                raise InvalidAnswerError(node.id, value)
            algorithm.get_node(next_id)

            working.history.append(
                HistoryEntry(
                    node_id=node.id,
                    answer=value,
                    overwritten={node.id: working.answers.get(node.id)},
                )
            )
            working.answers[node.id] = value
            working.current_node_id = next_id
            logger.debug("Transition", node_id=node.id, answer=value, next_node_id=next_id)
        elif isinstance(node, EvaluatorNode):
            pass
        elif isinstance(node, ResultNode):
            raise NavigationStateError(
                "Cannot submit an answer at a result node",
                details={"node_id": node.id},
            )
        else:
            assert_never(node)

        self._resolve_evaluators(algorithm, working)
        self._state = working

        current = self._current_node()
        if isinstance(current, ResultNode):
            logger.info(
                "Result reached",
                algorithm_id=algorithm.id,
                node_id=current.id,
                result_key=current.result_key.value,
            )
        return current

    def go_back(self) -> bool:
        """
        Undo the most recent history entry.

        The popped entry's node becomes current and every answer slot that
        step wrote is restored. Popping an evaluator entry leaves the
        session at that evaluator.

        Returns:
            False if there is nothing to undo.
        """
        if self._state is None or not self._state.history:
            return False

        entry = self._state.history.pop()
        if entry.overwritten:
            restore_answers(self._state.answers, entry.overwritten)
        elif not entry.is_auto_evaluation:
            # Snapshot written without undo information
            self._state.answers.pop(entry.node_id, None)

        self._state.current_node_id = entry.node_id
        logger.debug("Went back", node_id=entry.node_id, remaining=len(self._state.history))
        return True

    def go_back_to_decision(self) -> bool:
        """
        Undo history entries until the current node is not an evaluator.

        When the history runs out while still on an evaluator (an entry
        node that is an evaluator), that evaluator is resolved again.

        Returns:
            False if there is nothing to undo.
        """
        if not self.go_back():
            return False

        while isinstance(self._current_node(), EvaluatorNode) and self._state.history:
            self.go_back()

        if isinstance(self._current_node(), EvaluatorNode):
            self.resolve_pending()
        return True

    def restart(self) -> Node:
        """
        Start the current algorithm and mode again.

        Raises:
            NavigationStateError: If no session has been started.
        """
        _, state = self._require_session()
        return self.start_algorithm(state.algorithm_id, state.mode_id)

    def resolve_pending(self) -> Node:
        """Resolve the current node if it is an evaluator, atomically."""
        algorithm, state = self._require_session()
        working = state.model_copy(deep=True)
        self._resolve_evaluators(algorithm, working)
        self._state = working
        return self._current_node()

    def _resolve_evaluators(self, algorithm: Algorithm, state: NavigationState) -> None:
        """Evaluate while the current node is an evaluator, with a depth guard."""
        chain: list[str] = []
        node = algorithm.get_node(state.current_node_id)

        while isinstance(node, EvaluatorNode):
            if len(chain) >= self.max_evaluator_chain:
                logger.error("Evaluator chain limit exceeded", algorithm_id=algorithm.id, chain=chain)
                raise EvaluatorCycleError(algorithm.id, chain, self.max_evaluator_chain)
            chain.append(node.id)

            overwritten = apply_remaps(node.remaps, state.answers)
            next_id = node.evaluate(SessionContext(algorithm.id, state.answers))
            if next_id not in node.targets:
                logger.warning("Evaluator returned undeclared target", node_id=node.id, next_node_id=next_id)
            next_node = algorithm.get_node(next_id)

            state.history.append(
                HistoryEntry(node_id=node.id, answer=AUTO_EVALUATION, overwritten=overwritten)
            )
            state.current_node_id = next_id
            logger.debug("Evaluator resolved", node_id=node.id, next_node_id=next_id)
            node = next_node

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def status(self) -> NavigationStatus:
        node = self.get_current_node()
        if node is None:
            return NavigationStatus.UNINITIALIZED
        if isinstance(node, DecisionNode):
            return NavigationStatus.AT_DECISION
        elif isinstance(node, EvaluatorNode):
            return NavigationStatus.AT_EVALUATOR
        elif isinstance(node, ResultNode):
            return NavigationStatus.AT_RESULT
        else:
            assert_never(node)

    @property
    def history(self) -> list[HistoryEntry]:
        if self._state is None:
            return []
        return [entry.model_copy(deep=True) for entry in self._state.history]

    @property
    def current_node_id(self) -> str | None:
        return self._state.current_node_id if self._state else None

    @property
    def mode_id(self) -> str | None:
        return self._state.mode_id if self._state else None

    def get_current_node(self) -> Node | None:
        if self._state is None:
            return None
        return self._current_node()

    def get_current_algorithm(self) -> Algorithm | None:
        return self._algorithm

    def get_answers(self) -> dict[str, str]:
        """Copy of the accumulated answer set."""
        if self._state is None:
            return {}
        return dict(self._state.answers)

    def can_go_back(self) -> bool:
        return self._state is not None and len(self._state.history) > 0

    def is_at_result(self) -> bool:
        return isinstance(self.get_current_node(), ResultNode)

    def get_result(self) -> ResultDescriptor | None:
        """Catalog entry for the current result node, or None elsewhere."""
        node = self.get_current_node()
        if not isinstance(node, ResultNode):
            return None
        return self.catalog.resolve(node.result_key)

    def get_citation(self) -> Citation | None:
        return self._algorithm.citation if self._algorithm else None

    # =========================================================================
    # Serialization
    # =========================================================================

    def snapshot(self) -> NavigationState:
        """Deep copy of the session state."""
        _, state = self._require_session()
        return state.model_copy(deep=True)

    def serialize_state(self) -> str:
        """Serialize the session to JSON with camelCase keys."""
        return self.snapshot().model_dump_json(by_alias=True)

    def deserialize_state(self, blob: str | bytes | Mapping[str, Any] | NavigationState) -> None:
        """
        Replace the session with a serialized snapshot.

        The snapshot is fully parsed and checked against its algorithm
        before anything is committed.

        Raises:
            SerializationError: If the snapshot is malformed, names an
                unknown algorithm, or names nodes outside the graph.
        """
        try:
            if isinstance(blob, NavigationState):
                state = blob.model_copy(deep=True)
            elif isinstance(blob, (str, bytes)):
                state = NavigationState.model_validate_json(blob)
            elif isinstance(blob, Mapping):
                state = NavigationState.model_validate(dict(blob))
            else:
                raise SerializationError(f"unsupported input type {type(blob).__name__}")
        except ValidationError as e:
            raise SerializationError(str(e)) from e

        algorithm = self.registry.find(state.algorithm_id)
        if algorithm is None:
            raise SerializationError(
                f"unknown algorithm {state.algorithm_id}",
                details={"algorithm_id": state.algorithm_id},
            )

        unknown = [
            node_id
            for node_id in [state.current_node_id, *(entry.node_id for entry in state.history)]
            if not algorithm.has_node(node_id)
        ]
        if unknown:
            raise SerializationError(
                f"nodes not in algorithm {algorithm.id}: {', '.join(unknown)}",
                details={"algorithm_id": algorithm.id, "node_ids": unknown},
            )

        self._algorithm = algorithm
        self._state = state
        logger.info(
            "Session restored",
            algorithm_id=algorithm.id,
            node_id=state.current_node_id,
            history_length=len(state.history),
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_session(self) -> tuple[Algorithm, NavigationState]:
        if self._algorithm is None or self._state is None:
            raise NavigationStateError("No algorithm has been started")
        return self._algorithm, self._state

    def _current_node(self) -> Node:
        algorithm, state = self._require_session()
        return algorithm.get_node(state.current_node_id)
