"""
Session service for the HTTP API.

Every request works on a fresh AlgorithmNavigator. The stateless
algorithm endpoints rebuild the session by replaying the client's
history from the entry node; the session endpoints exchange the full
serialized navigation state instead.
"""

from collections.abc import Sequence
from typing import Any, assert_never

from diastology.config.logging_config import get_logger
from diastology.exceptions import NavigationStateError, NodeNotFoundError
from diastology.models.algorithm_models import Algorithm
from diastology.models.models import (
    AlgorithmListResponse,
    AlgorithmNodeResponse,
    AnswerRequest,
    BackRequest,
    DecisionView,
    ResultView,
    SessionResponse,
)
from diastology.models.node_models import DecisionNode, EvaluatorNode, Node, ResultNode
from diastology.models.session_models import HistoryEntry, NavigationState
from diastology.services.algorithm_registry import AlgorithmRegistry, get_algorithm_registry
from diastology.services.navigator import AlgorithmNavigator
from diastology.services.result_catalog import StaticResultCatalog, get_result_catalog

logger = get_logger(__name__)


def format_node(node: Node, catalog: StaticResultCatalog) -> DecisionView | ResultView:
    """
    Client view of a node.

    Raises:
        NavigationStateError: For evaluator nodes, which are never shown.
    """
    if isinstance(node, DecisionNode):
        return DecisionView(id=node.id, question=node.question, options=list(node.options))
    elif isinstance(node, ResultNode):
        return ResultView(id=node.id, result_key=node.result_key, result=catalog.resolve(node.result_key))
    elif isinstance(node, EvaluatorNode):
        raise NavigationStateError(
            "Evaluator nodes cannot be presented to a client",
            details={"node_id": node.id},
        )
    else:
        assert_never(node)


class SessionService:
    """Maps API requests onto navigator operations."""

    def __init__(
        self,
        registry: AlgorithmRegistry | None = None,
        catalog: StaticResultCatalog | None = None,
    ):
        self.registry = registry or get_algorithm_registry()
        self.catalog = catalog or get_result_catalog()

    def _navigator(self) -> AlgorithmNavigator:
        return AlgorithmNavigator(registry=self.registry, catalog=self.catalog)

    # =========================================================================
    # Stateless algorithm endpoints
    # =========================================================================

    def list_algorithms(self, default_algorithm_id: str | None = None) -> AlgorithmListResponse:
        if default_algorithm_id not in self.registry:
            default_algorithm_id = None
        return AlgorithmListResponse(
            algorithms=self.registry.list_metadata(),
            default_algorithm_id=default_algorithm_id,
        )

    def describe(
        self,
        algorithm_id: str,
        mode_id: str | None = None,
        node_id: str | None = None,
    ) -> AlgorithmNodeResponse:
        """
        Algorithm metadata with the entry node or a requested node.

        A requested evaluator is resolved against an empty answer set.
        """
        algorithm = self.registry.get(algorithm_id)
        navigator = self._navigator()

        if node_id is None:
            navigator.start_algorithm(algorithm.id, mode_id)
        else:
            self._require_node(algorithm, node_id)
            navigator.deserialize_state(
                NavigationState(
                    algorithm_id=algorithm.id,
                    mode_id=mode_id or algorithm.mode_for_entry(node_id),
                    current_node_id=node_id,
                )
            )
            navigator.resolve_pending()

        return self._node_response(algorithm, navigator)

    def answer(self, algorithm_id: str, request: AnswerRequest) -> AlgorithmNodeResponse:
        """
        Replay ``request.history`` and submit ``request.answer``.

        Raises:
            NavigationStateError: If the replay does not arrive at ``request.node_id``.
        """
        algorithm = self.registry.get(algorithm_id)
        self._require_node(algorithm, request.node_id)

        navigator = self.replay(algorithm, request.history, request.mode_id, fallback_node_id=request.node_id)
        if navigator.current_node_id != request.node_id:
            raise NavigationStateError(
                "History does not lead to the answered node",
                details={"expected": request.node_id, "actual": navigator.current_node_id},
            )

        navigator.submit_answer(request.answer)
        return self._node_response(algorithm, navigator)

    def back(self, algorithm_id: str, request: BackRequest) -> AlgorithmNodeResponse:
        """
        Replay ``request.history`` and undo the last user-visible step.

        Raises:
            NavigationStateError: If ``request.history`` holds no step to undo.
        """
        algorithm = self.registry.get(algorithm_id)
        navigator = self.replay(algorithm, request.history, request.mode_id)
        if not navigator.go_back_to_decision():
            raise NavigationStateError(
                "Cannot go back from initial node",
                details={"node_id": navigator.current_node_id},
            )
        return self._node_response(algorithm, navigator)

    def replay(
        self,
        algorithm: Algorithm,
        history: Sequence[HistoryEntry],
        mode_id: str | None = None,
        fallback_node_id: str | None = None,
    ) -> AlgorithmNavigator:
        """
        Rebuild a session by resubmitting the user answers in ``history``.

        Evaluator entries are skipped since the navigator records them
        again as it auto-resolves.

        Raises:
            NavigationStateError: If an answer is recorded for a node the
                replay is not at.
            InvalidAnswerError: If a recorded answer is not valid.
        """
        if mode_id is None:
            first_node_id = history[0].node_id if history else fallback_node_id
            if first_node_id is not None:
                mode_id = algorithm.mode_for_entry(first_node_id)

        navigator = self._navigator()
        navigator.start_algorithm(algorithm.id, mode_id)

        for entry in history:
            if entry.is_auto_evaluation:
                continue
            if navigator.current_node_id != entry.node_id or entry.answer is None:
                raise NavigationStateError(
                    "History does not match the algorithm",
                    details={"expected": navigator.current_node_id, "actual": entry.node_id},
                )
            navigator.submit_answer(entry.answer)

        logger.debug("History replayed", algorithm_id=algorithm.id, steps=len(history))
        return navigator

    # =========================================================================
    # Session endpoints
    # =========================================================================

    def start_session(self, algorithm_id: str, mode_id: str | None = None) -> SessionResponse:
        navigator = self._navigator()
        navigator.start_algorithm(algorithm_id, mode_id)
        return self._session_response(navigator)

    def submit(self, state: Any, answer: str) -> SessionResponse:
        navigator = self._restore(state)
        navigator.submit_answer(answer)
        return self._session_response(navigator)

    def go_back(self, state: Any) -> SessionResponse:
        navigator = self._restore(state)
        if not navigator.go_back_to_decision():
            navigator.resolve_pending()
        return self._session_response(navigator)

    def restart(self, state: Any) -> SessionResponse:
        navigator = self._restore(state)
        navigator.restart()
        return self._session_response(navigator)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _restore(self, state: Any) -> AlgorithmNavigator:
        navigator = self._navigator()
        navigator.deserialize_state(state)
        return navigator

    @staticmethod
    def _require_node(algorithm: Algorithm, node_id: str) -> None:
        if not algorithm.has_node(node_id):
            raise NodeNotFoundError(node_id, algorithm.id, requested=True)

    def _node_response(self, algorithm: Algorithm, navigator: AlgorithmNavigator) -> AlgorithmNodeResponse:
        return AlgorithmNodeResponse(
            algorithm=algorithm.metadata(),
            current_node=format_node(navigator.get_current_node(), self.catalog),
            history=navigator.history,
            is_result=navigator.is_at_result(),
        )

    def _session_response(self, navigator: AlgorithmNavigator) -> SessionResponse:
        return SessionResponse(
            state=navigator.snapshot(),
            status=navigator.status,
            current_node=format_node(navigator.get_current_node(), self.catalog),
            result=navigator.get_result(),
            can_go_back=navigator.can_go_back(),
        )


# Singleton instance for dependency injection
_session_service: SessionService | None = None


def get_session_service() -> SessionService:
    """
    Get the session service singleton.

    Returns:
        The shared SessionService instance.
    """
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service
