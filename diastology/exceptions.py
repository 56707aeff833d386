"""
Exception hierarchy for the decision graph engine.

Every error carries a machine-readable code and optional details so the
API layer can render it as a structured error response.
"""

from typing import Any


class DiastologyError(Exception):
    """Base exception for all engine and registry errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class AlgorithmNotFoundError(DiastologyError):
    """No algorithm is registered under the requested id."""

    def __init__(self, algorithm_id: str):
        super().__init__(
            message=f"Algorithm with ID {algorithm_id} not found",
            code="ALGORITHM_NOT_FOUND",
            details={"algorithm_id": algorithm_id},
        )
        self.algorithm_id = algorithm_id


class NodeNotFoundError(DiastologyError):
    """
    A node id does not exist in its algorithm.

    A validated algorithm never produces this from its own edges, so when
    raised during traversal it indicates a broken definition.
    """

    def __init__(self, node_id: str, algorithm_id: str, requested: bool = False):
        super().__init__(
            message=f"Node {node_id} not found in algorithm {algorithm_id}",
            code="NODE_NOT_FOUND",
            details={"node_id": node_id, "algorithm_id": algorithm_id},
        )
        self.node_id = node_id
        self.algorithm_id = algorithm_id
        # True when the id came from the client rather than from a graph edge
        self.requested = requested


class InvalidAnswerError(DiastologyError):
    """The submitted value has no specific or wildcard successor."""

    def __init__(self, node_id: str, answer: str):
        super().__init__(
            message=f"No next node defined for answer {answer} in node {node_id}",
            code="INVALID_ANSWER",
            details={"node_id": node_id, "answer": answer},
        )
        self.node_id = node_id
        self.answer = answer


class NavigationStateError(DiastologyError):
    """The requested operation is not valid in the current session state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="INVALID_STATE", details=details)


class SerializationError(DiastologyError):
    """A session snapshot could not be parsed or does not fit its algorithm."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Failed to deserialize navigation state: {message}",
            code="SERIALIZATION_ERROR",
            details=details,
        )


class EvaluatorCycleError(DiastologyError):
    """Evaluator auto-resolution exceeded the configured chain length."""

    def __init__(self, algorithm_id: str, chain: list[str], limit: int):
        super().__init__(
            message=(
                f"Evaluator chain in algorithm {algorithm_id} exceeded "
                f"{limit} steps without reaching a decision or result"
            ),
            code="EVALUATOR_CYCLE",
            details={"algorithm_id": algorithm_id, "chain": chain, "limit": limit},
        )
        self.chain = chain


class GraphValidationError(DiastologyError):
    """An algorithm definition violates a structural invariant."""

    def __init__(self, algorithm_id: str, problems: list[str]):
        super().__init__(
            message=f"Algorithm {algorithm_id} failed validation: {'; '.join(problems)}",
            code="GRAPH_VALIDATION_ERROR",
            details={"algorithm_id": algorithm_id, "problems": problems},
        )
        self.problems = problems
