"""
Pydantic models for API request/response validation.

Wire format is camelCase; Python attributes are snake_case. Evaluator
nodes are never sent to clients, so a client node is either a decision
(question and options) or a result (key and resolved catalog entry).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from diastology.models.algorithm_models import AlgorithmMetadata
from diastology.models.node_models import DecisionOption, ResultKey
from diastology.models.result_models import ResultDescriptor
from diastology.models.session_models import HistoryEntry, NavigationState, NavigationStatus

_API_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DecisionView(BaseModel):
    """
    A decision node as presented to a client.

    Attributes:
        id: Node ID.
        question: Question text.
        options: Ordered answer options.
    """
    model_config = _API_CONFIG

    id: str = Field(..., description="Node ID")
    type: Literal["decision"] = "decision"
    question: str = Field(..., description="Question text")
    options: list[DecisionOption] = Field(..., description="Answer options")


class ResultView(BaseModel):
    """
    A result node as presented to a client.

    Attributes:
        id: Node ID.
        result_key: Outcome key.
        result: Catalog entry for the key, if the catalog has one.
    """
    model_config = _API_CONFIG

    id: str = Field(..., description="Node ID")
    type: Literal["result"] = "result"
    result_key: ResultKey = Field(..., description="Outcome key")
    result: ResultDescriptor | None = Field(default=None, description="Resolved outcome")


ClientNode = Annotated[DecisionView | ResultView, Field(discriminator="type")]


# ============================================================================
# Stateless algorithm endpoints
# ============================================================================

class AlgorithmListResponse(BaseModel):
    """All registered algorithms, without their node graphs."""
    model_config = _API_CONFIG

    algorithms: list[AlgorithmMetadata] = Field(..., description="Registered algorithms")
    default_algorithm_id: str | None = Field(default=None, description="Algorithm offered first")


class AlgorithmNodeResponse(BaseModel):
    """
    Algorithm metadata plus the node the client should display.

    Attributes:
        algorithm: Algorithm metadata.
        current_node: Node to display; never an evaluator.
        history: Steps taken so far, oldest first.
        is_result: True when ``current_node`` is terminal.
    """
    model_config = _API_CONFIG

    algorithm: AlgorithmMetadata = Field(..., description="Algorithm metadata")
    current_node: ClientNode = Field(..., description="Node to display")
    history: list[HistoryEntry] = Field(default_factory=list, description="Steps taken, oldest first")
    is_result: bool = Field(default=False, description="Whether the current node is a result")


class AnswerRequest(BaseModel):
    """
    Answer a node given the history that led to it.

    The server replays ``history`` from the entry node, checks that it
    arrives at ``node_id`` and then submits ``answer``.
    """
    model_config = _API_CONFIG

    node_id: str = Field(..., min_length=1, description="Node being answered")
    answer: str = Field(..., min_length=1, description="Selected option value")
    history: list[HistoryEntry] = Field(default_factory=list, description="Steps taken, oldest first")
    mode_id: str | None = Field(default=None, description="Mode, if not recoverable from history")


class BackRequest(BaseModel):
    """Go back one user-visible step from the end of ``history``."""
    model_config = _API_CONFIG

    history: list[HistoryEntry] = Field(default_factory=list, description="Steps taken, oldest first")
    mode_id: str | None = Field(default=None, description="Mode, if not recoverable from history")


# ============================================================================
# Session endpoints
# ============================================================================

class StartSessionRequest(BaseModel):
    """Start a new session."""
    model_config = _API_CONFIG

    algorithm_id: str | None = Field(default=None, description="Algorithm to start; defaults to the configured one")
    mode_id: str | None = Field(default=None, description="Optional mode")


class SessionStateRequest(BaseModel):
    """
    Carries a serialized session.

    The state is accepted as a raw object and parsed by the navigator so
    malformed snapshots are reported as serialization errors.
    """
    state: Any = Field(..., description="Serialized navigation state, as an object or a JSON string")


class SessionAnswerRequest(SessionStateRequest):
    """Submit an answer to a serialized session."""
    answer: str = Field(..., min_length=1, description="Selected option value")


class SessionResponse(BaseModel):
    """
    Session state after an operation.

    Attributes:
        state: Serialized state to send back with the next request.
        status: Where the session rests.
        current_node: Node to display.
        result: Catalog entry when the session is at a result.
        can_go_back: Whether there is a step to undo.
    """
    model_config = _API_CONFIG

    state: NavigationState = Field(..., description="Serialized navigation state")
    status: NavigationStatus = Field(..., description="Session status")
    current_node: ClientNode = Field(..., description="Node to display")
    result: ResultDescriptor | None = Field(default=None, description="Outcome at a result")
    can_go_back: bool = Field(default=False, description="Whether back navigation is possible")


# ============================================================================
# Service
# ============================================================================

class HealthStatus(str, Enum):
    """System health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """
    Health check response for monitoring.

    Attributes:
        status: Overall system health status.
        version: Application version.
        environment: Deployment environment.
        checks: Individual component health checks.
    """
    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    checks: dict[str, bool] = Field(default_factory=dict, description="Component health checks")


class ErrorResponse(BaseModel):
    """
    Standardized error response.

    Attributes:
        error: Error type/code.
        message: Human-readable error message.
        details: Additional error details.
        request_id: Request ID for tracing.
    """
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict | None = Field(default=None, description="Additional details")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
