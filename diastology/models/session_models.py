"""
Pydantic models for navigation session state.

The serialized shape is ``{algorithmId, modeId, currentNodeId, history[],
answers{}}`` with history entries ``{nodeId, answer}`` in chronological
order, oldest first.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Answer recorded in history for an evaluator step.
AUTO_EVALUATION = "auto-evaluation"


class NavigationStatus(str, Enum):
    """Where a session currently rests."""
    UNINITIALIZED = "uninitialized"
    AT_DECISION = "at_decision"
    AT_EVALUATOR = "at_evaluator"
    AT_RESULT = "at_result"


class HistoryEntry(BaseModel):
    """
    One traversal step.

    ``overwritten`` holds the answer-set values this step replaced, keyed
    by slot, with ``None`` for slots that did not exist. Going back
    restores exactly these values.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    node_id: str = Field(..., min_length=1, description="Node the step was taken from")
    answer: str | None = Field(default=None, description="Submitted value or the auto-evaluation marker")
    overwritten: dict[str, str | None] = Field(
        default_factory=dict,
        description="Answer slots written by this step and their previous values",
    )

    @property
    def is_auto_evaluation(self) -> bool:
        return self.answer == AUTO_EVALUATION


class NavigationState(BaseModel):
    """Complete, resumable snapshot of one navigation session."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    algorithm_id: str = Field(..., min_length=1, description="Active algorithm")
    mode_id: str | None = Field(default=None, description="Mode the session was started with")
    current_node_id: str = Field(..., min_length=1, description="Current node")
    history: list[HistoryEntry] = Field(default_factory=list, description="Steps taken, oldest first")
    answers: dict[str, str] = Field(default_factory=dict, description="Node ID -> recorded value")
