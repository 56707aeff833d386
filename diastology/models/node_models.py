"""
Pydantic models for decision graph nodes.

A node is exactly one of three variants, discriminated by ``type``:

- DecisionNode: a question with options and a value -> successor map
- EvaluatorNode: a computed branch over the accumulated answer set
- ResultNode: a terminal outcome resolved through the result catalog

Consumers match the variants exhaustively and finish with
``typing.assert_never`` so a new variant fails type checking everywhere
a node is interpreted.
"""

from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from diastology.models.context import SessionContext

WILDCARD = "*"


class ResultKey(str, Enum):
    """Terminal outcome identifiers shared by all algorithms."""
    NORMAL = "normal"
    AF_NORMAL = "af-normal"
    GRADE_1 = "grade-1"
    GRADE_2 = "grade-2"
    GRADE_3 = "grade-3"
    IMPAIRED_NORMAL = "impaired-normal"
    IMPAIRED_ELEVATED = "impaired-elevated"
    INDETERMINATE = "indeterminate"
    INSUFFICIENT_INFO = "insufficient_info"
    EXCLUDE = "exclude"


_NODE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class DecisionOption(BaseModel):
    """An answer offered to the user: an opaque value plus display text."""
    model_config = _NODE_CONFIG

    value: str = Field(..., min_length=1, description="Opaque answer token")
    text: str = Field(..., description="Display text for the option")


class DecisionNode(BaseModel):
    """Question presented to the user."""
    model_config = _NODE_CONFIG

    id: str = Field(..., min_length=1, description="Node ID, unique within its algorithm")
    type: Literal["decision"] = "decision"
    question: str = Field(..., description="Question shown to the user")
    options: tuple[DecisionOption, ...] = Field(..., min_length=1, description="Ordered options")
    next_nodes: dict[str, str] = Field(
        ...,
        description="Answer value -> successor node ID; '*' matches any unlisted value",
    )


class AnswerRemap(BaseModel):
    """
    One row of an evaluator's remap table.

    Copies the answer recorded under ``source`` into the ``target`` slot.
    When ``values`` is given, the answer is translated through it and
    answers missing from the table are not copied.
    """
    model_config = _NODE_CONFIG

    source: str = Field(..., description="Node ID the answer is read from")
    target: str = Field(..., description="Answer slot the value is written to")
    values: dict[str, str] | None = Field(
        default=None,
        description="Optional value translation table",
    )


class EvaluatorNode(BaseModel):
    """
    Computed edge that is never shown to the user.

    The engine applies ``remaps`` to the session answers, then calls
    ``evaluate`` with a read-only SessionContext. The function must return
    one of the ids listed in ``targets``.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: str = Field(..., min_length=1, description="Node ID, unique within its algorithm")
    type: Literal["evaluator"] = "evaluator"
    evaluate: Callable[[SessionContext], str] = Field(..., exclude=True)
    targets: tuple[str, ...] = Field(..., min_length=1, description="Possible successor node IDs")
    remaps: tuple[AnswerRemap, ...] = Field(default=(), description="Declared answer remap table")


class ResultNode(BaseModel):
    """Terminal node."""
    model_config = _NODE_CONFIG

    id: str = Field(..., min_length=1, description="Node ID, unique within its algorithm")
    type: Literal["result"] = "result"
    result_key: ResultKey = Field(..., description="Key resolved through the result catalog")


Node = Annotated[
    DecisionNode | EvaluatorNode | ResultNode,
    Field(discriminator="type"),
]


# ============================================================================
# Constructors used by the algorithm definitions
# ============================================================================

def decision_node(
    node_id: str,
    question: str,
    options: Sequence[tuple[str, str]],
    next_nodes: Mapping[str, str],
) -> DecisionNode:
    """Build a decision node from ``(value, text)`` option pairs."""
    return DecisionNode(
        id=node_id,
        question=question,
        options=tuple(DecisionOption(value=value, text=text) for value, text in options),
        next_nodes=dict(next_nodes),
    )


def evaluator_node(
    node_id: str,
    evaluate: Callable[[SessionContext], str],
    targets: Sequence[str],
    remaps: Sequence[AnswerRemap] = (),
) -> EvaluatorNode:
    return EvaluatorNode(
        id=node_id,
        evaluate=evaluate,
        targets=tuple(targets),
        remaps=tuple(remaps),
    )


def result_node(node_id: str, result_key: ResultKey) -> ResultNode:
    return ResultNode(id=node_id, result_key=result_key)


def index_nodes(*nodes: Any) -> dict[str, Any]:
    """Key a sequence of nodes by their ids, preserving declaration order."""
    return {node.id: node for node in nodes}
