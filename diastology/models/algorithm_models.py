"""
Pydantic models for algorithm definitions.

An Algorithm is an immutable, node-id-keyed graph with a default entry
node and optional named modes that enter the shared node pool elsewhere.
Definitions are built once at import and shared read-only by every
navigation session.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from diastology.exceptions import NodeNotFoundError
from diastology.models.node_models import Node

_WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Citation(BaseModel):
    """Published source of an algorithm."""
    model_config = _WIRE_CONFIG

    authors: str = Field(..., description="Author list")
    title: str = Field(..., description="Article title")
    journal: str = Field(..., description="Journal, volume and year")
    url: str = Field(..., description="Link to the publication")


class AlgorithmMode(BaseModel):
    """Named alternate entry point into an algorithm's node pool."""
    model_config = _WIRE_CONFIG

    id: str = Field(..., min_length=1, description="Mode ID")
    name: str = Field(..., description="Display name")
    description: str | None = Field(default=None, description="When to use this mode")
    start_node_id: str = Field(..., description="Entry node for this mode")


class AlgorithmMetadata(BaseModel):
    """Algorithm description without its node graph."""
    model_config = _WIRE_CONFIG

    id: str
    name: str
    description: str | None = None
    citation: Citation
    modes: tuple[AlgorithmMode, ...] = ()


class Algorithm(BaseModel):
    """Complete algorithm definition."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: str = Field(..., min_length=1, description="Algorithm ID")
    name: str = Field(..., description="Display name")
    description: str | None = Field(default=None, description="General description")
    citation: Citation = Field(..., description="Published source")
    modes: tuple[AlgorithmMode, ...] = Field(default=(), description="Named entry points")
    start_node_id: str = Field(..., description="Default entry node")
    nodes: dict[str, Node] = Field(..., description="Node ID -> node")

    def get_mode(self, mode_id: str | None) -> AlgorithmMode | None:
        if mode_id is None:
            return None
        for mode in self.modes:
            if mode.id == mode_id:
                return mode
        return None

    def entry_node_id(self, mode_id: str | None = None) -> str:
        """
        Entry node for a mode.

        Unknown or missing mode ids fall back to the default entry node.
        """
        mode = self.get_mode(mode_id)
        return mode.start_node_id if mode else self.start_node_id

    def mode_for_entry(self, node_id: str) -> str | None:
        """Return the id of the first mode entering at ``node_id``."""
        for mode in self.modes:
            if mode.start_node_id == node_id:
                return mode.id
        return None

    def is_entry_node(self, node_id: str) -> bool:
        return node_id == self.start_node_id or self.mode_for_entry(node_id) is not None

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: str) -> Node:
        """
        Look up a node by id.

        Raises:
            NodeNotFoundError: If the id is not part of this algorithm.
        """
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id, self.id) from None

    def metadata(self) -> AlgorithmMetadata:
        return AlgorithmMetadata(
            id=self.id,
            name=self.name,
            description=self.description,
            citation=self.citation,
            modes=self.modes,
        )
