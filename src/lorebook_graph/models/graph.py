"""Graph models: nodes, edges and snapshots of a world graph."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

NodeType = Literal["location", "character", "event", "sublocation"]
EdgeType = Literal["spawn", "adjacent", "knows"]

NODE_TYPES: tuple[str, ...] = ("location", "character", "event", "sublocation")
EDGE_TYPES: tuple[str, ...] = ("spawn", "adjacent", "knows")

# One or more image URLs per time/context key
Images = dict[str, Union[str, list[str]]]


class GraphModel(BaseModel):
    """Base for graph models; accepts both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def resolve_field(cls, key: str) -> str | None:
        """Map an alias or field name to the field name, or None if unknown."""
        for name, info in cls.model_fields.items():
            if key == name or key == info.alias:
                return name
        return None


class Position(BaseModel):
    """Canvas position, owned by the visualization layer."""

    x: float = 0.0
    y: float = 0.0


class NodeFilters(GraphModel):
    """Runtime filters; unknown filter keys are carried through untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    requires_any: list[str] = Field(default_factory=list, alias="requiresAny")


class NodeBase(GraphModel):
    id: str
    name: str = ""
    position: Position = Field(default_factory=Position)

    @property
    def first_keyword(self) -> str | None:
        """The node's linkage key, or None when it has no keywords."""
        keywords = getattr(self, "keywords", None)
        if keywords and keywords[0]:
            return keywords[0]
        return None


class LocationNode(NodeBase):
    """A place characters and events can appear at."""

    type: Literal["location"] = "location"
    keywords: list[str] = Field(default_factory=list)
    content: str = ""
    content_short: str = Field(default="", alias="contentShort")
    images: Images = Field(default_factory=dict)
    filters: NodeFilters = Field(default_factory=NodeFilters)


class CharacterNode(NodeBase):
    """A character who can spawn at locations and know other characters."""

    type: Literal["character"] = "character"
    keywords: list[str] = Field(default_factory=list)
    content: str = ""
    content_short: str = Field(default="", alias="contentShort")
    images: Images = Field(default_factory=dict)
    filters: NodeFilters = Field(default_factory=NodeFilters)
    disabled_for: list[str] = Field(default_factory=list, alias="disabledFor")


class EventNode(NodeBase):
    """A time-bound event; global events may spawn anywhere."""

    type: Literal["event"] = "event"
    keywords: list[str] = Field(default_factory=list)
    content: str = ""
    images: Images = Field(default_factory=dict)
    filters: NodeFilters = Field(default_factory=NodeFilters)
    time_filter: list[str] = Field(default_factory=list, alias="timeFilter")
    is_global: bool = Field(default=False, alias="isGlobal")
    global_spawn_chance: float = Field(default=0.1, alias="globalSpawnChance")


class SublocationNode(NodeBase):
    """A child place of a location with its own imagery."""

    type: Literal["sublocation"] = "sublocation"
    parent: str
    images: Images = Field(default_factory=dict)


Node = Annotated[
    Union[LocationNode, CharacterNode, EventNode, SublocationNode],
    Field(discriminator="type"),
]

NODE_CLASSES: dict[str, type[NodeBase]] = {
    "location": LocationNode,
    "character": CharacterNode,
    "event": EventNode,
    "sublocation": SublocationNode,
}


class Edge(GraphModel):
    """A directed relation between two nodes.

    Spawn edges carry ``probability`` and optional per-sublocation
    overrides, where an override of 0 means "never here". Knows edges
    carry the relationship and what each side thinks of the other.
    """

    id: str
    source: str
    target: str
    edge_type: EdgeType = Field(alias="edgeType")

    # spawn
    probability: float | None = None
    sublocation_probabilities: dict[str, float] | None = Field(
        default=None, alias="sublocationProbabilities"
    )

    # knows
    relationship: str | None = None
    source_thinks: str | None = Field(default=None, alias="sourceThinks")
    target_thinks: str | None = Field(default=None, alias="targetThinks")

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


class GraphSnapshot(GraphModel):
    """An immutable-by-convention value of a whole world graph."""

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    def node_index(self) -> dict[str, NodeBase]:
        return {node.id: node for node in self.nodes}

    def nodes_of_type(self, node_type: str) -> list:
        return [node for node in self.nodes if node.type == node_type]

    def edges_of_type(self, edge_type: str) -> list[Edge]:
        return [edge for edge in self.edges if edge.edge_type == edge_type]

    def sublocations_of(self, location_id: str) -> list[SublocationNode]:
        return [
            node for node in self.nodes
            if node.type == "sublocation" and node.parent == location_id
        ]
