"""Data models for world graphs and lorebooks."""

from lorebook_graph.models.graph import (
    EDGE_TYPES,
    NODE_CLASSES,
    NODE_TYPES,
    CharacterNode,
    Edge,
    EdgeType,
    EventNode,
    GraphSnapshot,
    LocationNode,
    Node,
    NodeBase,
    NodeFilters,
    NodeType,
    Position,
    SublocationNode,
)
from lorebook_graph.models.lorebook import KnowsEntry, LorebookEntry, SubLocationEntry

__all__ = [
    "EDGE_TYPES",
    "NODE_CLASSES",
    "NODE_TYPES",
    "CharacterNode",
    "Edge",
    "EdgeType",
    "EventNode",
    "GraphSnapshot",
    "LocationNode",
    "Node",
    "NodeBase",
    "NodeFilters",
    "NodeType",
    "Position",
    "SublocationNode",
    "KnowsEntry",
    "LorebookEntry",
    "SubLocationEntry",
]
