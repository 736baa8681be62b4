"""Which edges may connect which nodes.

The table is the single source of truth for edge typing. Interactive
edge creation and programmatic graph building both go through
``validate_edge``; the store's raw ``add_edge`` does not.
"""

from typing import Mapping

from ..errors import InvalidEdgeError
from ..models.graph import NodeBase

EDGE_COMPATIBILITY: dict[tuple[str, str], str] = {
    ("character", "location"): "spawn",
    ("event", "location"): "spawn",
    ("location", "location"): "adjacent",
    ("character", "character"): "knows",
}

INVALID_EDGE_HINT = (
    "Characters and events can connect to locations, locations to "
    "locations, and characters to characters."
)


def resolve_edge_type(source_type: str, target_type: str) -> str | None:
    """Return the edge type for a pair of node types, or None if invalid."""
    return EDGE_COMPATIBILITY.get((source_type, target_type))


def validate_edge(
    nodes: Mapping[str, NodeBase],
    source: str,
    target: str,
    edge_type: str | None = None,
) -> str:
    """Check that an edge from ``source`` to ``target`` may exist.

    Args:
        nodes: Node lookup by id
        source: Source node id
        target: Target node id
        edge_type: Requested edge type; inferred from the table if omitted

    Returns:
        The edge type the pair maps to

    Raises:
        InvalidEdgeError: If the edge is not allowed
    """
    if source == target:
        raise InvalidEdgeError(f"A node cannot connect to itself: {source}")

    missing = [node_id for node_id in (source, target) if node_id not in nodes]
    if missing:
        raise InvalidEdgeError(f"Edge endpoint does not exist: {', '.join(missing)}")

    source_node, target_node = nodes[source], nodes[target]
    resolved = resolve_edge_type(source_node.type, target_node.type)
    if resolved is None:
        raise InvalidEdgeError(
            f"Invalid connection {source_node.type} -> {target_node.type}. {INVALID_EDGE_HINT}"
        )
    if edge_type is not None and edge_type != resolved:
        raise InvalidEdgeError(
            f"{source_node.type} -> {target_node.type} must be a {resolved} edge, not {edge_type}"
        )
    if resolved == "spawn" and getattr(source_node, "is_global", False):
        raise InvalidEdgeError(
            f"Global event {source} spawns everywhere and cannot have location spawn edges"
        )
    return resolved
