"""World graph state, edge rules and analysis."""

from lorebook_graph.graph.analysis import GraphIssue, GraphStats, find_issues, graph_stats, to_networkx
from lorebook_graph.graph.ids import IdAllocator, max_observed
from lorebook_graph.graph.rules import EDGE_COMPATIBILITY, resolve_edge_type, validate_edge
from lorebook_graph.graph.store import GraphStore

__all__ = [
    "EDGE_COMPATIBILITY",
    "GraphIssue",
    "GraphStats",
    "GraphStore",
    "IdAllocator",
    "find_issues",
    "graph_stats",
    "max_observed",
    "resolve_edge_type",
    "to_networkx",
    "validate_edge",
]
