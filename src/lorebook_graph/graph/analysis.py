"""Graph analysis: networkx projection, statistics and integrity checks."""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Literal

import networkx as nx

from ..errors import InvalidEdgeError
from ..models.graph import EDGE_TYPES, NODE_TYPES, GraphSnapshot
from .rules import validate_edge


@dataclass
class GraphStats:
    """Summary counts for a world graph."""

    node_counts: dict[str, int] = field(default_factory=dict)
    edge_counts: dict[str, int] = field(default_factory=dict)
    regions: int = 0  # Groups of locations connected by adjacency
    isolated_locations: list[str] = field(default_factory=list)

    @property
    def total_nodes(self) -> int:
        return sum(self.node_counts.values())

    @property
    def total_edges(self) -> int:
        return sum(self.edge_counts.values())


@dataclass
class GraphIssue:
    """Something in a graph that won't compile the way it looks."""

    severity: Literal["error", "warning"]
    element_id: str
    message: str


def to_networkx(snapshot: GraphSnapshot) -> nx.MultiDiGraph:
    """Project a snapshot onto a networkx multigraph keyed by edge id."""
    graph = nx.MultiDiGraph()

    for node in snapshot.nodes:
        graph.add_node(node.id, **node.model_dump(exclude={"id"}))

    for edge in snapshot.edges:
        if edge.source not in graph or edge.target not in graph:
            continue
        graph.add_edge(
            edge.source,
            edge.target,
            key=edge.id,
            **edge.model_dump(exclude={"id", "source", "target"}, exclude_none=True),
        )

    return graph


def location_map(snapshot: GraphSnapshot) -> nx.Graph:
    """Undirected graph of locations joined by adjacent edges."""
    graph = nx.Graph()
    graph.add_nodes_from(node.id for node in snapshot.nodes_of_type("location"))
    for edge in snapshot.edges_of_type("adjacent"):
        if edge.source in graph and edge.target in graph:
            graph.add_edge(edge.source, edge.target)
    return graph


def graph_stats(snapshot: GraphSnapshot) -> GraphStats:
    """Count nodes and edges and measure how connected the map is."""
    node_counts = Counter(node.type for node in snapshot.nodes)
    edge_counts = Counter(edge.edge_type for edge in snapshot.edges)

    locations = location_map(snapshot)
    return GraphStats(
        node_counts={t: node_counts.get(t, 0) for t in NODE_TYPES},
        edge_counts={t: edge_counts.get(t, 0) for t in EDGE_TYPES},
        regions=nx.number_connected_components(locations),
        isolated_locations=list(nx.isolates(locations)),
    )


def find_issues(snapshot: GraphSnapshot) -> list[GraphIssue]:
    """Check a graph for problems the compiler would hide.

    Errors break graph invariants; warnings flag data that compiles but
    silently loses information.
    """
    issues: list[GraphIssue] = []
    nodes = snapshot.node_index()

    for node in snapshot.nodes_of_type("sublocation"):
        parent = nodes.get(node.parent)
        if parent is None or parent.type != "location":
            issues.append(GraphIssue(
                "error", node.id, f"Sublocation parent {node.parent} is not an existing location"
            ))

    linked: dict[str, None] = {}
    for edge in snapshot.edges:
        try:
            validate_edge(nodes, edge.source, edge.target, edge.edge_type)
        except InvalidEdgeError as e:
            issues.append(GraphIssue("error", edge.id, str(e)))
            continue

        linked.update(dict.fromkeys((edge.source, edge.target)))

        if edge.edge_type == "spawn":
            issues.extend(_check_spawn(edge, snapshot))

    for node_id in linked:
        node = nodes[node_id]
        if node.first_keyword is None:
            issues.append(GraphIssue(
                "warning", node_id, f"{node.type} {node.name!r} has no keywords; its links won't compile"
            ))

    issues.extend(_keyword_collisions(snapshot))
    return issues


def _check_spawn(edge, snapshot: GraphSnapshot) -> list[GraphIssue]:
    issues = []
    probabilities = [] if edge.probability is None else [edge.probability]
    probabilities += list((edge.sublocation_probabilities or {}).values())
    if any(p < 0 or p > 1 for p in probabilities):
        issues.append(GraphIssue("warning", edge.id, "Spawn probability outside [0, 1]"))

    names = {sub.name for sub in snapshot.sublocations_of(edge.target)}
    for name in edge.sublocation_probabilities or {}:
        if name not in names:
            issues.append(GraphIssue(
                "warning", edge.id, f"Override for unknown sublocation {name!r} of {edge.target}"
            ))
    return issues


def _keyword_collisions(snapshot: GraphSnapshot) -> list[GraphIssue]:
    """Keywords that only differ by case resolve to one node on load."""
    issues = []
    for node_type in ("location", "character"):
        owners: dict[str, list[str]] = defaultdict(list)
        for node in snapshot.nodes_of_type(node_type):
            for keyword in dict.fromkeys(kw.lower() for kw in node.keywords if kw):
                owners[keyword].append(node.id)

        for keyword, node_ids in owners.items():
            if len(node_ids) > 1:
                issues.append(GraphIssue(
                    "warning",
                    node_ids[1],
                    f"Keyword {keyword!r} is shared by {', '.join(node_ids)}",
                ))

    sublocation_names: dict[str, list[str]] = defaultdict(list)
    for node in snapshot.nodes_of_type("sublocation"):
        sublocation_names[node.name.lower()].append(node.id)
    for name, node_ids in sublocation_names.items():
        if len(node_ids) > 1:
            issues.append(GraphIssue(
                "warning", node_ids[1], f"Sublocation name {name!r} is shared by {', '.join(node_ids)}"
            ))
    return issues
