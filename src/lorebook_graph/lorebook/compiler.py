"""Compile a world graph into a flat lorebook.

The lorebook repeats what the graph's edges say as keyword lists:
location triggers come from adjacency, character triggers and ``knows``
from relationships, and ``canSpawnAt`` from spawn edges. Every link is
made through the other node's first keyword, so nodes without keywords
drop out of these derived fields.
"""

import logging
from typing import Any

from ..models.graph import Edge, GraphSnapshot, NodeBase
from .document import SCHEMA_VERSION

logger = logging.getLogger(__name__)

GLOBAL_SPAWN_KEY = "any"


def clean_images(images: dict | None) -> dict[str, list[str]]:
    """Drop blank URLs and normalize every value to a list.

    Keys left without any URL are dropped.
    """
    cleaned: dict[str, list[str]] = {}
    for key, value in (images or {}).items():
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            continue
        urls = [url.strip() for url in value if isinstance(url, str) and url.strip()]
        if urls:
            cleaned[key] = urls
    return cleaned


def _dedupe(keywords: list[str]) -> list[str]:
    return list(dict.fromkeys(keywords))


def _filters(node: NodeBase) -> dict[str, Any]:
    filters = node.filters.model_dump(by_alias=True)
    if not filters.get("requiresAny"):
        filters.pop("requiresAny", None)
    return filters


def spawn_map(node_id: str, edges: list[Edge], nodes: dict[str, NodeBase]) -> dict[str, float]:
    """Build ``canSpawnAt`` from a node's outgoing spawn edges.

    A sublocation override of 0 means "never here" and is left out; a
    parent probability of 0 is a real value and is kept.
    """
    can_spawn_at: dict[str, float] = {}
    for edge in edges:
        if edge.edge_type != "spawn" or edge.source != node_id:
            continue

        target = nodes.get(edge.target)
        keyword = target.first_keyword if target else None
        if keyword and edge.probability is not None:
            can_spawn_at[keyword] = edge.probability

        for sublocation, probability in (edge.sublocation_probabilities or {}).items():
            if probability > 0:
                can_spawn_at[sublocation] = probability
    return can_spawn_at


def _adjacent_triggers(node_id: str, edges: list[Edge], nodes: dict[str, NodeBase]) -> list[str]:
    adjacent = [e for e in edges if e.edge_type == "adjacent"]
    neighbours = [e.target for e in adjacent if e.source == node_id]
    neighbours += [e.source for e in adjacent if e.target == node_id]

    keywords = [nodes[n].first_keyword for n in neighbours if n in nodes]
    return _dedupe([kw for kw in keywords if kw])


def _relationships(
    edges: list[Edge], nodes: dict[str, NodeBase]
) -> dict[str, tuple[list[str], dict[str, dict[str, str]]]]:
    """Collect triggers and ``knows`` entries per character from knows edges."""
    relationships: dict[str, tuple[list[str], dict[str, dict[str, str]]]] = {}

    for edge in edges:
        if edge.edge_type != "knows":
            continue

        source, target = nodes.get(edge.source), nodes.get(edge.target)
        source_keyword = source.first_keyword if source else None
        target_keyword = target.first_keyword if target else None
        relationship = edge.relationship or ""

        source_triggers, source_knows = relationships.setdefault(edge.source, ([], {}))
        target_triggers, target_knows = relationships.setdefault(edge.target, ([], {}))

        if target_keyword:
            source_triggers.append(target_keyword)
            source_knows[target_keyword] = {
                "relationship": relationship,
                "thoughts": edge.source_thinks or "",
            }
        if source_keyword:
            target_triggers.append(source_keyword)
            target_knows[source_keyword] = {
                "relationship": relationship,
                "thoughts": edge.target_thinks or "",
            }

    return relationships


def _location_entry(node, snapshot: GraphSnapshot, nodes: dict[str, NodeBase]) -> dict[str, Any]:
    entry = {
        "keywords": list(node.keywords),
        "category": "location",
        "name": node.name,
        "content": node.content,
        "contentShort": node.content_short,
        "triggers": _adjacent_triggers(node.id, snapshot.edges, nodes),
        "images": clean_images(node.images),
        "filters": _filters(node),
        "enabled": True,
    }

    sub_locations = {
        sub.name: {"images": clean_images(sub.images)}
        for sub in snapshot.sublocations_of(node.id)
    }
    if sub_locations:
        entry["subLocations"] = sub_locations
    return entry


def _character_entry(node, snapshot: GraphSnapshot, nodes: dict[str, NodeBase], relationships) -> dict[str, Any]:
    triggers, knows = relationships.get(node.id, ([], {}))

    entry = {
        "keywords": list(node.keywords),
        "category": "character",
        "name": node.name,
        "content": node.content,
        "contentShort": node.content_short,
        "triggers": _dedupe(triggers),
        "canSpawnAt": spawn_map(node.id, snapshot.edges, nodes),
        "images": clean_images(node.images),
        "filters": _filters(node),
        "disabledFor": list(node.disabled_for),
        "enabled": True,
    }
    if knows:
        entry["knows"] = knows
    return entry


def _event_entry(node, snapshot: GraphSnapshot, nodes: dict[str, NodeBase]) -> dict[str, Any]:
    if node.is_global:
        # Global events ignore whatever spawn edges they might carry
        can_spawn_at = {GLOBAL_SPAWN_KEY: node.global_spawn_chance}
    else:
        can_spawn_at = spawn_map(node.id, snapshot.edges, nodes)

    return {
        "keywords": list(node.keywords),
        "category": "event",
        "name": node.name,
        "content": node.content,
        "contentShort": "",
        "triggers": [],
        "canSpawnAt": can_spawn_at,
        "timeFilter": list(node.time_filter),
        "images": clean_images(node.images),
        "filters": _filters(node),
        "disabledFor": [],
        "enabled": True,
    }


def compile_graph(snapshot: GraphSnapshot) -> list[dict[str, Any]]:
    """Compile a graph into lorebook entries.

    Locations come first, then characters, then events, each in the order
    the nodes were added. Sublocations are folded into their parent entry.
    """
    nodes = snapshot.node_index()
    relationships = _relationships(snapshot.edges, nodes)

    entries = [_location_entry(n, snapshot, nodes) for n in snapshot.nodes_of_type("location")]
    entries += [
        _character_entry(n, snapshot, nodes, relationships)
        for n in snapshot.nodes_of_type("character")
    ]
    entries += [_event_entry(n, snapshot, nodes) for n in snapshot.nodes_of_type("event")]

    logger.debug("Compiled %d entries from %d nodes", len(entries), len(snapshot.nodes))
    return entries


def compile_document(snapshot: GraphSnapshot, wrapped: bool = False) -> Any:
    """Compile a graph into a document ready to write.

    Args:
        snapshot: The graph to compile
        wrapped: Return ``{"schemaVersion", "entries"}`` instead of a bare list
    """
    entries = compile_graph(snapshot)
    if wrapped:
        return {"schemaVersion": SCHEMA_VERSION, "entries": entries}
    return entries
