"""Load a lorebook back into a world graph.

Edges are rebuilt from the lorebook's keyword lists. Loading runs in
passes because each one resolves keywords against maps built by the
ones before it:

1. Locations and their sublocations (keyword and sublocation maps)
2. Characters and events, with spawn edges from ``canSpawnAt``
3. Adjacency from location ``triggers``
4. Relationships from character ``knows`` mappings

References that don't resolve are dropped; a lorebook written by hand
loads as much of the graph as it can describe.
"""

import logging
import math
from typing import Any

from pydantic import ValidationError

from ..errors import LorebookFormatError
from ..graph.ids import IdAllocator
from ..models.graph import (
    CharacterNode,
    Edge,
    EventNode,
    GraphSnapshot,
    LocationNode,
    NodeBase,
    NodeFilters,
    Position,
    SublocationNode,
)
from ..models.lorebook import LorebookEntry
from .compiler import GLOBAL_SPAWN_KEY
from .document import extract_entries

logger = logging.getLogger(__name__)

# Grid layout
GRID_ORIGIN = 150
GRID_COLUMN_WIDTH = 200
GRID_ROW_HEIGHT = 180
SUBLOCATION_SPACING = 50
SUBLOCATION_DROP = 20


def grid_position(index: int, total: int) -> Position:
    """Place the ``index``-th entry on a roughly square grid."""
    cols = max(1, math.ceil(math.sqrt(total)))
    row, col = divmod(index, cols)
    return Position(
        x=GRID_ORIGIN + col * GRID_COLUMN_WIDTH,
        y=GRID_ORIGIN + row * GRID_ROW_HEIGHT,
    )


def parse_entries(raw_entries: list[Any]) -> list[LorebookEntry]:
    """Validate raw entries, naming the first bad one."""
    entries = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            raise LorebookFormatError(f"Entry {index} is not an object")
        try:
            entries.append(LorebookEntry.model_validate(raw))
        except ValidationError as e:
            raise LorebookFormatError(f"Entry {index} is invalid: {e}") from e
    return entries


class LorebookLoader:
    """Rebuilds a graph from parsed lorebook entries.

    A loader is single use: create one per document and call ``load``.
    """

    def __init__(self, entries: list[LorebookEntry]):
        self.entries = entries
        self.ids = IdAllocator()
        self.nodes: list[NodeBase] = []
        self.edges: list[Edge] = []

        # lowercased keyword / name -> node id
        self.location_ids: dict[str, str] = {}
        self.character_ids: dict[str, str] = {}
        # lowercased sublocation name -> (parent id, original name)
        self.sublocations: dict[str, tuple[str, str]] = {}

        self._triggers: dict[str, list[str]] = {}
        self._characters: list[tuple[str, LorebookEntry]] = []

    def load(self) -> GraphSnapshot:
        self._load_locations()
        self._load_spawners()
        self._link_adjacent()
        self._link_relationships()

        logger.debug(
            "Loaded %d entries into %d nodes and %d edges",
            len(self.entries), len(self.nodes), len(self.edges),
        )
        return GraphSnapshot(nodes=self.nodes, edges=self.edges)

    # ------------------------------------------------------------------
    # Pass 1: locations
    # ------------------------------------------------------------------

    def _load_locations(self) -> None:
        total = len(self.entries)

        for index, entry in enumerate(self.entries):
            if entry.category != "location":
                continue

            node_id = self.ids.allocate("location")
            position = grid_position(index, total)
            self.nodes.append(LocationNode(
                id=node_id,
                name=entry.name,
                keywords=entry.keywords,
                content=entry.content,
                content_short=entry.content_short,
                images=entry.images,
                filters=self._filters(entry, index),
                position=position,
            ))
            self._triggers[node_id] = entry.triggers
            self._index_keywords(self.location_ids, entry.keywords, node_id)

            sub_locations = list(entry.sub_locations.items())
            for sub_index, (name, sub) in enumerate(sub_locations):
                # Centered row beneath the parent
                offset = (sub_index - (len(sub_locations) - 1) / 2) * SUBLOCATION_SPACING
                self.nodes.append(SublocationNode(
                    id=self.ids.allocate("sublocation"),
                    parent=node_id,
                    name=name,
                    images=sub.images,
                    position=Position(x=position.x + offset, y=position.y + SUBLOCATION_DROP),
                ))

                key = name.lower()
                if key in self.sublocations:
                    logger.warning("Sublocation name %r is declared more than once", name)
                    continue
                self.sublocations[key] = (node_id, name)

    # ------------------------------------------------------------------
    # Pass 2: characters and events
    # ------------------------------------------------------------------

    def _load_spawners(self) -> None:
        total = len(self.entries)

        for index, entry in enumerate(self.entries):
            if entry.category == "character":
                node_id = self.ids.allocate("character")
                self.nodes.append(CharacterNode(
                    id=node_id,
                    name=entry.name,
                    keywords=entry.keywords,
                    content=entry.content,
                    content_short=entry.content_short,
                    images=entry.images,
                    filters=self._filters(entry, index),
                    disabled_for=entry.disabled_for,
                    position=grid_position(index, total),
                ))
                self._index_keywords(self.character_ids, entry.keywords, node_id)
                self._characters.append((node_id, entry))
                self._add_spawn_edges(node_id, entry.can_spawn_at)

            elif entry.category == "event":
                node_id = self.ids.allocate("event")
                is_global = GLOBAL_SPAWN_KEY in entry.can_spawn_at
                event = EventNode(
                    id=node_id,
                    name=entry.name or "Unnamed Event",
                    keywords=entry.keywords,
                    content=entry.content,
                    images=entry.images,
                    filters=self._filters(entry, index),
                    time_filter=entry.time_filter,
                    is_global=is_global,
                    position=grid_position(index, total),
                )
                if is_global:
                    event.global_spawn_chance = entry.can_spawn_at[GLOBAL_SPAWN_KEY]
                self.nodes.append(event)

                if not is_global:
                    self._add_spawn_edges(node_id, entry.can_spawn_at)

            elif entry.category != "location":
                logger.warning("Skipping entry %d with unknown category %r", index, entry.category)

    def _add_spawn_edges(self, node_id: str, can_spawn_at: dict[str, float]) -> None:
        """Group ``canSpawnAt`` keys into one spawn edge per location.

        Sublocation keys become overrides on their parent's edge. A parent
        only reached through its sublocations gets no probability of its own.
        """
        spawns: dict[str, dict[str, Any]] = {}

        for key, probability in can_spawn_at.items():
            lowered = key.lower()
            if lowered in self.location_ids:
                location_id = self.location_ids[lowered]
                spawn = spawns.setdefault(location_id, {"probability": None, "overrides": {}})
                spawn["probability"] = probability
            elif lowered in self.sublocations:
                location_id, original_name = self.sublocations[lowered]
                spawn = spawns.setdefault(location_id, {"probability": None, "overrides": {}})
                spawn["overrides"][original_name] = probability
            else:
                logger.debug("Dropping unresolved spawn location %r for %s", key, node_id)

        for location_id, spawn in spawns.items():
            self.edges.append(Edge(
                id=self.ids.allocate("edge"),
                source=node_id,
                target=location_id,
                edge_type="spawn",
                probability=spawn["probability"],
                sublocation_probabilities=spawn["overrides"] or None,
            ))

    # ------------------------------------------------------------------
    # Pass 3: adjacency
    # ------------------------------------------------------------------

    def _link_adjacent(self) -> None:
        linked: set[frozenset[str]] = set()

        for location_id, triggers in self._triggers.items():
            for trigger in triggers:
                target_id = self.location_ids.get(trigger.lower())
                if target_id is None:
                    logger.debug("Dropping unresolved trigger %r on %s", trigger, location_id)
                    continue
                if target_id == location_id:
                    continue

                pair = frozenset((location_id, target_id))
                if pair in linked:
                    continue
                linked.add(pair)

                self.edges.append(Edge(
                    id=self.ids.allocate("edge"),
                    source=location_id,
                    target=target_id,
                    edge_type="adjacent",
                ))

    # ------------------------------------------------------------------
    # Pass 4: relationships
    # ------------------------------------------------------------------

    def _link_relationships(self) -> None:
        knows_edges: dict[frozenset[str], Edge] = {}

        for node_id, entry in self._characters:
            for keyword, known in entry.knows.items():
                other_id = self.character_ids.get(keyword.lower())
                if other_id is None or other_id == node_id:
                    logger.debug("Dropping unresolved relationship %r on %s", keyword, node_id)
                    continue

                pair = frozenset((node_id, other_id))
                edge = knows_edges.get(pair)
                if edge is None:
                    edge = Edge(
                        id=self.ids.allocate("edge"),
                        source=node_id,
                        target=other_id,
                        edge_type="knows",
                        relationship=known.relationship,
                        source_thinks=known.thoughts,
                        target_thinks="",
                    )
                    knows_edges[pair] = edge
                    self.edges.append(edge)
                elif edge.target == node_id:
                    edge.target_thinks = known.thoughts
                    if not edge.relationship:
                        edge.relationship = known.relationship

    # ------------------------------------------------------------------

    def _index_keywords(self, index: dict[str, str], keywords: list[str], node_id: str) -> None:
        for keyword in keywords:
            if not keyword:
                continue
            lowered = keyword.lower()
            existing = index.get(lowered)
            if existing is not None and existing != node_id:
                logger.warning(
                    "Keyword %r of %s collides with %s; keeping %s",
                    keyword, node_id, existing, existing,
                )
                continue
            index[lowered] = node_id

    def _filters(self, entry: LorebookEntry, index: int) -> NodeFilters:
        try:
            return NodeFilters.model_validate(entry.filters)
        except ValidationError as e:
            raise LorebookFormatError(f"Entry {index} has invalid filters: {e}") from e


def load_lorebook(document: Any) -> GraphSnapshot:
    """Load a lorebook document (bare list or ``{entries}``) into a graph.

    Raises:
        LorebookFormatError: If the document or one of its entries is malformed
    """
    entries = parse_entries(extract_entries(document))
    return LorebookLoader(entries).load()
