"""Mutable world graph with cascading deletes and per-store identities."""

import logging
import random
from typing import Any, Callable, Iterator, Mapping, Union

from ..config import Settings, get_settings
from ..errors import GraphError, UnknownElementError
from ..models.graph import (
    EDGE_TYPES,
    NODE_CLASSES,
    Edge,
    GraphSnapshot,
    NodeBase,
    Position,
    SublocationNode,
)
from .ids import IdAllocator, max_observed
from .rules import validate_edge

logger = logging.getLogger(__name__)

Element = Union[NodeBase, Edge]
Observer = Callable[[GraphSnapshot], None]

# Fields fixed at creation time
IMMUTABLE_FIELDS = {"id", "type", "source", "target", "parent", "edge_type"}

SUBLOCATION_SPACING = 50
SUBLOCATION_DROP = 20


class GraphStore:
    """Owns a world graph value and every mutation applied to it.

    Each mutating call builds the new node and edge maps first and swaps
    them in with a single assignment, so observers and readers never see
    a node removed while its edges remain.
    """

    def __init__(
        self,
        snapshot: GraphSnapshot | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        """Initialize the store.

        Args:
            snapshot: Optional graph to start from
            settings: Settings override (defaults to the cached settings)
            rng: Random source for default node placement
        """
        self.settings = settings or get_settings()
        self._rng = rng or random.Random()
        self._ids = IdAllocator()
        self._nodes: dict[str, NodeBase] = {}
        self._edges: dict[str, Edge] = {}
        self._selected: Element | None = None
        self._observers: list[Observer] = []

        if snapshot is not None:
            self.load_elements(snapshot)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> list[NodeBase]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges.values())

    @property
    def selected(self) -> Element | None:
        """Copy of the currently selected element, kept in sync with the store."""
        return self._selected

    def node(self, node_id: str) -> NodeBase:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownElementError(node_id) from None

    def edge(self, edge_id: str) -> Edge:
        try:
            return self._edges[edge_id]
        except KeyError:
            raise UnknownElementError(edge_id) from None

    def get(self, element_id: str) -> Element:
        """Get a node or edge by id."""
        if element_id in self._nodes:
            return self._nodes[element_id]
        return self.edge(element_id)

    def edges_of(self, node_id: str) -> list[Edge]:
        """All edges where ``node_id`` is source or target."""
        return [edge for edge in self._edges.values() if edge.touches(node_id)]

    def snapshot(self) -> GraphSnapshot:
        """Return a deep copy of the current graph."""
        return GraphSnapshot(
            nodes=[node.model_copy(deep=True) for node in self._nodes.values()],
            edges=[edge.model_copy(deep=True) for edge in self._edges.values()],
        )

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._nodes or element_id in self._edges

    def __len__(self) -> int:
        return len(self._nodes) + len(self._edges)

    def __iter__(self) -> Iterator[Element]:
        yield from self._nodes.values()
        yield from self._edges.values()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call ``observer`` with a snapshot after every committed change.

        Returns:
            A function that removes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def select(self, element_id: str | None) -> Element | None:
        """Mirror an element as the current selection (None clears it)."""
        if element_id is None:
            self._selected = None
        else:
            self._selected = self.get(element_id).model_copy(deep=True)
        return self._selected

    def _commit(self, nodes: dict[str, NodeBase], edges: dict[str, Edge]) -> None:
        self._nodes, self._edges = nodes, edges

        if self._selected is not None and self._selected.id not in self:
            self._selected = None

        if self._observers:
            snapshot = self.snapshot()
            for observer in list(self._observers):
                observer(snapshot)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def add_node(
        self,
        node_type: str,
        position: Position | tuple[float, float] | None = None,
    ) -> str:
        """Create a node with the default fields for its type.

        Args:
            node_type: location, character or event
            position: Canvas position; a jittered default spot if omitted

        Returns:
            The new node id
        """
        if node_type == "sublocation":
            raise GraphError("Sublocations need a parent; use add_sublocation()")
        if node_type not in NODE_CLASSES:
            raise GraphError(f"Unknown node type: {node_type}")

        if position is None:
            position = Position(
                x=300 + self._rng.random() * 200,
                y=200 + self._rng.random() * 200,
            )
        elif not isinstance(position, Position):
            position = Position(x=position[0], y=position[1])

        fields: dict[str, Any] = {
            "id": self._ids.allocate(node_type),
            "name": f"New {node_type.capitalize()}",
            "position": position,
        }
        if node_type == "event":
            fields["global_spawn_chance"] = self.settings.default_global_spawn_chance

        node = NODE_CLASSES[node_type](**fields)
        self._commit({**self._nodes, node.id: node}, self._edges)
        logger.debug("Added %s %s", node_type, node.id)
        return node.id

    def add_sublocation(self, parent_id: str, name: str | None = None) -> str:
        """Create a sublocation next to its parent location.

        Siblings are laid out left to right so new ones don't overlap.
        """
        parent = self.node(parent_id)
        if parent.type != "location":
            raise GraphError(f"Sublocation parent must be a location, got {parent.type}")

        siblings = [
            node for node in self._nodes.values()
            if getattr(node, "parent", None) == parent_id
        ]
        node = SublocationNode(
            id=self._ids.allocate("sublocation"),
            parent=parent_id,
            name=name or "New Sublocation",
            position=Position(
                x=parent.position.x + len(siblings) * SUBLOCATION_SPACING,
                y=parent.position.y + SUBLOCATION_DROP,
            ),
        )
        self._commit({**self._nodes, node.id: node}, self._edges)
        logger.debug("Added sublocation %s under %s", node.id, parent_id)
        return node.id

    def add_edge(
        self,
        source: str,
        target: str,
        edge_type: str,
        probability: float | None = None,
        sublocation_probabilities: Mapping[str, float] | None = None,
        relationship: str | None = None,
        source_thinks: str | None = None,
        target_thinks: str | None = None,
    ) -> str:
        """Create an edge without checking node type compatibility.

        Callers building edges from user input should use ``connect``.

        Returns:
            The new edge id
        """
        if edge_type not in EDGE_TYPES:
            raise GraphError(f"Unknown edge type: {edge_type}")
        for endpoint in (source, target):
            if endpoint not in self._nodes:
                raise UnknownElementError(endpoint)

        fields: dict[str, Any] = {}
        if edge_type == "spawn":
            fields["probability"] = (
                self.settings.default_spawn_probability if probability is None else probability
            )
            if sublocation_probabilities:
                fields["sublocation_probabilities"] = dict(sublocation_probabilities)
        elif edge_type == "knows":
            fields["relationship"] = relationship or ""
            fields["source_thinks"] = source_thinks or ""
            fields["target_thinks"] = target_thinks or ""

        edge = Edge(
            id=self._ids.allocate("edge"),
            source=source,
            target=target,
            edge_type=edge_type,
            **fields,
        )
        self._commit(self._nodes, {**self._edges, edge.id: edge})
        logger.debug("Added %s edge %s: %s -> %s", edge_type, edge.id, source, target)
        return edge.id

    def connect(self, source: str, target: str, edge_type: str | None = None, **payload: Any) -> str:
        """Validate and create the edge the node types call for.

        Raises:
            InvalidEdgeError: If the two nodes cannot be connected
        """
        resolved = validate_edge(self._nodes, source, target, edge_type)
        return self.add_edge(source, target, resolved, **payload)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update_element(self, element_id: str, fields: Mapping[str, Any] | None = None, **extra: Any) -> Element:
        """Shallow-merge fields into a node or edge.

        Keys may be field names or their camelCase aliases.

        Returns:
            The updated element
        """
        element = self.get(element_id)
        element_cls = type(element)
        changes = {**(fields or {}), **extra}

        updates: dict[str, Any] = {}
        for key, value in changes.items():
            name = element_cls.resolve_field(key)
            if name is None:
                raise GraphError(f"Unknown field for {element_id}: {key}")
            if name in IMMUTABLE_FIELDS and value != getattr(element, name):
                raise GraphError(f"Field {key} of {element_id} cannot be changed")
            updates[name] = value

        updated = element_cls.model_validate({**element.model_dump(), **updates})

        nodes, edges = self._nodes, self._edges
        if isinstance(updated, Edge):
            edges = {**edges, element_id: updated}
        else:
            nodes = {**nodes, element_id: updated}
            if isinstance(updated, SublocationNode) and updated.name != element.name:
                siblings = {
                    n.name for n in nodes.values()
                    if getattr(n, "parent", None) == updated.parent and n.id != element_id
                }
                if updated.name in siblings:
                    raise GraphError(f"{updated.parent} already has a sublocation named {updated.name!r}")
                edges = _rename_override(edges, updated.parent, element.name, updated.name)

        self._commit(nodes, edges)

        if self._selected is not None and self._selected.id == element_id:
            self._selected = updated.model_copy(deep=True)
        return updated

    def delete_element(self, element_id: str) -> list[str]:
        """Delete a node or edge, cascading one level.

        Deleting a node also removes every edge touching it and, for a
        location, its sublocations.

        Returns:
            Ids of every element removed
        """
        if element_id in self._edges:
            edges = {eid: e for eid, e in self._edges.items() if eid != element_id}
            self._commit(self._nodes, edges)
            logger.debug("Deleted edge %s", element_id)
            return [element_id]

        node = self.node(element_id)
        doomed = {element_id} | {
            nid for nid, n in self._nodes.items() if getattr(n, "parent", None) == element_id
        }

        nodes = {nid: n for nid, n in self._nodes.items() if nid not in doomed}
        edges = {
            eid: e for eid, e in self._edges.items()
            if e.source not in doomed and e.target not in doomed
        }
        if isinstance(node, SublocationNode):
            edges = _rename_override(edges, node.parent, node.name, None)

        removed_nodes = [nid for nid in self._nodes if nid in doomed]
        removed_edges = [eid for eid in self._edges if eid not in edges]
        self._commit(nodes, edges)
        logger.debug("Deleted %s with %d dependents", element_id, len(removed_nodes) - 1 + len(removed_edges))
        return removed_nodes + removed_edges

    def clear_graph(self) -> None:
        """Remove everything and restart identity counters."""
        self._ids.reset()
        self._commit({}, {})

    def load_elements(self, snapshot: GraphSnapshot | Mapping[str, Any]) -> None:
        """Replace the whole graph and continue ids past the loaded ones."""
        if not isinstance(snapshot, GraphSnapshot):
            snapshot = GraphSnapshot.model_validate(snapshot)

        nodes = {node.id: node.model_copy(deep=True) for node in snapshot.nodes}
        edges = {edge.id: edge.model_copy(deep=True) for edge in snapshot.edges}
        if len(nodes) != len(snapshot.nodes) or len(edges) != len(snapshot.edges):
            raise GraphError("Snapshot contains duplicate ids")
        for edge in edges.values():
            missing = [nid for nid in (edge.source, edge.target) if nid not in nodes]
            if missing:
                raise GraphError(f"Edge {edge.id} references missing node {', '.join(missing)}")
        for node in nodes.values():
            if isinstance(node, SublocationNode) and getattr(nodes.get(node.parent), "type", None) != "location":
                raise GraphError(f"Sublocation {node.id} parent {node.parent} is not a location")

        self._ids.reseed(max_observed([*nodes, *edges]))
        self._selected = None
        self._commit(nodes, edges)
        logger.debug("Loaded %d nodes and %d edges", len(nodes), len(edges))

    # ------------------------------------------------------------------
    # Lorebook documents and content bodies
    # ------------------------------------------------------------------

    def import_document(self, document: Any) -> GraphSnapshot:
        """Replace the graph with one loaded from a lorebook document.

        The store is untouched if the document cannot be loaded.
        """
        from ..lorebook.loader import load_lorebook

        snapshot = load_lorebook(document)
        self.load_elements(snapshot)
        return snapshot

    def export_document(self, wrapped: bool | None = None) -> Any:
        """Compile the current graph into a lorebook document."""
        from ..lorebook.compiler import compile_document

        if wrapped is None:
            wrapped = self.settings.wrap_entries
        return compile_document(self.snapshot(), wrapped=wrapped)

    def content_body(self, node_id: str, field: str = "content") -> str:
        """Read a content field with its ``Name=[...]`` wrapper removed."""
        from ..lorebook.content import decode

        node = self.node(node_id)
        raw = getattr(node, _text_field(node, field))
        return decode(raw, node.name, node.type)

    def set_content_body(self, node_id: str, text: str, field: str = "content") -> NodeBase:
        """Write a content field, wrapping ``text`` as ``Name=[text]``."""
        from ..lorebook.content import encode

        node = self.node(node_id)
        name = _text_field(node, field)
        return self.update_element(node_id, {name: encode(text, node.name, node.type)})


def _text_field(node: NodeBase, field: str) -> str:
    name = type(node).resolve_field(field)
    if name not in ("content", "content_short"):
        raise GraphError(f"{node.type} has no content field {field}")
    return name


def _rename_override(
    edges: dict[str, Edge],
    location_id: str,
    old_name: str,
    new_name: str | None,
) -> dict[str, Edge]:
    """Re-key (or drop, when ``new_name`` is None) a sublocation override."""
    result = dict(edges)
    for edge_id, edge in edges.items():
        overrides = edge.sublocation_probabilities
        if edge.edge_type != "spawn" or edge.target != location_id or not overrides:
            continue
        if old_name not in overrides:
            continue

        renamed = {
            (new_name if key == old_name else key): value
            for key, value in overrides.items()
            if key != old_name or new_name is not None
        }
        result[edge_id] = edge.model_copy(
            update={"sublocation_probabilities": renamed or None}
        )
    return result
