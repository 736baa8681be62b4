"""Identity allocation for graph elements.

Ids look like ``{prefix}_{n}``. Edges draw ``n`` from their own counter;
every node kind shares a second one, so ``loc_1`` and ``char_1`` never
both exist.
"""

from typing import Iterable

NODE_PREFIXES: dict[str, str] = {
    "location": "loc",
    "character": "char",
    "event": "event",
    "sublocation": "subloc",
}
EDGE_PREFIX = "edge"


def namespace_of(element_id: str) -> str:
    """Return the counter namespace ("edge" or "node") an id belongs to."""
    return "edge" if element_id.startswith(f"{EDGE_PREFIX}_") else "node"


def id_number(element_id: str) -> int | None:
    """Parse the numeric suffix of an id, or None if it has none."""
    _, _, suffix = element_id.rpartition("_")
    return int(suffix) if suffix.isdigit() else None


def max_observed(element_ids: Iterable[str]) -> dict[str, int]:
    """Find the highest id number used in each namespace."""
    highest = {"node": 0, "edge": 0}
    for element_id in element_ids:
        number = id_number(element_id)
        if number is None:
            continue
        namespace = namespace_of(element_id)
        highest[namespace] = max(highest[namespace], number)
    return highest


class IdAllocator:
    """Hands out fresh element ids; owned by one store (or one load)."""

    def __init__(self) -> None:
        self._next = {"node": 1, "edge": 1}

    def allocate(self, kind: str) -> str:
        """Allocate an id for a node type or for ``"edge"``."""
        if kind == EDGE_PREFIX:
            prefix, namespace = EDGE_PREFIX, "edge"
        elif kind in NODE_PREFIXES:
            prefix, namespace = NODE_PREFIXES[kind], "node"
        else:
            raise ValueError(f"Unknown element kind: {kind}")

        number = self._next[namespace]
        self._next[namespace] = number + 1
        return f"{prefix}_{number}"

    def reseed(self, max_observed_per_namespace: dict[str, int]) -> None:
        """Continue counting one past the highest number seen per namespace."""
        for namespace in self._next:
            self._next[namespace] = max_observed_per_namespace.get(namespace, 0) + 1

    def reset(self) -> None:
        self._next = {"node": 1, "edge": 1}
