"""Exception types raised by Lorebook Graph."""


class LorebookGraphError(Exception):
    """Base class for all errors raised by this package."""


class GraphError(LorebookGraphError):
    """A graph operation was called with arguments it cannot honour."""


class UnknownElementError(GraphError, KeyError):
    """No node or edge exists with the given id."""

    def __init__(self, element_id: str):
        super().__init__(element_id)
        self.element_id = element_id

    def __str__(self) -> str:
        return f"Unknown element: {self.element_id}"


class InvalidEdgeError(GraphError, ValueError):
    """An edge would connect two nodes that cannot be related that way."""


class LorebookFormatError(LorebookGraphError, ValueError):
    """A lorebook document could not be read."""
