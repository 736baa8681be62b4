"""Tests for the edge compatibility table."""

import pytest

from lorebook_graph.errors import InvalidEdgeError
from lorebook_graph.graph.rules import EDGE_COMPATIBILITY, resolve_edge_type, validate_edge
from lorebook_graph.models import CharacterNode, EventNode, LocationNode, SublocationNode


@pytest.fixture
def nodes():
    return {
        "loc_1": LocationNode(id="loc_1"),
        "loc_2": LocationNode(id="loc_2"),
        "char_3": CharacterNode(id="char_3"),
        "char_4": CharacterNode(id="char_4"),
        "event_5": EventNode(id="event_5"),
        "event_6": EventNode(id="event_6", is_global=True),
        "subloc_7": SublocationNode(id="subloc_7", parent="loc_1"),
    }


class TestResolveEdgeType:
    @pytest.mark.parametrize(
        "source,target,expected",
        [
            ("character", "location", "spawn"),
            ("event", "location", "spawn"),
            ("location", "location", "adjacent"),
            ("character", "character", "knows"),
            ("location", "character", None),
            ("event", "event", None),
            ("character", "sublocation", None),
            ("event", "character", None),
        ],
    )
    def test_table(self, source, target, expected):
        assert resolve_edge_type(source, target) == expected

    def test_every_valid_pair_is_listed(self):
        assert set(EDGE_COMPATIBILITY.values()) == {"spawn", "adjacent", "knows"}


class TestValidateEdge:
    def test_valid(self, nodes):
        assert validate_edge(nodes, "char_3", "loc_1") == "spawn"
        assert validate_edge(nodes, "loc_1", "loc_2", "adjacent") == "adjacent"

    def test_self_loop(self, nodes):
        with pytest.raises(InvalidEdgeError):
            validate_edge(nodes, "loc_1", "loc_1")

    def test_missing_endpoint(self, nodes):
        with pytest.raises(InvalidEdgeError, match="loc_9"):
            validate_edge(nodes, "char_3", "loc_9")

    def test_invalid_pair(self, nodes):
        with pytest.raises(InvalidEdgeError):
            validate_edge(nodes, "loc_1", "char_3")

    def test_sublocations_cannot_be_targets(self, nodes):
        with pytest.raises(InvalidEdgeError):
            validate_edge(nodes, "char_3", "subloc_7")

    def test_type_mismatch(self, nodes):
        with pytest.raises(InvalidEdgeError):
            validate_edge(nodes, "char_3", "char_4", "spawn")

    def test_global_event_cannot_spawn_at_location(self, nodes):
        assert validate_edge(nodes, "event_5", "loc_1") == "spawn"
        with pytest.raises(InvalidEdgeError):
            validate_edge(nodes, "event_6", "loc_1")
