"""Tests for identity allocation."""

import pytest

from lorebook_graph.graph.ids import IdAllocator, id_number, max_observed


class TestIdAllocator:
    """Tests for per-store id counters."""

    def test_prefixes(self):
        ids = IdAllocator()
        assert ids.allocate("location") == "loc_1"
        assert ids.allocate("character") == "char_2"
        assert ids.allocate("event") == "event_3"
        assert ids.allocate("sublocation") == "subloc_4"

    def test_edges_count_separately(self):
        ids = IdAllocator()
        ids.allocate("location")
        ids.allocate("location")
        assert ids.allocate("edge") == "edge_1"
        assert ids.allocate("character") == "char_3"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            IdAllocator().allocate("planet")

    def test_reseed(self):
        ids = IdAllocator()
        ids.reseed({"node": 7, "edge": 3})
        assert ids.allocate("location") == "loc_8"
        assert ids.allocate("edge") == "edge_4"

    def test_reset(self):
        ids = IdAllocator()
        ids.allocate("location")
        ids.allocate("edge")
        ids.reset()
        assert ids.allocate("location") == "loc_1"
        assert ids.allocate("edge") == "edge_1"

    def test_allocators_are_independent(self):
        first, second = IdAllocator(), IdAllocator()
        first.allocate("location")
        first.allocate("location")
        assert second.allocate("location") == "loc_1"


class TestMaxObserved:
    """Tests for scanning existing ids."""

    def test_per_namespace(self):
        ids = ["loc_3", "char_10", "subloc_4", "edge_5", "edge_2"]
        assert max_observed(ids) == {"node": 10, "edge": 5}

    def test_ignores_unnumbered(self):
        assert max_observed(["custom", "loc_x"]) == {"node": 0, "edge": 0}

    def test_id_number(self):
        assert id_number("subloc_12") == 12
        assert id_number("loc") is None
