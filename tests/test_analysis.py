"""Tests for graph statistics and integrity checks."""

from lorebook_graph.graph import find_issues, graph_stats, to_networkx
from lorebook_graph.lorebook import load_lorebook
from lorebook_graph.models import Edge, GraphSnapshot, LocationNode, SublocationNode


class TestToNetworkx:
    def test_nodes_and_edges(self, store, add):
        forest = add("location", "Forest", "forest")
        bob = add("character", "Bob", "bob")
        edge_id = store.add_edge(bob, forest, "spawn", probability=0.4)

        graph = to_networkx(store.snapshot())

        assert graph.number_of_nodes() == 2
        assert graph.nodes[forest]["name"] == "Forest"
        assert graph.nodes[bob]["type"] == "character"
        assert graph.edges[bob, forest, edge_id]["probability"] == 0.4

    def test_dangling_edges_skipped(self):
        snapshot = GraphSnapshot(
            nodes=[LocationNode(id="loc_1", name="Forest")],
            edges=[Edge(id="edge_1", source="loc_1", target="loc_2", edge_type="adjacent")],
        )
        assert to_networkx(snapshot).number_of_edges() == 0


class TestGraphStats:
    def test_counts(self, sample_lorebook):
        stats = graph_stats(load_lorebook(sample_lorebook))

        assert stats.node_counts == {"location": 2, "character": 2, "event": 2, "sublocation": 1}
        assert stats.edge_counts == {"spawn": 3, "adjacent": 1, "knows": 1}
        assert stats.total_nodes == 7
        assert stats.total_edges == 5

    def test_regions(self, store, add):
        forest = add("location", "Forest", "forest")
        cave = add("location", "Cave", "cave")
        lonely = add("location", "Tower", "tower")
        store.add_edge(forest, cave, "adjacent")

        stats = graph_stats(store.snapshot())
        assert stats.regions == 2
        assert stats.isolated_locations == [lonely]

    def test_empty(self, store):
        stats = graph_stats(store.snapshot())
        assert stats.regions == 0
        assert stats.total_nodes == 0


class TestFindIssues:
    """Tests for integrity checks."""

    def test_clean_lorebook(self, sample_lorebook):
        assert find_issues(load_lorebook(sample_lorebook)) == []

    def test_invalid_edge(self, store, add):
        bob = add("character", "Bob", "bob")
        storm = add("event", "Storm", "storm")
        edge_id = store.add_edge(bob, storm, "knows")

        [issue] = find_issues(store.snapshot())
        assert issue.severity == "error"
        assert issue.element_id == edge_id

    def test_global_event_with_spawn_edge(self, store, add):
        forest = add("location", "Forest", "forest")
        storm = add("event", "Storm", "storm", isGlobal=True)
        edge_id = store.add_edge(storm, forest, "spawn")

        [issue] = find_issues(store.snapshot())
        assert issue.severity == "error"
        assert issue.element_id == edge_id
        assert "Global event" in issue.message

    def test_orphan_sublocation(self):
        snapshot = GraphSnapshot(nodes=[SublocationNode(id="subloc_1", parent="loc_9", name="Clearing")])
        [issue] = find_issues(snapshot)
        assert issue.severity == "error"
        assert "loc_9" in issue.message

    def test_keywordless_linked_node(self, store, add):
        nowhere = add("location", "Nowhere")
        forest = add("location", "Forest", "forest")
        store.add_edge(nowhere, forest, "adjacent")

        [issue] = find_issues(store.snapshot())
        assert issue.severity == "warning"
        assert issue.element_id == nowhere

    def test_keywordless_unlinked_node_is_fine(self, store, add):
        add("location", "Nowhere")
        assert find_issues(store.snapshot()) == []

    def test_probability_out_of_range(self, store, add):
        forest = add("location", "Forest", "forest")
        bob = add("character", "Bob", "bob")
        edge_id = store.add_edge(bob, forest, "spawn", probability=1.5)

        [issue] = find_issues(store.snapshot())
        assert issue.element_id == edge_id
        assert "outside" in issue.message

    def test_override_for_unknown_sublocation(self, store, add):
        forest = add("location", "Forest", "forest")
        store.add_sublocation(forest, "Clearing")
        bob = add("character", "Bob", "bob")
        store.add_edge(bob, forest, "spawn", sublocation_probabilities={"Clearing": 0.2, "Stream": 0.3})

        [issue] = find_issues(store.snapshot())
        assert "Stream" in issue.message

    def test_keyword_collision(self, store, add):
        add("location", "Forest", "forest")
        other = add("location", "Dark Forest", "Forest")

        [issue] = find_issues(store.snapshot())
        assert issue.severity == "warning"
        assert issue.element_id == other

    def test_same_keyword_across_types_is_fine(self, store, add):
        add("location", "Bob's House", "bob")
        add("character", "Bob", "bob")
        assert find_issues(store.snapshot()) == []

    def test_sublocation_name_collision(self, store, add):
        forest = add("location", "Forest", "forest")
        cave = add("location", "Cave", "cave")
        store.add_sublocation(forest, "Clearing")
        second = store.add_sublocation(cave, "clearing")

        [issue] = find_issues(store.snapshot())
        assert issue.element_id == second
