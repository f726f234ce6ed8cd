"""Unit tests for NodeDependencyGraph."""

from calcflow.graph.dependencies import NodeDependencyGraph
from calcflow.graph.models import Edge


def build(node_ids, pairs):
    return NodeDependencyGraph.from_edges(
        node_ids, [Edge(source=source, target=target) for source, target in pairs]
    )


class TestTopologicalSort:
    """Tests for topological_sort."""

    def test_orders_dependencies_first(self):
        """Test that sources come before their dependents."""
        graph = build(["c", "a", "b"], [("a", "c"), ("b", "c")])
        order, circular = graph.topological_sort()
        assert order == ["a", "b", "c"]
        assert circular == set()

    def test_seeded_in_node_order(self):
        """Test that independent nodes keep list order."""
        graph = build(["z", "y", "x"], [])
        assert graph.topological_sort() == (["z", "y", "x"], set())

    def test_cycle_and_downstream_are_circular(self):
        """Test that nodes on or after a cycle are reported."""
        graph = build(["a", "b", "c", "d"], [("a", "b"), ("b", "a"), ("b", "c")])
        order, circular = graph.topological_sort()
        assert order == ["d"]
        assert circular == {"a", "b", "c"}

    def test_self_loop(self):
        """Test a node feeding itself."""
        order, circular = build(["a"], [("a", "a")]).topological_sort()
        assert order == []
        assert circular == {"a"}

    def test_parallel_edges(self):
        """Test that duplicate edges are counted and released together."""
        graph = build(["a", "b"], [("a", "b"), ("a", "b")])
        assert graph.in_degree["b"] == 2
        assert graph.topological_sort() == (["a", "b"], set())

    def test_unknown_endpoints_ignored(self):
        """Test edges that reference missing nodes."""
        graph = build(["a"], [("a", "ghost"), ("ghost", "a")])
        assert graph.adjacency == {"a": []}
        assert graph.topological_sort() == (["a"], set())


class TestGraphQueries:
    """Tests for affected nodes."""

    def test_get_affected_nodes(self):
        """Test transitive dependents in BFS order."""
        graph = build(["a", "b", "c", "d"], [("a", "b"), ("b", "c"), ("a", "d")])
        assert graph.get_affected_nodes("a") == ["b", "d", "c"]
        assert graph.get_affected_nodes("c") == []

    def test_get_affected_nodes_excludes_self_on_cycle(self):
        """Test that a cycle does not list the changed node."""
        graph = build(["a", "b"], [("a", "b"), ("b", "a")])
        assert graph.get_affected_nodes("a") == ["b"]
