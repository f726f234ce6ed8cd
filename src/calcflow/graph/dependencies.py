"""Node dependency tracking for CalcFlow graphs.

Orders graph nodes for evaluation and detects circular dependencies.
"""

from collections import deque
from collections.abc import Iterable
from typing import Protocol


class EdgeLike(Protocol):
    source: str
    target: str


class NodeDependencyGraph:
    """
    Adjacency list and in-degree map over a node set.

    - adjacency: node_id -> list of target node_ids (one entry per edge)
    - in_degree: node_id -> number of inbound edges
    """

    def __init__(self, node_ids: Iterable[str]):
        """Initialize a graph with no edges."""
        self.node_ids: list[str] = list(dict.fromkeys(node_ids))
        self.adjacency: dict[str, list[str]] = {node_id: [] for node_id in self.node_ids}
        self.in_degree: dict[str, int] = {node_id: 0 for node_id in self.node_ids}

    @classmethod
    def from_edges(cls, node_ids: Iterable[str], edges: Iterable[EdgeLike]) -> "NodeDependencyGraph":
        """
        Build the graph for a node list and its edges.

        Parallel edges are counted separately. Edges touching unknown nodes
        are ignored.
        """
        graph = cls(node_ids)
        for edge in edges:
            graph.add_edge(edge.source, edge.target)
        return graph

    def add_edge(self, source: str, target: str) -> None:
        """Add a dependency: ``target`` reads ``source``."""
        if source not in self.adjacency or target not in self.in_degree:
            return
        self.adjacency[source].append(target)
        self.in_degree[target] += 1

    def topological_sort(self) -> tuple[list[str], set[str]]:
        """
        Order nodes so every node follows its dependencies.

        Uses Kahn's algorithm, seeded in node-list order.

        Returns:
            Tuple of (sorted node_ids, node_ids that could not be ordered).
            The second set holds nodes on a cycle and everything downstream
            of one.
        """
        in_degree = dict(self.in_degree)
        queue = deque(node_id for node_id in self.node_ids if in_degree[node_id] == 0)

        result = []
        while queue:
            node_id = queue.popleft()
            result.append(node_id)

            for dependent in self.adjacency[node_id]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        ordered = set(result)
        circular = {node_id for node_id in self.node_ids if node_id not in ordered}
        return result, circular

    def get_affected_nodes(self, changed_node_id: str) -> list[str]:
        """
        Get nodes that need re-evaluation when a node changes.

        Uses BFS over outgoing edges to find all transitive dependents.
        The changed node itself is not included.
        """
        affected = []
        to_process = deque([changed_node_id])
        seen = {changed_node_id}

        while to_process:
            current = to_process.popleft()
            for dependent in self.adjacency.get(current, []):
                if dependent not in seen:
                    seen.add(dependent)
                    affected.append(dependent)
                    to_process.append(dependent)

        return affected
