"""SpatialGraph -- weighted undirected graph over service-area nodes.

Built fresh for each area-scoped query and never shared, so it holds no
locks.

Public API:
    UNREACHABLE: Distance reported when no route exists.
    SpatialGraph: Node/edge container with Dijkstra shortest-path queries.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable

from .models import Edge, Node

logger = logging.getLogger(__name__)

UNREACHABLE = 2**31 - 1


class SpatialGraph:
    """In-memory weighted undirected graph.

    Adjacency lists keep every inserted edge, so self-loops and parallel
    edges are stored as given; the shortest-path search tolerates both.
    Weights must be non-negative.
    """

    def __init__(self) -> None:
        self.nodes: dict[int, Node] = {}
        self.edges: dict[int, list[Edge]] = {}

    @classmethod
    def build(cls, nodes: Iterable[Node], edges: Iterable[Edge]) -> "SpatialGraph":
        """Create a graph from node and edge collections."""
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        for edge in edges:
            graph.add_edge(edge)
        logger.debug(
            "Built spatial graph: %d nodes, %d adjacency entries",
            len(graph.nodes),
            sum(len(adj) for adj in graph.edges.values()),
        )
        return graph

    def add_node(self, node: Node) -> None:
        """Insert a node, replacing any node with the same id."""
        self.nodes[node.id] = node

    def add_edge(self, edge: Edge) -> None:
        """Insert an edge and its mirror."""
        self.edges.setdefault(edge.node_a_id, []).append(edge)
        mirror = edge.reversed()
        self.edges.setdefault(mirror.node_a_id, []).append(mirror)

    def neighbors(self, node_id: int) -> list[Edge]:
        return self.edges.get(node_id, [])

    def shortest_path(self, from_node_id: int, to_node_id: int) -> int:
        """Minimum total edge weight from *from_node_id* to *to_node_id*.

        Returns 0 when both ids are equal and ``UNREACHABLE`` when either
        node is absent or no path connects them. Equal tentative distances
        are settled lowest node id first.
        """
        if from_node_id == to_node_id:
            return 0
        if from_node_id not in self.nodes or to_node_id not in self.nodes:
            return UNREACHABLE

        distances: dict[int, int] = {from_node_id: 0}
        settled: set[int] = set()
        heap: list[tuple[int, int]] = [(0, from_node_id)]

        while heap:
            dist, node_id = heapq.heappop(heap)
            if node_id in settled:
                continue
            if node_id == to_node_id:
                return dist
            settled.add(node_id)

            for edge in self.neighbors(node_id):
                neighbor = edge.node_b_id
                if neighbor in settled or neighbor not in self.nodes:
                    continue
                candidate = dist + edge.weight
                if candidate < distances.get(neighbor, UNREACHABLE):
                    distances[neighbor] = candidate
                    heapq.heappush(heap, (candidate, neighbor))

        return UNREACHABLE

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes


__all__ = ["SpatialGraph", "UNREACHABLE"]
