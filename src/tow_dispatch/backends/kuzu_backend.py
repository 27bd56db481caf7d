"""KuzuMapBackend -- service-area map stored in the Kuzu graph database.

Nodes live in a ``MapNode`` node table and edges in a ``Road`` rel
table, one directed rel per stored edge. Mirroring happens when the
SpatialGraph is built, not in storage.

Public API:
    KuzuMapBackend: MapRepository implementation backed by Kuzu.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import kuzu

from ..exceptions import NotFoundError, StorageFailureError
from ..models import Edge, Node

logger = logging.getLogger(__name__)


class KuzuMapBackend:
    """Kuzu-backed map repository.

    All Cypher queries use parameterised bindings.

    Args:
        db_path: Filesystem path for the Kuzu database.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self._db = kuzu.Database(str(self.db_path))
        self._conn = kuzu.Connection(self._db)
        self.initialize_schema()

    def initialize_schema(self) -> None:
        """Create the map tables if they do not exist."""
        try:
            self._conn.execute("""
                CREATE NODE TABLE IF NOT EXISTS MapNode(
                    id INT64,
                    x INT64,
                    y INT64,
                    area_id INT64,
                    PRIMARY KEY(id)
                )
            """)
            self._conn.execute("""
                CREATE REL TABLE IF NOT EXISTS Road(
                    FROM MapNode TO MapNode,
                    weight INT64
                )
            """)
        except RuntimeError as e:
            logger.error("Failed to initialize map schema at %s: %s", self.db_path, e)
            raise StorageFailureError(f"Cannot initialize map schema: {e}") from e

    def _rows(self, cypher: str, params: dict[str, Any] | None = None) -> list[list[Any]]:
        try:
            result = self._conn.execute(cypher, params or {})
        except RuntimeError as e:
            raise StorageFailureError(str(e)) from e
        rows = []
        while result.has_next():
            rows.append(result.get_next())
        return rows

    # ── writes ────────────────────────────────────────────────

    def add_node(self, node: Node) -> Node:
        """Insert or overwrite a node by id."""
        if node.area_id is None:
            raise StorageFailureError(f"node {node.id} has no area")
        self._rows(
            "MERGE (n:MapNode {id: $id}) SET n.x = $x, n.y = $y, n.area_id = $area",
            {"id": node.id, "x": node.x, "y": node.y, "area": node.area_id},
        )
        return node

    def add_edge(self, edge: Edge) -> Edge:
        """Store an edge between two existing nodes.

        Raises:
            NotFoundError: If either endpoint does not exist.
        """
        found = self._rows(
            "MATCH (n:MapNode) WHERE n.id = $a OR n.id = $b RETURN n.id",
            {"a": edge.node_a_id, "b": edge.node_b_id},
        )
        if {edge.node_a_id, edge.node_b_id} - {row[0] for row in found}:
            raise NotFoundError(
                f"edge ({edge.node_a_id}, {edge.node_b_id}) references a missing node"
            )
        self._rows(
            """
            MATCH (a:MapNode), (b:MapNode)
            WHERE a.id = $a AND b.id = $b
            CREATE (a)-[:Road {weight: $w}]->(b)
            """,
            {"a": edge.node_a_id, "b": edge.node_b_id, "w": edge.weight},
        )
        return edge

    def update_edge(self, node_a_id: int, node_b_id: int, weight: int) -> None:
        params = {"a": node_a_id, "b": node_b_id}
        found = self._rows(
            """
            MATCH (a:MapNode)-[r:Road]->(b:MapNode)
            WHERE a.id = $a AND b.id = $b
            RETURN count(r)
            """,
            params,
        )
        if not found or found[0][0] == 0:
            raise NotFoundError(f"edge ({node_a_id}, {node_b_id}) not found")
        self._rows(
            """
            MATCH (a:MapNode)-[r:Road]->(b:MapNode)
            WHERE a.id = $a AND b.id = $b
            SET r.weight = $w
            """,
            {**params, "w": weight},
        )

    # ── reads ─────────────────────────────────────────────────

    def get_nodes(self, area_id: int | None = None) -> list[Node]:
        if area_id is None:
            rows = self._rows(
                "MATCH (n:MapNode) RETURN n.id, n.x, n.y, n.area_id ORDER BY n.id"
            )
        else:
            rows = self._rows(
                """
                MATCH (n:MapNode) WHERE n.area_id = $area
                RETURN n.id, n.x, n.y, n.area_id ORDER BY n.id
                """,
                {"area": area_id},
            )
        return [Node(id=r[0], x=r[1], y=r[2], area_id=r[3]) for r in rows]

    def get_edges(self, area_id: int | None = None) -> list[Edge]:
        if area_id is None:
            rows = self._rows(
                "MATCH (a:MapNode)-[r:Road]->(b:MapNode) RETURN a.id, b.id, r.weight"
            )
        else:
            rows = self._rows(
                """
                MATCH (a:MapNode)-[r:Road]->(b:MapNode)
                WHERE a.area_id = $area
                RETURN a.id, b.id, r.weight
                """,
                {"area": area_id},
            )
        return [Edge(node_a_id=r[0], node_b_id=r[1], weight=r[2]) for r in rows]

    def get_area_id_for_node(self, node_id: int) -> int:
        rows = self._rows(
            "MATCH (n:MapNode) WHERE n.id = $id RETURN n.area_id", {"id": node_id}
        )
        if not rows:
            raise NotFoundError(f"node {node_id} not found")
        return rows[0][0]

    def close(self) -> None:
        """Release Kuzu resources."""
        self._conn = None  # type: ignore[assignment]
        self._db = None  # type: ignore[assignment]


__all__ = ["KuzuMapBackend"]
