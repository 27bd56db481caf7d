"""SQLite backend implementing every repository protocol."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from ..exceptions import NotFoundError, StorageFailureError
from ..models import (
    CompletedOrder,
    Dispatcher,
    Edge,
    Node,
    Order,
    OrderStatus,
    TowTruck,
    TruckStatus,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS nodes (
        id INTEGER PRIMARY KEY,
        x INTEGER NOT NULL,
        y INTEGER NOT NULL,
        area_id INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS edges (
        node_a_id INTEGER NOT NULL REFERENCES nodes(id),
        node_b_id INTEGER NOT NULL REFERENCES nodes(id),
        weight INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS dispatchers (
        id INTEGER PRIMARY KEY,
        user_id INTEGER NOT NULL REFERENCES users(id),
        area_id INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tow_trucks (
        id INTEGER PRIMARY KEY,
        driver_id INTEGER NOT NULL REFERENCES users(id),
        status TEXT NOT NULL,
        area_id INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS locations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tow_truck_id INTEGER NOT NULL REFERENCES tow_trucks(id),
        node_id INTEGER NOT NULL REFERENCES nodes(id),
        timestamp TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL,
        dispatcher_id INTEGER,
        tow_truck_id INTEGER,
        status TEXT NOT NULL,
        node_id INTEGER NOT NULL REFERENCES nodes(id),
        car_value REAL NOT NULL,
        order_time TEXT NOT NULL,
        completed_time TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS completed_orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id INTEGER NOT NULL REFERENCES orders(id),
        tow_truck_id INTEGER NOT NULL,
        order_time TEXT,
        completed_time TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_nodes_area ON nodes(area_id)",
    "CREATE INDEX IF NOT EXISTS idx_edges_a ON edges(node_a_id)",
    "CREATE INDEX IF NOT EXISTS idx_locations_truck ON locations(tow_truck_id, id)",
    "CREATE INDEX IF NOT EXISTS idx_trucks_status_area ON tow_trucks(status, area_id)",
    "CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status)",
]

# Current location = newest location row per truck.
TRUCK_SELECT = """
    SELECT tt.id, tt.driver_id, u.username AS driver_username,
           tt.status, tt.area_id, l.node_id
    FROM tow_trucks tt
    JOIN locations l ON l.tow_truck_id = tt.id
    LEFT JOIN users u ON u.id = tt.driver_id
    WHERE l.id = (SELECT MAX(id) FROM locations WHERE tow_truck_id = tt.id)
"""


def _parse_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteBackend:
    """SQLite-based map, truck, order and identity store.

    Writes commit immediately unless issued inside ``transaction()``, in
    which case they commit or roll back together.
    """

    def __init__(self, db_path: Path | str):
        """Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file (``":memory:"`` allowed)
        """
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._lock = threading.RLock()
        self._connection = None
        self._transaction_depth = 0
        self.initialize_schema()

    def initialize_schema(self):
        """Open the database and create tables."""
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=10.0,
            )
            self._connection.row_factory = sqlite3.Row

            # Enable Write-Ahead Logging for better concurrency
            self._connection.execute("PRAGMA journal_mode=WAL")
            self._connection.execute("PRAGMA foreign_keys=ON")

            for statement in SCHEMA:
                self._connection.execute(statement)
            self._connection.commit()

        except sqlite3.DatabaseError as e:
            logger.error("Failed to initialize dispatch schema at %s: %s", self.db_path, e)
            raise StorageFailureError(f"Cannot open database {self.db_path}: {e}") from e

    # ── plumbing ──────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group writes; commit on success, roll back if the block raises."""
        with self._lock:
            self._transaction_depth += 1
            try:
                yield
            except BaseException:
                self._transaction_depth -= 1
                if self._transaction_depth == 0:
                    self._connection.rollback()
                raise
            else:
                self._transaction_depth -= 1
                if self._transaction_depth == 0:
                    try:
                        self._connection.commit()
                    except sqlite3.Error as e:
                        self._connection.rollback()
                        raise StorageFailureError(f"commit failed: {e}") from e

    def _read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._connection.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageFailureError(str(e)) from e

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                cursor = self._connection.execute(sql, params)
            except sqlite3.Error as e:
                if self._transaction_depth == 0:
                    self._connection.rollback()
                raise StorageFailureError(str(e)) from e
            if self._transaction_depth == 0:
                self._connection.commit()
            return cursor

    # ── seeding ───────────────────────────────────────────────

    def add_node(self, node: Node) -> Node:
        if node.area_id is None:
            raise StorageFailureError(f"node {node.id} has no area")
        self._write(
            "INSERT OR REPLACE INTO nodes (id, x, y, area_id) VALUES (?, ?, ?, ?)",
            (node.id, node.x, node.y, node.area_id),
        )
        return node

    def add_edge(self, edge: Edge) -> Edge:
        self._write(
            "INSERT INTO edges (node_a_id, node_b_id, weight) VALUES (?, ?, ?)",
            (edge.node_a_id, edge.node_b_id, edge.weight),
        )
        return edge

    def add_user(self, user: User) -> User:
        self._write(
            "INSERT INTO users (id, username, role) VALUES (?, ?, ?)",
            (user.id, user.username, user.role),
        )
        return user

    def add_dispatcher(self, dispatcher: Dispatcher) -> Dispatcher:
        self._write(
            "INSERT INTO dispatchers (id, user_id, area_id) VALUES (?, ?, ?)",
            (dispatcher.id, dispatcher.user_id, dispatcher.area_id),
        )
        return dispatcher

    def add_truck(
        self,
        driver_id: int,
        area_id: int,
        node_id: int,
        status: str = TruckStatus.AVAILABLE.value,
        truck_id: int | None = None,
    ) -> int:
        """Register a truck with an initial location and return its id."""
        with self.transaction():
            cursor = self._write(
                "INSERT INTO tow_trucks (id, driver_id, status, area_id) VALUES (?, ?, ?, ?)",
                (truck_id, driver_id, status, area_id),
            )
            tid = cursor.lastrowid
            self.set_truck_location(tid, node_id)
        return tid

    # ── map ───────────────────────────────────────────────────

    def get_nodes(self, area_id: int | None = None) -> list[Node]:
        if area_id is None:
            rows = self._read("SELECT * FROM nodes ORDER BY id")
        else:
            rows = self._read("SELECT * FROM nodes WHERE area_id = ? ORDER BY id", (area_id,))
        return [Node(id=r["id"], x=r["x"], y=r["y"], area_id=r["area_id"]) for r in rows]

    def get_edges(self, area_id: int | None = None) -> list[Edge]:
        if area_id is None:
            rows = self._read("SELECT node_a_id, node_b_id, weight FROM edges")
        else:
            rows = self._read(
                """
                SELECT e.node_a_id, e.node_b_id, e.weight
                FROM edges e
                JOIN nodes n ON e.node_a_id = n.id
                WHERE n.area_id = ?
                """,
                (area_id,),
            )
        return [Edge(r["node_a_id"], r["node_b_id"], r["weight"]) for r in rows]

    def get_area_id_for_node(self, node_id: int) -> int:
        rows = self._read("SELECT area_id FROM nodes WHERE id = ?", (node_id,))
        if not rows:
            raise NotFoundError(f"node {node_id} not found")
        return rows[0]["area_id"]

    def update_edge(self, node_a_id: int, node_b_id: int, weight: int) -> None:
        cursor = self._write(
            "UPDATE edges SET weight = ? WHERE node_a_id = ? AND node_b_id = ?",
            (weight, node_a_id, node_b_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"edge ({node_a_id}, {node_b_id}) not found")

    # ── tow trucks ────────────────────────────────────────────

    @staticmethod
    def _row_to_truck(row: sqlite3.Row) -> TowTruck:
        return TowTruck(
            id=row["id"],
            driver_id=row["driver_id"],
            status=row["status"],
            node_id=row["node_id"],
            area_id=row["area_id"],
            driver_username=row["driver_username"],
        )

    def list_trucks(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[TowTruck]:
        sql = TRUCK_SELECT
        params: list[Any] = []
        if status is not None:
            sql += " AND tt.status = ?"
            params.append(status)
        if area_id is not None:
            sql += " AND tt.area_id = ?"
            params.append(area_id)
        sql += " ORDER BY tt.id ASC"
        return [self._row_to_truck(r) for r in self._read(sql, tuple(params))]

    def get_available_trucks(self, area_id: int) -> list[TowTruck]:
        return self.list_trucks(status=TruckStatus.AVAILABLE.value, area_id=area_id)

    def get_truck(self, truck_id: int) -> TowTruck | None:
        rows = self._read(TRUCK_SELECT + " AND tt.id = ?", (truck_id,))
        return self._row_to_truck(rows[0]) if rows else None

    def set_truck_status(
        self, truck_id: int, status: str, expected_status: str | None = None
    ) -> bool:
        if expected_status is None:
            cursor = self._write(
                "UPDATE tow_trucks SET status = ? WHERE id = ?", (status, truck_id)
            )
        else:
            cursor = self._write(
                "UPDATE tow_trucks SET status = ? WHERE id = ? AND status = ?",
                (status, truck_id, expected_status),
            )
        return cursor.rowcount > 0

    def set_truck_location(self, truck_id: int, node_id: int) -> None:
        self._write(
            "INSERT INTO locations (tow_truck_id, node_id, timestamp) VALUES (?, ?, ?)",
            (truck_id, node_id, utcnow().isoformat()),
        )

    # ── orders ────────────────────────────────────────────────

    @staticmethod
    def _row_to_order(row: sqlite3.Row) -> Order:
        return Order(
            id=row["id"],
            client_id=row["client_id"],
            node_id=row["node_id"],
            car_value=row["car_value"],
            status=row["status"],
            dispatcher_id=row["dispatcher_id"],
            tow_truck_id=row["tow_truck_id"],
            order_time=_parse_time(row["order_time"]),
            completed_time=_parse_time(row["completed_time"]),
        )

    def get_order(self, order_id: int) -> Order:
        rows = self._read("SELECT * FROM orders WHERE id = ?", (order_id,))
        if not rows:
            raise NotFoundError(f"order {order_id} not found")
        return self._row_to_order(rows[0])

    def list_orders(
        self, status: str | None = None, area_id: int | None = None
    ) -> list[Order]:
        sql = "SELECT o.* FROM orders o JOIN nodes n ON o.node_id = n.id"
        where: list[str] = []
        params: list[Any] = []
        if status is not None:
            where.append("o.status = ?")
            params.append(status)
        if area_id is not None:
            where.append("n.area_id = ?")
            params.append(area_id)
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY o.id"
        return [self._row_to_order(r) for r in self._read(sql, tuple(params))]

    def insert_order(self, client_id: int, node_id: int, car_value: float) -> int:
        cursor = self._write(
            """
            INSERT INTO orders (client_id, node_id, status, car_value, order_time)
            VALUES (?, ?, ?, ?, ?)
            """,
            (client_id, node_id, OrderStatus.PENDING.value, car_value, utcnow().isoformat()),
        )
        return cursor.lastrowid

    def set_order_status(self, order_id: int, status: str) -> None:
        cursor = self._write("UPDATE orders SET status = ? WHERE id = ?", (status, order_id))
        if cursor.rowcount == 0:
            raise NotFoundError(f"order {order_id} not found")

    def set_order_dispatch(self, order_id: int, dispatcher_id: int, truck_id: int) -> None:
        cursor = self._write(
            """
            UPDATE orders SET dispatcher_id = ?, tow_truck_id = ?, status = ?
            WHERE id = ?
            """,
            (dispatcher_id, truck_id, OrderStatus.DISPATCHED.value, order_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"order {order_id} not found")

    def insert_completed_order(
        self, order_id: int, truck_id: int, order_time: datetime
    ) -> int:
        cursor = self._write(
            """
            INSERT INTO completed_orders (order_id, tow_truck_id, order_time, completed_time)
            VALUES (?, ?, ?, ?)
            """,
            (order_id, truck_id, order_time.isoformat(), utcnow().isoformat()),
        )
        return cursor.lastrowid

    def list_completed_orders(self) -> list[CompletedOrder]:
        rows = self._read(
            """
            SELECT co.id, co.order_id, co.tow_truck_id, co.order_time,
                   co.completed_time, o.car_value
            FROM completed_orders co
            JOIN orders o ON co.order_id = o.id
            ORDER BY co.id
            """
        )
        return [
            CompletedOrder(
                id=r["id"],
                order_id=r["order_id"],
                tow_truck_id=r["tow_truck_id"],
                order_time=_parse_time(r["order_time"]),
                completed_time=_parse_time(r["completed_time"]),
                car_value=r["car_value"],
            )
            for r in rows
        ]

    # ── identity ──────────────────────────────────────────────

    def get_user_by_id(self, user_id: int) -> User | None:
        rows = self._read("SELECT id, username, role FROM users WHERE id = ?", (user_id,))
        if not rows:
            return None
        return User(id=rows[0]["id"], username=rows[0]["username"], role=rows[0]["role"])

    def get_dispatcher_by_id(self, dispatcher_id: int) -> Dispatcher | None:
        rows = self._read("SELECT * FROM dispatchers WHERE id = ?", (dispatcher_id,))
        if not rows:
            return None
        row = rows[0]
        return Dispatcher(id=row["id"], user_id=row["user_id"], area_id=row["area_id"])

    # ── lifecycle ─────────────────────────────────────────────

    def get_connection(self):
        """Get underlying SQLite connection for advanced operations."""
        return self._connection

    def close(self):
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None


__all__ = ["SQLiteBackend"]
