"""Pytest configuration and fixtures for tow-dispatch tests.

Seeded map (area 1)::

    1 --5-- 2 --3-- 3 --4-- 4 --2-- 6        5 (isolated)
    1 ---------12---------- 4

Area 2 holds nodes 10 --1-- 11.

Trucks: 1 at node 1 (carol), 2 at node 3 (dave), 3 at node 5 (erin),
4 at node 10 in area 2 (frank). Dispatcher 1 belongs to user bob.
"""

import pytest

from tow_dispatch import (
    DispatchService,
    Dispatcher,
    Edge,
    InMemoryBackend,
    Node,
    SQLiteBackend,
    User,
)

NODES = [
    Node(1, 0, 0, area_id=1),
    Node(2, 5, 0, area_id=1),
    Node(3, 8, 0, area_id=1),
    Node(4, 8, 4, area_id=1),
    Node(5, 50, 50, area_id=1),
    Node(6, 10, 4, area_id=1),
    Node(10, 0, 0, area_id=2),
    Node(11, 1, 0, area_id=2),
]

EDGES = [
    Edge(1, 2, 5),
    Edge(2, 3, 3),
    Edge(3, 4, 4),
    Edge(1, 4, 12),
    Edge(4, 6, 2),
    Edge(10, 11, 1),
]

USERS = [
    User(1, "alice", "client"),
    User(2, "bob", "dispatcher"),
    User(3, "carol", "driver"),
    User(4, "dave", "driver"),
    User(5, "erin", "driver"),
    User(6, "frank", "driver"),
]


def seed(store):
    """Load the shared fixture data into *store*."""
    for node in NODES:
        store.add_node(node)
    for edge in EDGES:
        store.add_edge(edge)
    for user in USERS:
        store.add_user(user)
    store.add_dispatcher(Dispatcher(id=1, user_id=2, area_id=1))
    store.add_truck(driver_id=3, area_id=1, node_id=1, truck_id=1)
    store.add_truck(driver_id=4, area_id=1, node_id=3, truck_id=2)
    store.add_truck(driver_id=5, area_id=1, node_id=5, truck_id=3)
    store.add_truck(driver_id=6, area_id=2, node_id=10, truck_id=4)
    return store


@pytest.fixture
def memory_store():
    """Seeded InMemoryBackend."""
    return seed(InMemoryBackend(store_id="test-store"))


@pytest.fixture
def sqlite_store(tmp_path):
    """Seeded SQLiteBackend on a temporary database file."""
    store = SQLiteBackend(db_path=tmp_path / "dispatch.db")
    seed(store)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each seeded backend in turn."""
    if request.param == "memory":
        yield seed(InMemoryBackend())
    else:
        s = seed(SQLiteBackend(db_path=tmp_path / "param.db"))
        yield s
        s.close()


@pytest.fixture
def service(store):
    return DispatchService.from_store(store)
