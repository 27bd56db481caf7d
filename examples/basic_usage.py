"""Basic usage example for tow-dispatch."""

import sys
import tempfile
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


from tow_dispatch import (
    Dispatcher,
    DispatchService,
    Edge,
    Node,
    User,
    create_backend,
)


def seed(store):
    """Small area: 1 --5-- 2 --3-- 3 --4-- 4, plus a direct 1 --12-- 4."""
    for node_id, x, y in [(1, 0, 0), (2, 5, 0), (3, 8, 0), (4, 8, 4)]:
        store.add_node(Node(node_id, x, y, area_id=1))
    for a, b, weight in [(1, 2, 5), (2, 3, 3), (3, 4, 4), (1, 4, 12)]:
        store.add_edge(Edge(a, b, weight))

    store.add_user(User(1, "alice", "client"))
    store.add_user(User(2, "bob", "dispatcher"))
    store.add_user(User(3, "carol", "driver"))
    store.add_user(User(4, "dave", "driver"))
    store.add_dispatcher(Dispatcher(id=1, user_id=2, area_id=1))
    store.add_truck(driver_id=3, area_id=1, node_id=1, truck_id=1)
    store.add_truck(driver_id=4, area_id=1, node_id=3, truck_id=2)


def main():
    print("=" * 60)
    print("tow-dispatch - Basic Usage Example")
    print("=" * 60)

    # 1. Create and seed a SQLite store
    print("\n1. Creating SQLite store...")
    db_path = Path(tempfile.mkdtemp()) / "dispatch.db"
    store = create_backend("sqlite", db_path=db_path)
    seed(store)
    service = DispatchService.from_store(store)
    print(f"   Database: {db_path}")
    print(f"   Atomic dispatch: {service.lifecycle.atomic_dispatch}")

    # 2. A client places an order at node 4
    print("\n2. Creating order...")
    order_id = service.create_client_order(client_id=1, node_id=4, car_value=8500.0)
    print(f"   Order {order_id}: {service.get_order(order_id).status}")

    # 3. Find the nearest available truck
    print("\n3. Finding nearest truck...")
    truck = service.find_nearest_available_truck(order_id)
    if truck is None:
        print("   No truck within reach")
        return
    print(f"   Truck {truck.id} driven by {truck.driver_username} at node {truck.node_id}")

    # 4. Dispatch it
    print("\n4. Dispatching...")
    service.dispatch_order(order_id, dispatcher_id=1, tow_truck_id=truck.id)
    enriched = service.get_enriched_order(order_id)
    print(f"   Status: {enriched.status}")
    print(f"   Dispatcher: {enriched.dispatcher_username}, driver: {enriched.driver_username}")

    # 5. Report
    print("\n5. Completed-order records...")
    for record in service.list_completed_orders():
        print(f"   {record.to_dict()}")

    print("\n6. Remaining available trucks...")
    for t in service.list_trucks(status="available"):
        print(f"   Truck {t.id} at node {t.node_id}")

    store.close()

    print("\n" + "=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
