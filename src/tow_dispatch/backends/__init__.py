"""Storage adapters for the dispatch engine."""

from .factory import create_backend, create_map_backend
from .kuzu_backend import KuzuMapBackend
from .memory_backend import InMemoryBackend
from .protocol import (
    IdentityRepository,
    MapRepository,
    OrderRepository,
    SupportsTransactions,
    TowTruckRepository,
)
from .sqlite_backend import SQLiteBackend

__all__ = [
    "IdentityRepository",
    "InMemoryBackend",
    "KuzuMapBackend",
    "MapRepository",
    "OrderRepository",
    "SQLiteBackend",
    "SupportsTransactions",
    "TowTruckRepository",
    "create_backend",
    "create_map_backend",
]
