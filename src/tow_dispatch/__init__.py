"""tow-dispatch: nearest-truck matching and order lifecycle for roadside assistance."""

__version__ = "0.1.0"

from .backends import (
    IdentityRepository,
    InMemoryBackend,
    KuzuMapBackend,
    MapRepository,
    OrderRepository,
    SQLiteBackend,
    SupportsTransactions,
    TowTruckRepository,
    create_backend,
    create_map_backend,
)
from .config import DEFAULT_ADMISSIBILITY_CUTOFF, DispatchConfig
from .enrichment import EnrichedOrder, EnrichmentAssembler
from .exceptions import (
    BadRequestError,
    ConflictError,
    DispatchError,
    InvalidTransitionError,
    NotFoundError,
    PartialFailureError,
    StorageFailureError,
)
from .lifecycle import OrderLifecycle
from .matcher import Candidate, DispatchMatcher
from .models import (
    ALLOWED_TRANSITIONS,
    CompletedOrder,
    Dispatcher,
    Edge,
    Node,
    Order,
    OrderStatus,
    TowTruck,
    TruckStatus,
    User,
)
from .service import DispatchService
from .spatial_graph import UNREACHABLE, SpatialGraph

__all__ = [
    # Engine
    "DispatchService",
    "DispatchConfig",
    "DEFAULT_ADMISSIBILITY_CUTOFF",
    "SpatialGraph",
    "UNREACHABLE",
    "DispatchMatcher",
    "Candidate",
    "OrderLifecycle",
    "EnrichmentAssembler",
    "EnrichedOrder",
    # Models
    "ALLOWED_TRANSITIONS",
    "Node",
    "Edge",
    "TowTruck",
    "TruckStatus",
    "Order",
    "OrderStatus",
    "CompletedOrder",
    "User",
    "Dispatcher",
    # Backends
    "MapRepository",
    "TowTruckRepository",
    "OrderRepository",
    "IdentityRepository",
    "SupportsTransactions",
    "InMemoryBackend",
    "SQLiteBackend",
    "KuzuMapBackend",
    "create_backend",
    "create_map_backend",
    # Exceptions
    "DispatchError",
    "NotFoundError",
    "BadRequestError",
    "StorageFailureError",
    "ConflictError",
    "InvalidTransitionError",
    "PartialFailureError",
]
