"""DispatchMatcher -- nearest-available-truck selection.

Public API:
    Candidate: A truck paired with its route distance to an order.
    DispatchMatcher: Ranks trucks by graph distance and applies the
        admissibility cutoff.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .backends.protocol import MapRepository, TowTruckRepository
from .config import DEFAULT_ADMISSIBILITY_CUTOFF
from .models import TowTruck
from .spatial_graph import SpatialGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A truck and its shortest-path distance to the order node."""

    truck: TowTruck
    distance: int


class DispatchMatcher:
    """Query-only matcher; never writes to any repository.

    Args:
        map_repository: Source of area nodes and edges.
        truck_repository: Source of available trucks per area.
        admissibility_cutoff: Largest distance still considered a route.
    """

    def __init__(
        self,
        map_repository: MapRepository,
        truck_repository: TowTruckRepository,
        admissibility_cutoff: int = DEFAULT_ADMISSIBILITY_CUTOFF,
    ) -> None:
        self._maps = map_repository
        self._trucks = truck_repository
        self.admissibility_cutoff = admissibility_cutoff

    def build_graph(self, area_id: int) -> SpatialGraph:
        """Build a fresh graph from one area's nodes and edges."""
        return SpatialGraph.build(
            self._maps.get_nodes(area_id),
            self._maps.get_edges(area_id),
        )

    @staticmethod
    def rank(
        graph: SpatialGraph, order_node_id: int, trucks: Iterable[TowTruck]
    ) -> list[Candidate]:
        """Return candidates sorted by distance, then truck id."""
        candidates = [
            Candidate(truck=truck, distance=graph.shortest_path(truck.node_id, order_node_id))
            for truck in trucks
        ]
        candidates.sort(key=lambda c: (c.distance, c.truck.id))
        return candidates

    def select(
        self, graph: SpatialGraph, order_node_id: int, trucks: Iterable[TowTruck]
    ) -> TowTruck | None:
        """Return the nearest admissible truck, or None."""
        ranked = self.rank(graph, order_node_id, trucks)
        if not ranked:
            logger.debug("No available trucks for node %s", order_node_id)
            return None

        best = ranked[0]
        if best.distance > self.admissibility_cutoff:
            logger.debug(
                "Nearest truck %s to node %s is beyond cutoff (%s > %s)",
                best.truck.id,
                order_node_id,
                best.distance,
                self.admissibility_cutoff,
            )
            return None

        logger.debug(
            "Selected truck %s for node %s at distance %s (%d candidates)",
            best.truck.id,
            order_node_id,
            best.distance,
            len(ranked),
        )
        return best.truck

    def find_nearest(self, order_node_id: int, area_id: int) -> TowTruck | None:
        """Load the area's available trucks and pick the nearest one."""
        trucks = self._trucks.get_available_trucks(area_id)
        if not trucks:
            return None
        graph = self.build_graph(area_id)
        return self.select(graph, order_node_id, trucks)


__all__ = ["Candidate", "DispatchMatcher"]
