"""
Tick-based flow simulation engine.

Each tick seeds background traffic, assigns a fixed set of demand routes
through the congestion-aware router, and aggregates the resulting edge
state into metrics. Every tick works on a copy of the graph it is given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from ..network.graph import CityGraph, UnknownNodeError
from .metrics import EMERGENCY_FACTOR, EMISSION_FACTOR, SimulationMetrics, compute_metrics
from .routing import shortest_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemandRoute:
    """Aggregate trip demand between two nodes."""

    origin: str
    destination: str
    volume: float


DEFAULT_DEMAND_ROUTES: tuple[DemandRoute, ...] = (
    DemandRoute("n_0_0", "n_4_4", 500),  # hospital to industrial zone
    DemandRoute("n_4_0", "n_0_4", 300),  # cross city
    DemandRoute("n_2_0", "n_2_4", 400),  # vertical trunk
)


@dataclass
class SimulationConfig:
    """Configuration for the flow simulator."""

    random_seed: Optional[int] = None  # None draws fresh entropy
    background_flow_max: int = 100  # background flow is drawn from [0, max)

    # Congestion penalty
    congestion_threshold: float = 0.8
    penalty_scale: float = 10.0

    # Metric factors
    emergency_factor: float = EMERGENCY_FACTOR
    emission_factor: float = EMISSION_FACTOR

    # Routes are assigned in this order; later routes see earlier penalties
    demand_routes: list[DemandRoute] = field(
        default_factory=lambda: list(DEFAULT_DEMAND_ROUTES)
    )

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> SimulationConfig:
        """Build a config from the "simulation" section of a scenario file."""
        data = dict(data or {})
        routes = data.pop("demand_routes", None)
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        ignored = set(data) - set(known)
        if ignored:
            logger.warning(f"Ignoring unknown simulation settings: {sorted(ignored)}")

        config = cls(**known)
        if routes is not None:
            config.demand_routes = [
                DemandRoute(r["origin"], r["destination"], float(r["volume"])) for r in routes
            ]
        return config


@dataclass
class RouteAssignment:
    """Outcome of routing one demand route in a tick."""

    route: DemandRoute
    path: list[str]
    travel_time: float = 0.0

    @property
    def succeeded(self) -> bool:
        return bool(self.path)


class FlowSimulator:
    """
    Flow assignment over a city graph.

    Stateless between ticks apart from its random generator: step() takes
    a graph snapshot and returns a new one with this tick's flows.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or SimulationConfig()
        self.rng = rng or np.random.default_rng(self.config.random_seed)

    def step(self, graph: CityGraph) -> tuple[CityGraph, SimulationMetrics]:
        """
        Run one simulation tick.

        Args:
            graph: current snapshot (left untouched)

        Returns:
            (new graph with updated flows and weights, metrics snapshot)

        Raises:
            UnknownNodeError: if a demand route endpoint is not in the graph
        """
        new_graph, assignments = self.assign(graph)

        successful = [a for a in assignments if a.succeeded]
        total_travel_time = sum(a.travel_time for a in successful)

        metrics = compute_metrics(
            new_graph,
            total_travel_time,
            len(successful),
            emergency_factor=self.config.emergency_factor,
            emission_factor=self.config.emission_factor,
        )

        logger.debug(
            f"Tick: {len(successful)}/{len(assignments)} routes assigned, "
            f"congestion {metrics.congestion_index:.1f}%"
        )
        return new_graph, metrics

    def assign(self, graph: CityGraph) -> tuple[CityGraph, list[RouteAssignment]]:
        """Seed background flow and assign every demand route, in order."""
        self._check_routes(graph)

        new_graph = graph.copy()
        self._seed_background_flow(new_graph)

        assignments = []
        for route in self.config.demand_routes:
            path = shortest_path(new_graph, route.origin, route.destination)
            assignment = RouteAssignment(route=route, path=path)

            if not path:
                logger.debug(f"No path from {route.origin} to {route.destination}; skipped")
                assignments.append(assignment)
                continue

            for edge_id in path:
                edge = new_graph.edge(edge_id)
                if edge.is_closed:
                    continue
                edge.current_flow += route.volume
                edge.refresh_weight(
                    self.config.congestion_threshold, self.config.penalty_scale
                )
                assignment.travel_time += edge.current_weight

            assignments.append(assignment)

        return new_graph, assignments

    def run(self, graph: CityGraph, ticks: int) -> tuple[CityGraph, list[SimulationMetrics]]:
        """Run several ticks, feeding each output graph into the next tick."""
        history = []
        for _ in range(ticks):
            graph, metrics = self.step(graph)
            history.append(metrics)
        return graph, history

    def _seed_background_flow(self, graph: CityGraph) -> None:
        """Reset every edge's flow to a random ambient level."""
        high = max(1, self.config.background_flow_max)
        flows = self.rng.integers(0, high, size=len(graph.edges))
        for edge, flow in zip(graph.edges, flows):
            edge.current_flow = float(flow)
            edge.refresh_weight(self.config.congestion_threshold, self.config.penalty_scale)

    def _check_routes(self, graph: CityGraph) -> None:
        for route in self.config.demand_routes:
            for node_id in (route.origin, route.destination):
                if not graph.has_node(node_id):
                    raise UnknownNodeError(
                        f"Demand route {route.origin}->{route.destination} "
                        f"references unknown node {node_id}"
                    )


def step(
    graph: CityGraph,
    rng: Optional[np.random.Generator] = None,
    config: Optional[SimulationConfig] = None,
) -> tuple[CityGraph, SimulationMetrics]:
    """
    Convenience function to run a single tick.

    Args:
        graph: current snapshot
        rng: random generator for background flow (optional)
        config: simulation configuration (optional)

    Returns:
        (new graph, metrics snapshot)
    """
    return FlowSimulator(config, rng).step(graph)
