"""
Metrics aggregation for simulation ticks.

Reduces edge state into system-level KPIs and keeps a short rolling
history of them for charting.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from ..network.graph import CityGraph
from ..policies.actions import PolicyAction

EMERGENCY_FACTOR = 0.8  # priority routing for emergency vehicles
EMISSION_FACTOR = 0.05  # emission units per unit of flow


@dataclass(frozen=True)
class SimulationMetrics:
    """KPI snapshot for one tick."""

    congestion_index: float  # 0-100
    avg_travel_time: float  # minutes
    emergency_response_time: float  # minutes
    emissions: int
    active_policies: tuple[PolicyAction, ...] = ()

    def with_policies(self, policies: Iterable[PolicyAction]) -> SimulationMetrics:
        """Copy carrying the caller's active policy list."""
        return replace(self, active_policies=tuple(policies))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict."""
        return {
            "congestion_index": self.congestion_index,
            "avg_travel_time": self.avg_travel_time,
            "emergency_response_time": self.emergency_response_time,
            "emissions": self.emissions,
            "active_policies": [p.to_dict() for p in self.active_policies],
        }


def congestion_index(graph: CityGraph) -> float:
    """Average edge utilization as a percentage, clamped to [0, 100]."""
    if not graph.edges:
        return 0.0
    mean_utilization = float(np.mean([e.utilization for e in graph.edges]))
    return min(max(mean_utilization * 100.0, 0.0), 100.0)


def compute_metrics(
    graph: CityGraph,
    total_travel_time: float,
    successful_routes: int,
    emergency_factor: float = EMERGENCY_FACTOR,
    emission_factor: float = EMISSION_FACTOR,
) -> SimulationMetrics:
    """
    Compute the KPI snapshot for a post-assignment graph.

    Args:
        graph: graph with this tick's flows and weights
        total_travel_time: summed weight of traversed edges
        successful_routes: number of demand routes that found a path
        emergency_factor: emergency response time / average travel time
        emission_factor: emissions per unit of flow

    Returns:
        SimulationMetrics with an empty active policy list
    """
    avg_travel_time = total_travel_time / successful_routes if successful_routes > 0 else 0.0
    emissions = sum(e.current_flow * emission_factor for e in graph.edges)

    return SimulationMetrics(
        congestion_index=congestion_index(graph),
        avg_travel_time=avg_travel_time,
        emergency_response_time=avg_travel_time * emergency_factor,
        emissions=int(math.floor(emissions)),
    )


@dataclass
class MetricPoint:
    """One charted point in the metrics history."""

    time: str
    congestion: float
    emissions: int
    travel_time: float


class MetricsHistory:
    """
    Rolling window of metric points.

    Keeps the most recent max_points entries; older points are dropped.
    """

    def __init__(self, max_points: int = 20):
        self.max_points = max_points
        self._points: deque[MetricPoint] = deque(maxlen=max_points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> list[MetricPoint]:
        return list(self._points)

    @property
    def latest(self) -> Optional[MetricPoint]:
        return self._points[-1] if self._points else None

    def record(self, metrics: SimulationMetrics, time: Optional[str] = None) -> MetricPoint:
        """Append a point for a metrics snapshot."""
        point = MetricPoint(
            time=time or datetime.now().strftime("%H:%M:%S"),
            congestion=metrics.congestion_index,
            emissions=metrics.emissions,
            travel_time=metrics.avg_travel_time,
        )
        self._points.append(point)
        return point

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the history to a DataFrame."""
        if not self._points:
            return pd.DataFrame(columns=["time", "congestion", "emissions", "travel_time"])

        return pd.DataFrame(
            [
                {
                    "time": p.time,
                    "congestion": p.congestion,
                    "emissions": p.emissions,
                    "travel_time": p.travel_time,
                }
                for p in self._points
            ]
        )

    def reset(self) -> None:
        self._points.clear()
