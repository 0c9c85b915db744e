"""
Traffic simulation engine for policy experiments.

Provides congestion-aware routing, tick-based flow assignment, and
metrics aggregation over city graph snapshots.
"""

from .analysis import compare_policy, metrics_to_dataframe, run_scenario
from .engine import (
    DEFAULT_DEMAND_ROUTES,
    DemandRoute,
    FlowSimulator,
    RouteAssignment,
    SimulationConfig,
    step,
)
from .metrics import (
    MetricPoint,
    MetricsHistory,
    SimulationMetrics,
    compute_metrics,
    congestion_index,
)
from .routing import path_cost, shortest_path

__all__ = [
    # Engine
    "SimulationConfig",
    "FlowSimulator",
    "DemandRoute",
    "RouteAssignment",
    "DEFAULT_DEMAND_ROUTES",
    "step",
    # Routing
    "shortest_path",
    "path_cost",
    # Metrics
    "SimulationMetrics",
    "compute_metrics",
    "congestion_index",
    "MetricPoint",
    "MetricsHistory",
    # Analysis
    "compare_policy",
    "run_scenario",
    "metrics_to_dataframe",
]
