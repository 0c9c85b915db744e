"""City road graph model and builders."""

from .builder import (
    DOWNTOWN_NODE_IDS,
    DOWNTOWN_ZONE,
    HIGHWAY_TAG,
    SPEED_WEIGHT_FACTOR,
    base_weight_for_speed,
    create_reference_city,
    graph_summary,
    grid_node_id,
)
from .graph import (
    CityGraph,
    Edge,
    GraphValidationError,
    Node,
    NodeKind,
    UnknownNodeError,
    congestion_penalty,
    make_edge_id,
    utilization,
)

__all__ = [
    # Graph
    "CityGraph",
    "Edge",
    "Node",
    "NodeKind",
    "GraphValidationError",
    "UnknownNodeError",
    "make_edge_id",
    "utilization",
    "congestion_penalty",
    # Builders
    "create_reference_city",
    "graph_summary",
    "grid_node_id",
    "base_weight_for_speed",
    "DOWNTOWN_NODE_IDS",
    "DOWNTOWN_ZONE",
    "HIGHWAY_TAG",
    "SPEED_WEIGHT_FACTOR",
]
