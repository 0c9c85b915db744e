"""
Builders for city graphs.

Provides the reference 5x5 grid city used by the default scenarios.
"""

from __future__ import annotations

from typing import Any, Optional

from .graph import CityGraph, Edge, Node, NodeKind

# Base weight of a segment is SPEED_WEIGHT_FACTOR / speed_limit
SPEED_WEIGHT_FACTOR = 1000.0

STREET_CAPACITY = 800.0
STREET_SPEED = 40.0
STREET_BASE_WEIGHT = 10.0

HIGHWAY_CAPACITY = 2000.0
HIGHWAY_SPEED = 80.0
HIGHWAY_TAG = "highway"

DOWNTOWN_ZONE = "downtown"
DOWNTOWN_NODE_IDS = frozenset({"n_2_2", "n_1_2", "n_2_1"})

# Points of interest in the reference grid: (x, y) -> label
REFERENCE_POIS = {
    (2, 2): "City Center (POI)",
    (0, 0): "Hospital (Emergency)",
    (4, 4): "Industrial Zone",
}

# Diagonal shortcut from the hospital to the city center
HIGHWAY_PATH = ("n_0_0", "n_1_1", "n_2_2")


def grid_node_id(x: int, y: int) -> str:
    """Node id for a grid position."""
    return f"n_{x}_{y}"


def base_weight_for_speed(speed_limit: float) -> float:
    """Traversal cost of a segment driven at the given speed limit."""
    return SPEED_WEIGHT_FACTOR / speed_limit


def street_edge(source: str, target: str) -> Edge:
    """Create a regular city street segment."""
    return Edge(
        source=source,
        target=target,
        capacity=STREET_CAPACITY,
        base_weight=STREET_BASE_WEIGHT,
        speed_limit=STREET_SPEED,
    )


def highway_edge(source: str, target: str) -> Edge:
    """Create a highway segment."""
    return Edge(
        source=source,
        target=target,
        capacity=HIGHWAY_CAPACITY,
        base_weight=base_weight_for_speed(HIGHWAY_SPEED),
        speed_limit=HIGHWAY_SPEED,
        tags=frozenset({HIGHWAY_TAG}),
    )


def create_reference_city(
    grid_size: int = 5,
    block_size: float = 100.0,
    downtown: Optional[frozenset[str]] = None,
) -> CityGraph:
    """
    Create the reference grid city.

    Manhattan-style grid of two-way streets plus a diagonal highway
    shortcut from the hospital (n_0_0) to the city center (n_2_2).

    Args:
        grid_size: number of intersections per side
        block_size: layout distance between intersections
        downtown: node ids placed in the downtown zone

    Returns:
        Validated CityGraph
    """
    downtown = DOWNTOWN_NODE_IDS if downtown is None else downtown

    nodes = []
    for y in range(grid_size):
        for x in range(grid_size):
            node_id = grid_node_id(x, y)
            if (x, y) in REFERENCE_POIS:
                kind = NodeKind.POI
                label = REFERENCE_POIS[(x, y)]
            else:
                kind = NodeKind.INTERSECTION
                label = f"Intersection {x}-{y}"

            nodes.append(
                Node(
                    node_id=node_id,
                    kind=kind,
                    label=label,
                    coords=(x * block_size + block_size / 2, y * block_size + block_size / 2),
                    zone=DOWNTOWN_ZONE if node_id in downtown else None,
                )
            )

    edges = []
    # Horizontal streets
    for y in range(grid_size):
        for x in range(grid_size - 1):
            a, b = grid_node_id(x, y), grid_node_id(x + 1, y)
            edges.append(street_edge(a, b))
            edges.append(street_edge(b, a))

    # Vertical streets
    for x in range(grid_size):
        for y in range(grid_size - 1):
            a, b = grid_node_id(x, y), grid_node_id(x, y + 1)
            edges.append(street_edge(a, b))
            edges.append(street_edge(b, a))

    node_ids = {n.node_id for n in nodes}
    if all(n in node_ids for n in HIGHWAY_PATH):
        for a, b in zip(HIGHWAY_PATH, HIGHWAY_PATH[1:]):
            edges.append(highway_edge(a, b))
            edges.append(highway_edge(b, a))

    return CityGraph(nodes, edges)


def graph_summary(graph: CityGraph) -> dict[str, Any]:
    """Counts describing a graph, for logging and dry runs."""
    return {
        "nodes": len(graph.nodes),
        "edges": len(graph.edges),
        "closed_edges": sum(1 for e in graph.edges if e.is_closed),
        "pois": [n.node_id for n in graph.nodes if n.kind is NodeKind.POI],
        "zones": sorted({n.zone for n in graph.nodes if n.zone}),
    }
