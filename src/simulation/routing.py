"""
Congestion-aware shortest-path routing.

Dijkstra over current edge weights with a binary heap. Closed edges and
edges whose weight is infinite are never used.
"""

from __future__ import annotations

import heapq
import math

from ..network.graph import CityGraph, UnknownNodeError


def shortest_path(graph: CityGraph, start: str, end: str) -> list[str]:
    """
    Find the cheapest route between two nodes.

    Ties are broken deterministically: between equal tentative distances
    the entering edge with the lowest id wins.

    Args:
        graph: validated city graph
        start: origin node id
        end: destination node id

    Returns:
        Ordered edge ids from start to end; empty if unreachable or start == end

    Raises:
        UnknownNodeError: if start or end is not in the graph
    """
    for node_id in (start, end):
        if not graph.has_node(node_id):
            raise UnknownNodeError(f"Unknown node id: {node_id}")

    if start == end:
        return []

    distances: dict[str, float] = {start: 0.0}
    previous: dict[str, str] = {}  # node -> id of the edge that reached it
    finalized: set[str] = set()
    frontier: list[tuple[float, str]] = [(0.0, start)]

    while frontier:
        dist, node_id = heapq.heappop(frontier)
        if node_id in finalized:
            continue
        finalized.add(node_id)

        if node_id == end:
            break

        for edge in graph.outgoing(node_id):
            if edge.target in finalized:
                continue
            alt = dist + edge.current_weight
            if math.isinf(alt):
                continue

            best = distances.get(edge.target, math.inf)
            if alt < best or (alt == best and edge.edge_id < previous[edge.target]):
                distances[edge.target] = alt
                previous[edge.target] = edge.edge_id
                heapq.heappush(frontier, (alt, edge.target))

    if end not in finalized:
        return []

    path = []
    node_id = end
    while node_id != start:
        edge = graph.edge(previous[node_id])
        path.append(edge.edge_id)
        node_id = edge.source
    path.reverse()
    return path


def path_cost(graph: CityGraph, path: list[str]) -> float:
    """Sum of current weights along a path."""
    return sum(graph.edge(edge_id).current_weight for edge_id in path)
