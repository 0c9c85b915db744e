"""
City road graph representation.

Nodes are intersections or points of interest, edges are directed road
segments carrying capacity, flow and traversal-cost state. Graphs are
treated as snapshots: engine operations copy before they write.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Optional


class GraphValidationError(ValueError):
    """Raised when a graph violates its structural invariants."""


class UnknownNodeError(GraphValidationError, KeyError):
    """Raised when a node or edge id does not resolve in the graph."""

    def __str__(self) -> str:
        return ValueError.__str__(self)


class NodeKind(Enum):
    """Kinds of graph nodes."""

    INTERSECTION = "INTERSECTION"
    POI = "POI"  # Point of interest (hospital, city center)
    SENSOR = "SENSOR"


def make_edge_id(source: str, target: str) -> str:
    """Deterministic edge id for a directed (source, target) pair."""
    return f"e_{source}_{target}"


def utilization(flow: float, capacity: float) -> float:
    """Flow/capacity ratio; a zero-capacity edge is saturated by any flow."""
    if capacity <= 0:
        return math.inf if flow > 0 else 0.0
    return flow / capacity


def congestion_penalty(
    ratio: float,
    threshold: float = 0.8,
    scale: float = 10.0,
) -> float:
    """Additive weight penalty once utilization exceeds the threshold."""
    if ratio <= threshold:
        return 0.0
    return (ratio**2) * scale


@dataclass(frozen=True)
class Node:
    """An intersection or point of interest."""

    node_id: str
    kind: NodeKind = NodeKind.INTERSECTION
    label: str = ""
    coords: tuple[float, float] = (0.0, 0.0)  # layout only
    zone: Optional[str] = None


@dataclass
class Edge:
    """A directed road segment."""

    source: str
    target: str
    capacity: float
    base_weight: float
    speed_limit: float
    current_flow: float = 0.0
    current_weight: Optional[float] = None
    is_closed: bool = False
    tags: frozenset[str] = field(default_factory=frozenset)
    edge_id: str = ""

    def __post_init__(self):
        if not self.edge_id:
            self.edge_id = make_edge_id(self.source, self.target)
        self.tags = frozenset(self.tags)
        if not self.is_passable:
            self.current_weight = math.inf
        elif self.current_weight is None or self.current_weight < self.base_weight:
            self.current_weight = self.base_weight

    @property
    def utilization(self) -> float:
        """Current flow over capacity."""
        return utilization(self.current_flow, self.capacity)

    @property
    def is_passable(self) -> bool:
        """Open and able to carry traffic."""
        return not self.is_closed and self.capacity > 0

    def refresh_weight(self, threshold: float = 0.8, scale: float = 10.0) -> None:
        """
        Re-derive current weight from base weight and current flow.

        Closed and zero-capacity edges get an infinite weight.
        """
        if not self.is_passable:
            self.current_weight = math.inf
            return
        self.current_weight = self.base_weight + congestion_penalty(
            self.utilization, threshold, scale
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return {
            "id": self.edge_id,
            "source": self.source,
            "target": self.target,
            "capacity": self.capacity,
            "current_flow": self.current_flow,
            "base_weight": self.base_weight,
            "current_weight": self.current_weight,
            "is_closed": self.is_closed,
            "speed_limit": self.speed_limit,
            "tags": sorted(self.tags),
        }


class CityGraph:
    """
    Ordered nodes and directed edges with id indexes.

    Edges reference nodes by id. The constructor validates that ids are
    unique and every edge endpoint resolves, so routing can assume a
    well-formed graph.
    """

    def __init__(self, nodes: Iterable[Node], edges: Iterable[Edge]):
        self.nodes: list[Node] = list(nodes)
        self.edges: list[Edge] = list(edges)

        self._nodes_by_id: dict[str, Node] = {}
        for node in self.nodes:
            if node.node_id in self._nodes_by_id:
                raise GraphValidationError(f"Duplicate node id: {node.node_id}")
            self._nodes_by_id[node.node_id] = node

        self._edges_by_id: dict[str, Edge] = {}
        self._outgoing: dict[str, list[Edge]] = {n.node_id: [] for n in self.nodes}
        for edge in self.edges:
            if edge.edge_id in self._edges_by_id:
                raise GraphValidationError(f"Duplicate edge id: {edge.edge_id}")
            for endpoint in (edge.source, edge.target):
                if endpoint not in self._nodes_by_id:
                    raise GraphValidationError(
                        f"Edge {edge.edge_id} references unknown node {endpoint}"
                    )
            self._edges_by_id[edge.edge_id] = edge
            self._outgoing[edge.source].append(edge)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CityGraph):
            return NotImplemented
        return self.nodes == other.nodes and self.edges == other.edges

    def __repr__(self) -> str:
        return f"CityGraph(nodes={len(self.nodes)}, edges={len(self.edges)})"

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes_by_id

    def node(self, node_id: str) -> Node:
        """Look up a node by id."""
        try:
            return self._nodes_by_id[node_id]
        except KeyError:
            raise UnknownNodeError(f"Unknown node id: {node_id}") from None

    def edge(self, edge_id: str) -> Edge:
        """Look up an edge by id."""
        try:
            return self._edges_by_id[edge_id]
        except KeyError:
            raise UnknownNodeError(f"Unknown edge id: {edge_id}") from None

    def outgoing(self, node_id: str) -> list[Edge]:
        """Open (non-closed) edges leaving a node, in edge order."""
        if node_id not in self._outgoing:
            raise UnknownNodeError(f"Unknown node id: {node_id}")
        return [e for e in self._outgoing[node_id] if not e.is_closed]

    def copy(self) -> CityGraph:
        """
        Copy-on-write snapshot.

        Nodes are immutable and shared; every edge is copied so the new
        graph can be mutated without affecting holders of this one.
        """
        return CityGraph(self.nodes, [replace(e) for e in self.edges])

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain dicts (the form accepted by from_dict)."""
        return {
            "nodes": [
                {
                    "id": n.node_id,
                    "kind": n.kind.value,
                    "label": n.label,
                    "coords": list(n.coords),
                    "zone": n.zone,
                }
                for n in self.nodes
            ],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CityGraph:
        """Build and validate a graph from its serialized form."""
        nodes = [
            Node(
                node_id=n["id"],
                kind=NodeKind(n.get("kind", NodeKind.INTERSECTION.value)),
                label=n.get("label", ""),
                coords=tuple(n.get("coords", (0.0, 0.0))),
                zone=n.get("zone"),
            )
            for n in data.get("nodes", [])
        ]

        edges = []
        for e in data.get("edges", []):
            capacity = float(e["capacity"])
            base_weight = float(e["base_weight"])
            speed_limit = float(e["speed_limit"])
            if capacity < 0 or base_weight <= 0 or speed_limit <= 0:
                raise GraphValidationError(
                    f"Edge {e.get('id')} has non-positive capacity, weight or speed"
                )
            current_weight = e.get("current_weight")
            edges.append(
                Edge(
                    source=e["source"],
                    target=e["target"],
                    capacity=capacity,
                    base_weight=base_weight,
                    speed_limit=speed_limit,
                    current_flow=max(0.0, float(e.get("current_flow", 0.0))),
                    current_weight=(
                        None if current_weight is None
                        else max(float(current_weight), base_weight)
                    ),
                    is_closed=bool(e.get("is_closed", False)),
                    tags=frozenset(e.get("tags", ())),
                    edge_id=e.get("id", ""),
                )
            )

        return cls(nodes, edges)
