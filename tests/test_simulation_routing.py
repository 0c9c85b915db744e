"""
Tests for src/simulation/routing.py module.

Tests cover:
- shortest_path on the reference grid
- Unreachable, trivial and unknown endpoints
- Deterministic tie-breaking
- Congestion-aware rerouting
"""

import math

import pytest

from src.network.builder import create_reference_city
from src.network.graph import CityGraph, Edge, Node, UnknownNodeError
from src.simulation.routing import path_cost, shortest_path


def _edge(source, target, weight=1.0, **kwargs):
    return Edge(
        source=source,
        target=target,
        capacity=800.0,
        base_weight=weight,
        speed_limit=40.0,
        **kwargs,
    )


@pytest.fixture
def city():
    return create_reference_city()


@pytest.fixture
def diamond():
    """A -> B -> D and A -> C -> D with equal costs."""
    nodes = [Node(n) for n in "ABCD"]
    edges = [_edge("A", "C"), _edge("C", "D"), _edge("A", "B"), _edge("B", "D")]
    return CityGraph(nodes, edges)


class TestShortestPath:
    """Tests for shortest_path."""

    def test_straight_trunk(self, city):
        assert shortest_path(city, "n_2_0", "n_2_4") == [
            "e_n_2_0_n_2_1",
            "e_n_2_1_n_2_2",
            "e_n_2_2_n_2_3",
            "e_n_2_3_n_2_4",
        ]

    def test_prefers_highway_shortcut(self, city):
        assert shortest_path(city, "n_0_0", "n_2_2") == ["e_n_0_0_n_1_1", "e_n_1_1_n_2_2"]

    def test_path_is_connected(self, city):
        path = shortest_path(city, "n_4_0", "n_0_4")
        edges = [city.edge(eid) for eid in path]
        assert edges[0].source == "n_4_0"
        assert edges[-1].target == "n_0_4"
        for prev, nxt in zip(edges, edges[1:]):
            assert prev.target == nxt.source
        assert path_cost(city, path) == pytest.approx(80.0)

    def test_same_start_and_end(self, city):
        assert shortest_path(city, "n_1_1", "n_1_1") == []

    def test_unknown_node_raises(self, city):
        with pytest.raises(UnknownNodeError):
            shortest_path(city, "n_9_9", "n_0_0")
        with pytest.raises(UnknownNodeError):
            shortest_path(city, "n_0_0", "nowhere")

    def test_unreachable_target(self):
        nodes = [Node("A"), Node("B"), Node("C")]
        edges = [_edge("A", "B"), _edge("C", "B")]
        graph = CityGraph(nodes, edges)
        assert shortest_path(graph, "A", "C") == []

    def test_closed_edges_skipped(self):
        nodes = [Node("A"), Node("B")]
        graph = CityGraph(nodes, [_edge("A", "B", is_closed=True)])
        assert shortest_path(graph, "A", "B") == []

    def test_infinite_weight_edges_skipped(self):
        nodes = [Node("A"), Node("B")]
        graph = CityGraph(nodes, [_edge("A", "B", current_weight=math.inf)])
        assert shortest_path(graph, "A", "B") == []

    def test_directed_edges(self):
        graph = CityGraph([Node("A"), Node("B")], [_edge("A", "B")])
        assert shortest_path(graph, "A", "B") == ["e_A_B"]
        assert shortest_path(graph, "B", "A") == []


class TestTieBreaking:
    """Equal-cost routes resolve to the lowest edge id."""

    def test_lowest_edge_id_wins(self, diamond):
        assert shortest_path(diamond, "A", "D") == ["e_A_B", "e_B_D"]

    def test_independent_of_edge_order(self, diamond):
        reordered = CityGraph(diamond.nodes, list(reversed(diamond.copy().edges)))
        assert shortest_path(reordered, "A", "D") == shortest_path(diamond, "A", "D")

    def test_repeatable(self, city):
        first = shortest_path(city, "n_4_0", "n_0_4")
        for _ in range(5):
            assert shortest_path(city, "n_4_0", "n_0_4") == first


class TestCongestionAwareness:
    """Routing uses current (congested) weights."""

    def test_congested_edge_avoided(self, city):
        congested = city.copy()
        congested.edge("e_n_2_1_n_2_2").current_weight = 100.0

        path = shortest_path(congested, "n_2_0", "n_2_4")
        assert "e_n_2_1_n_2_2" not in path
        # detour through the highway segment n_1_1 -> n_2_2
        assert path_cost(congested, path) == pytest.approx(52.5)

    def test_mild_congestion_tolerated(self, city):
        congested = city.copy()
        congested.edge("e_n_2_1_n_2_2").current_weight = 15.0

        path = shortest_path(congested, "n_2_0", "n_2_4")
        assert "e_n_2_1_n_2_2" in path
