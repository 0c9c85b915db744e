"""
Tests for src/network/builder.py module.

Tests cover:
- create_reference_city topology
- Highway shortcut attributes
- graph_summary
"""

import pytest

from src.network.builder import (
    DOWNTOWN_NODE_IDS,
    HIGHWAY_TAG,
    create_reference_city,
    graph_summary,
    grid_node_id,
)
from src.network.graph import NodeKind


class TestReferenceCity:
    """Tests for the reference grid city."""

    @pytest.fixture
    def city(self):
        return create_reference_city()

    def test_node_count(self, city):
        assert len(city.nodes) == 25

    def test_edge_count(self, city):
        # 40 horizontal + 40 vertical + 2 highway segments in both directions
        assert len(city.edges) == 84

    def test_every_street_is_two_way(self, city):
        for edge in city.edges:
            reverse = city.edge(f"e_{edge.target}_{edge.source}")
            assert reverse.capacity == edge.capacity

    def test_points_of_interest(self, city):
        pois = {n.node_id for n in city.nodes if n.kind is NodeKind.POI}
        assert pois == {"n_0_0", "n_2_2", "n_4_4"}

    def test_downtown_zone(self, city):
        downtown = {n.node_id for n in city.nodes if n.zone == "downtown"}
        assert downtown == set(DOWNTOWN_NODE_IDS)

    def test_node_coords(self, city):
        assert city.node(grid_node_id(1, 3)).coords == (150.0, 350.0)

    def test_highway_attributes(self, city):
        highway = [e for e in city.edges if HIGHWAY_TAG in e.tags]
        assert {e.edge_id for e in highway} == {
            "e_n_0_0_n_1_1",
            "e_n_1_1_n_0_0",
            "e_n_1_1_n_2_2",
            "e_n_2_2_n_1_1",
        }
        for edge in highway:
            assert edge.capacity == 2000
            assert edge.speed_limit == 80
            assert edge.base_weight == pytest.approx(1000 / 80)

    def test_streets(self, city):
        street = city.edge("e_n_0_0_n_1_0")
        assert street.capacity == 800
        assert street.speed_limit == 40
        assert street.base_weight == 10
        assert street.current_flow == 0.0
        assert not street.tags

    def test_small_grid_has_no_highway(self):
        city = create_reference_city(grid_size=2)
        assert len(city.nodes) == 4
        assert len(city.edges) == 8
        assert not any(HIGHWAY_TAG in e.tags for e in city.edges)

    def test_custom_downtown(self):
        city = create_reference_city(downtown=frozenset({"n_4_4"}))
        assert [n.node_id for n in city.nodes if n.zone] == ["n_4_4"]


class TestGraphSummary:
    """Tests for graph_summary."""

    def test_counts(self):
        summary = graph_summary(create_reference_city())
        assert summary["nodes"] == 25
        assert summary["edges"] == 84
        assert summary["closed_edges"] == 0
        assert summary["zones"] == ["downtown"]
