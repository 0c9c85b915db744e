"""
Tests for src/simulation/analysis.py module.

Tests cover:
- metrics_to_dataframe
- run_scenario determinism
- compare_policy summary table
"""

import pytest

from src.network.builder import create_reference_city
from src.policies.actions import close_road
from src.simulation.analysis import (
    METRIC_COLUMNS,
    compare_policy,
    metrics_to_dataframe,
    run_scenario,
)
from src.simulation.metrics import SimulationMetrics


@pytest.fixture
def city():
    return create_reference_city()


class TestMetricsToDataframe:
    """Tests for metrics_to_dataframe."""

    def test_rows_per_tick(self):
        history = [
            SimulationMetrics(10.0, 5.0, 4.0, 100),
            SimulationMetrics(20.0, 6.0, 4.8, 120),
        ]
        df = metrics_to_dataframe(history)
        assert list(df.columns) == ["tick"] + METRIC_COLUMNS
        assert df["tick"].tolist() == [0, 1]
        assert df["emissions"].tolist() == [100, 120]

    def test_empty(self):
        df = metrics_to_dataframe([])
        assert df.empty
        assert "congestion_index" in df.columns


class TestRunScenario:
    """Tests for run_scenario."""

    def test_same_seed_same_results(self, city):
        a = run_scenario(city, ticks=3, seed=5)
        b = run_scenario(city, ticks=3, seed=5)
        assert a.equals(b)
        assert len(a) == 3


class TestComparePolicy:
    """Tests for compare_policy."""

    def test_summary_shape(self, city):
        summary = compare_policy(city, [close_road(target_tag="downtown")], ticks=3, seed=1)
        assert list(summary.index) == ["baseline", "policy", "delta"]
        assert list(summary.columns) == METRIC_COLUMNS

    def test_delta_is_policy_minus_baseline(self, city):
        summary = compare_policy(city, [close_road(target_tag="downtown")], ticks=3, seed=1)
        for column in METRIC_COLUMNS:
            assert summary.loc["delta", column] == pytest.approx(
                summary.loc["policy", column] - summary.loc["baseline", column]
            )

    def test_empty_policy_has_zero_delta(self, city):
        summary = compare_policy(city, [], ticks=3, seed=2)
        for column in METRIC_COLUMNS:
            assert summary.loc["delta", column] == pytest.approx(0.0)

    def test_closing_everything_zeroes_travel_time(self, city):
        summary = compare_policy(city, [close_road(target_tag="all")], ticks=2, seed=3)
        assert summary.loc["policy", "avg_travel_time"] == 0.0
        assert summary.loc["baseline", "avg_travel_time"] > 0.0
