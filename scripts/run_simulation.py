#!/usr/bin/env python3
"""
Run the traffic twin for a number of ticks from a YAML scenario file.

Usage:
    python -m scripts.run_simulation --config configs/reference_grid.yaml --ticks 20

Options:
    --config PATH       Path to YAML scenario file (required)
    --ticks INT         Override number of ticks from config
    --seed INT          Override random seed from config
    --policy PATH       YAML/JSON file with a list of policy actions to apply
    --policy-text TEXT  Free-text policy, interpreted with the keyword fallback
    --output-dir PATH   Override output directory from config
    --verbose           Enable verbose logging
    --dry-run           Parse config and show settings without running
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Optional

import numpy as np
import yaml

logger = logging.getLogger(__name__)


def load_config(config_path: Path) -> dict[str, Any]:
    """Load a scenario configuration from YAML."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f)

    return config or {}


def load_policy_actions(config: dict[str, Any], policy_path: Optional[Path], policy_text: Optional[str]):
    """Collect policy actions from the scenario, a policy file, and free text."""
    from src.policies import PolicyAction, interpret_policy

    raw_actions = list(config.get("policies", []) or [])

    if policy_path:
        if not policy_path.exists():
            raise FileNotFoundError(f"Policy file not found: {policy_path}")
        with open(policy_path) as f:
            loaded = yaml.safe_load(f) or []
        if isinstance(loaded, dict):
            loaded = loaded.get("actions", [])
        if not isinstance(loaded, list):
            raise ValueError(f"Policy file must hold a list of actions: {policy_path}")
        raw_actions.extend(loaded)

    actions = []
    for raw in raw_actions:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed policy entry: {raw!r}")
            continue
        actions.append(PolicyAction.from_dict(raw))

    if policy_text:
        interpreted = interpret_policy(policy_text)
        logger.info(f"Interpreted policy: {interpreted.reasoning}")
        actions.extend(interpreted.actions)

    return actions


def setup_logging(config: dict[str, Any], verbose: bool = False) -> None:
    """Setup logging based on configuration."""
    log_config = config.get("logging", {})
    level = logging.DEBUG if verbose else getattr(logging, log_config.get("level", "INFO"))

    log_file = log_config.get("file")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file) if log_file else logging.NullHandler(),
        ],
    )


def create_network(config: dict[str, Any]):
    """Create the city graph from configuration."""
    from src.network import CityGraph, create_reference_city

    network_config = config.get("network", {})
    network_type = network_config.get("type", "reference_grid")

    if network_type == "reference_grid":
        downtown = network_config.get("downtown")
        return create_reference_city(
            grid_size=network_config.get("grid_size", 5),
            block_size=network_config.get("block_size", 100.0),
            downtown=frozenset(downtown) if downtown else None,
        )

    # Serialized graph file
    graph_path = Path(network_config["path"])
    with open(graph_path) as f:
        return CityGraph.from_dict(yaml.safe_load(f))


def run_simulation(
    config: dict[str, Any],
    ticks: int,
    seed: int,
    actions: list,
    output_dir: Path,
) -> dict[str, Any]:
    """Run the tick loop and save results."""
    from src.policies import apply_policy, describe_actions
    from src.simulation import FlowSimulator, MetricsHistory, SimulationConfig, metrics_to_dataframe

    logger.info(f"Starting simulation: {config.get('name', 'Unnamed')}")
    logger.info(f"  Ticks: {ticks}")
    logger.info(f"  Seed: {seed}")

    sim_config = SimulationConfig.from_dict(config.get("simulation", {}))
    sim_config.random_seed = seed
    simulator = FlowSimulator(sim_config, np.random.default_rng(seed))

    logger.info("Creating network...")
    graph = create_network(config)

    if actions:
        for line in describe_actions(actions):
            logger.info(f"  Policy: {line}")
        graph = apply_policy(graph, actions)

    history = MetricsHistory(max_points=config.get("output", {}).get("history_points", 20))
    all_metrics = []

    logger.info("Running simulation...")
    start_time = time.time()
    for tick in range(ticks):
        graph, metrics = simulator.step(graph)
        metrics = metrics.with_policies(actions)
        history.record(metrics, time=f"t{tick:04d}")
        all_metrics.append(metrics)
    elapsed = time.time() - start_time

    logger.info(f"Simulation complete in {elapsed:.2f} seconds")

    df = metrics_to_dataframe(all_metrics)
    summary = {
        "ticks": ticks,
        "policies": [a.to_dict() for a in actions],
        "mean_congestion_index": float(df["congestion_index"].mean()) if ticks else 0.0,
        "mean_avg_travel_time": float(df["avg_travel_time"].mean()) if ticks else 0.0,
        "mean_emissions": float(df["emissions"].mean()) if ticks else 0.0,
        "final": all_metrics[-1].to_dict() if all_metrics else None,
    }

    save_results(df, history, summary, config, output_dir, graph)
    return summary


def save_results(df, history, summary: dict[str, Any], config: dict[str, Any], output_dir: Path, graph) -> None:
    """Save simulation results."""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_config = config.get("output", {})

    metrics_path = output_dir / "metrics.csv"
    df.to_csv(metrics_path, index=False)
    logger.info(f"Saved per-tick metrics to {metrics_path}")

    history_path = output_dir / "history.csv"
    history.to_dataframe().to_csv(history_path, index=False)

    summary_path = output_dir / "summary.json"
    with open(summary_path, "w") as f:
        json.dump(summary, f, indent=2, default=float)
    logger.info(f"Saved summary to {summary_path}")

    if output_config.get("save_graph", False):
        graph_path = output_dir / "final_graph.yaml"
        with open(graph_path, "w") as f:
            yaml.safe_dump(graph.to_dict(), f, default_flow_style=False)
        logger.info(f"Saved final graph to {graph_path}")

    config_path = output_dir / "config_used.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run the traffic twin from a YAML scenario file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to YAML scenario file",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Override number of ticks from config",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override random seed from config",
    )
    parser.add_argument(
        "--policy",
        type=Path,
        default=None,
        help="YAML/JSON file with a list of policy actions",
    )
    parser.add_argument(
        "--policy-text",
        type=str,
        default=None,
        help="Free-text policy (keyword interpretation)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Override output directory from config",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse config and show settings without running",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"Error parsing config: {e}", file=sys.stderr)
        return 1

    setup_logging(config, args.verbose)

    sim_settings = config.get("simulation", {})
    output_config = config.get("output", {})

    ticks = args.ticks if args.ticks is not None else config.get("ticks", 20)
    seed = args.seed if args.seed is not None else sim_settings.get("random_seed", 42)
    output_dir = args.output_dir or Path(output_config.get("directory", "results/simulation"))

    try:
        actions = load_policy_actions(config, args.policy, args.policy_text)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading policy: {e}", file=sys.stderr)
        return 1

    print(f"Scenario: {config.get('name', 'Unnamed')}")
    print(f"  Config: {args.config}")
    print(f"  Ticks: {ticks}")
    print(f"  Seed: {seed}")
    print(f"  Policies: {len(actions)}")
    print(f"  Output: {output_dir}")
    print()

    if args.dry_run:
        from src.network import graph_summary

        print("Dry run - not executing simulation")
        print(f"\nNetwork: {graph_summary(create_network(config))}")
        print("\nFull configuration:")
        print(yaml.dump(config, default_flow_style=False))
        return 0

    try:
        summary = run_simulation(config, ticks, seed, actions, output_dir)

        print("\nResults:")
        print(f"  Mean congestion index: {summary['mean_congestion_index']:.1f}%")
        print(f"  Mean travel time: {summary['mean_avg_travel_time']:.1f} min")
        print(f"  Mean emissions: {summary['mean_emissions']:.0f}")
        print(f"\nResults saved to: {output_dir}")

        return 0

    except KeyboardInterrupt:
        print("\nSimulation interrupted", file=sys.stderr)
        return 130
    except ValueError as e:
        logger.exception(f"Simulation failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
