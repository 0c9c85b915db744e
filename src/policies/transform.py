"""
Policy application.

apply_policy turns a graph snapshot and a batch of policy actions into a
new snapshot. The input graph is never modified.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterable

from ..network.builder import base_weight_for_speed
from ..network.graph import CityGraph, Edge
from .actions import PolicyAction, PolicyType

logger = logging.getLogger(__name__)

ALL_TAG = "all"
DEFAULT_SPEED = 30.0
DEFAULT_CAPACITY_MULTIPLIER = 1.0


def edge_matches(graph: CityGraph, edge: Edge, action: PolicyAction) -> bool:
    """
    Whether an action targets an edge.

    Selectors are OR-ed: exact edge id, the "all" tag, a zone on either
    endpoint, or one of the edge's road-class tags.
    """
    if action.target_id is not None and action.target_id == edge.edge_id:
        return True

    tag = action.target_tag
    if tag is None:
        return False
    if tag == ALL_TAG or tag in edge.tags:
        return True
    return tag in (graph.node(edge.source).zone, graph.node(edge.target).zone)


def select_edges(graph: CityGraph, action: PolicyAction) -> list[Edge]:
    """Edges of the graph targeted by an action, in edge order."""
    return [e for e in graph.edges if edge_matches(graph, e, action)]


def _close_road(edge: Edge, action: PolicyAction) -> None:
    edge.is_closed = True
    edge.current_weight = math.inf


def _modify_speed(edge: Edge, action: PolicyAction) -> None:
    speed = action.value
    if speed is None or not math.isfinite(speed) or speed <= 0:
        speed = DEFAULT_SPEED
    edge.speed_limit = speed
    edge.base_weight = base_weight_for_speed(speed)
    edge.refresh_weight()


def _adjust_capacity(edge: Edge, action: PolicyAction) -> None:
    multiplier = action.value
    if multiplier is None or not math.isfinite(multiplier):
        multiplier = DEFAULT_CAPACITY_MULTIPLIER
    edge.capacity = max(0.0, edge.capacity * multiplier)
    edge.refresh_weight()


def _no_op(edge: Edge, action: PolicyAction) -> None:
    pass


_HANDLERS: dict[PolicyType, Callable[[Edge, PolicyAction], None]] = {
    PolicyType.CLOSE_ROAD: _close_road,
    PolicyType.MODIFY_SPEED: _modify_speed,
    PolicyType.ADJUST_CAPACITY: _adjust_capacity,
    PolicyType.OPTIMIZE_SIGNAL: _no_op,
    PolicyType.UNRECOGNIZED: _no_op,
}

_missing = set(PolicyType) - set(_HANDLERS)
if _missing:
    raise RuntimeError(f"No policy handler for: {sorted(t.value for t in _missing)}")


def apply_policy(graph: CityGraph, actions: Iterable[PolicyAction]) -> CityGraph:
    """
    Apply policy actions to a copy of the graph.

    Actions run in order, so when two actions touch the same field of
    the same edge the later one wins.

    Args:
        graph: current snapshot (left untouched)
        actions: ordered policy actions

    Returns:
        New CityGraph with the actions applied
    """
    new_graph = graph.copy()

    for action in actions:
        handler = _HANDLERS[action.action_type]
        targets = select_edges(new_graph, action)

        if not targets:
            logger.debug(f"Policy {action.action_type.value} matched no edges")
            continue

        for edge in targets:
            handler(edge, action)

        logger.info(
            f"Applied {action.action_type.value} to {len(targets)} edges"
            f" (tag={action.target_tag}, id={action.target_id})"
        )

    return new_graph
