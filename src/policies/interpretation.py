"""
Boundary to the natural-language policy interpreter.

The interpreter itself is an external service (text -> actions). This
module parses its payloads, gives its failures a type, and supplies the
keyword-based fallback used when it is unavailable. The simulation engine
never calls into this module.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from .actions import PolicyAction, PolicyType, adjust_capacity, close_road, modify_speed

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Simulated policy interpretation (interpreter unavailable)."
FALLBACK_RECOMMENDATION = (
    "Optimize signal timing at Intersection 2-2 to reduce congestion by 15%. "
    "Consider congestion pricing on vertical corridors."
)


class InterpretationError(RuntimeError):
    """The upstream interpreter failed or returned an unusable payload."""


@dataclass
class InterpretedPolicy:
    """Actions extracted from a free-text policy."""

    actions: list[PolicyAction] = field(default_factory=list)
    reasoning: str = ""
    is_fallback: bool = False


Interpreter = Callable[[str], Union[dict[str, Any], str]]
Recommender = Callable[[dict[str, Any]], str]


def parse_interpretation(payload: Union[dict[str, Any], str]) -> InterpretedPolicy:
    """
    Parse an interpreter response.

    Args:
        payload: decoded dict or raw JSON text with "actions" and "reasoning"

    Returns:
        InterpretedPolicy

    Raises:
        InterpretationError: if the payload is not valid JSON or has no action list
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload or "{}")
        except json.JSONDecodeError as e:
            raise InterpretationError(f"Interpreter returned invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise InterpretationError(
            f"Interpreter payload must be an object, got {type(payload).__name__}"
        )

    raw_actions = payload.get("actions")
    if not isinstance(raw_actions, list):
        raise InterpretationError("Interpreter payload has no 'actions' list")

    actions = [PolicyAction.from_dict(a) for a in raw_actions if isinstance(a, dict)]
    return InterpretedPolicy(actions=actions, reasoning=str(payload.get("reasoning", "")))


def fallback_interpretation(text: str) -> InterpretedPolicy:
    """Keyword-based stand-in for the interpreter."""
    lower = text.lower()

    if "close" in lower and "downtown" in lower:
        action = close_road(
            target_tag="downtown",
            description="Close all roads leading to City Center",
        )
    elif "speed" in lower or "limit" in lower:
        action = modify_speed(
            30,
            target_tag="all",
            description="Reduce global speed limit to 30",
        )
    else:
        action = adjust_capacity(
            0.5,
            target_tag="downtown",
            description="Restrict capacity in city center (generic fallback)",
        )

    return InterpretedPolicy(actions=[action], reasoning=FALLBACK_REASONING, is_fallback=True)


def interpret_policy(
    text: str,
    interpreter: Optional[Interpreter] = None,
) -> InterpretedPolicy:
    """
    Interpret free text, falling back to keyword matching on failure.

    Args:
        text: policy description
        interpreter: external text -> payload function (optional); network
            failures (OSError) and InterpretationError both trigger the fallback

    Returns:
        InterpretedPolicy; is_fallback is set when the fallback was used
    """
    if interpreter is None:
        logger.warning("No policy interpreter configured; using fallback")
        return fallback_interpretation(text)

    try:
        return parse_interpretation(interpreter(text))
    except (InterpretationError, OSError) as e:
        logger.error(f"Policy interpretation failed: {e}")
        return fallback_interpretation(text)


def recommend(
    metrics: dict[str, Any],
    recommender: Optional[Recommender] = None,
) -> str:
    """Advisory text for the current metrics; canned text if unavailable."""
    if recommender is None:
        return FALLBACK_RECOMMENDATION
    try:
        return recommender(metrics) or "No recommendations available."
    except (InterpretationError, OSError) as e:
        logger.error(f"Recommendation request failed: {e}")
        return "Unable to fetch recommendations."


def describe_actions(actions: list[PolicyAction]) -> list[str]:
    """One display line per action."""
    lines = []
    for action in actions:
        target = action.target_id or action.target_tag or "-"
        suffix = "" if action.action_type is not PolicyType.UNRECOGNIZED else " (ignored)"
        lines.append(f"{action.action_type.value} [{target}] {action.description}{suffix}")
    return lines
