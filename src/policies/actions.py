"""
Structured policy actions.

A policy action is a typed instruction that mutates graph properties.
Actions are immutable; the caller owns the list of active policies.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class PolicyType(Enum):
    """Kinds of policy action."""

    CLOSE_ROAD = "close_road"
    MODIFY_SPEED = "modify_speed"
    ADJUST_CAPACITY = "adjust_capacity"
    OPTIMIZE_SIGNAL = "optimize_signal"
    UNRECOGNIZED = "unrecognized"  # recorded for display, never applied


@dataclass(frozen=True)
class PolicyAction:
    """A single policy intervention."""

    action_type: PolicyType
    description: str = ""
    target_id: Optional[str] = None  # exact edge id
    target_tag: Optional[str] = None  # "all", a zone, or a road-class tag
    value: Optional[float] = None  # new speed, or capacity multiplier

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PolicyAction:
        """
        Build an action from the interpreter's JSON shape.

        Unknown type strings map to UNRECOGNIZED, targets that are not
        strings and values that are not numbers are dropped, so a malformed
        payload degrades to a no-op instead of failing.
        """
        raw_type = str(data.get("type", "")).strip().lower()
        try:
            action_type = PolicyType(raw_type)
        except ValueError:
            logger.warning(f"Unrecognized policy action type {raw_type!r}; recording as no-op")
            action_type = PolicyType.UNRECOGNIZED

        return cls(
            action_type=action_type,
            description=str(data.get("description", "")),
            target_id=_coerce_target("target_id", data.get("target_id")),
            target_tag=_coerce_target("target_tag", data.get("target_tag")),
            value=_coerce_value(data.get("value")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the interpreter's JSON shape."""
        return {
            "type": self.action_type.value,
            "target_id": self.target_id,
            "target_tag": self.target_tag,
            "value": self.value,
            "description": self.description,
        }


def _coerce_target(key: str, target: Any) -> Optional[str]:
    if target is None or target == "":
        return None
    if not isinstance(target, str):
        logger.warning(f"Ignoring non-string {key} {target!r}")
        return None
    return target


def _coerce_value(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def close_road(target_tag: Optional[str] = None, target_id: Optional[str] = None,
               description: str = "") -> PolicyAction:
    """Shorthand for a road closure."""
    return PolicyAction(PolicyType.CLOSE_ROAD, description, target_id, target_tag)


def modify_speed(speed: Optional[float], target_tag: Optional[str] = None,
                 target_id: Optional[str] = None, description: str = "") -> PolicyAction:
    """Shorthand for a speed-limit change."""
    return PolicyAction(PolicyType.MODIFY_SPEED, description, target_id, target_tag, speed)


def adjust_capacity(multiplier: Optional[float], target_tag: Optional[str] = None,
                    target_id: Optional[str] = None, description: str = "") -> PolicyAction:
    """Shorthand for a capacity restriction."""
    return PolicyAction(
        PolicyType.ADJUST_CAPACITY, description, target_id, target_tag, multiplier
    )
