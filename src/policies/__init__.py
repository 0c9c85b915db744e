"""Policy actions and their application to city graphs."""

from .actions import (
    PolicyAction,
    PolicyType,
    adjust_capacity,
    close_road,
    modify_speed,
)
from .interpretation import (
    InterpretationError,
    InterpretedPolicy,
    describe_actions,
    fallback_interpretation,
    interpret_policy,
    parse_interpretation,
    recommend,
)
from .transform import apply_policy, edge_matches, select_edges

__all__ = [
    # Actions
    "PolicyAction",
    "PolicyType",
    "close_road",
    "modify_speed",
    "adjust_capacity",
    # Transform
    "apply_policy",
    "edge_matches",
    "select_edges",
    # Interpreter boundary
    "InterpretationError",
    "InterpretedPolicy",
    "parse_interpretation",
    "fallback_interpretation",
    "interpret_policy",
    "recommend",
    "describe_actions",
]
