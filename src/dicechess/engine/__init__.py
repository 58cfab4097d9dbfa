"""Headless optional-objective engine for Dice Chess.

IMPORTANT: This package must never perform I/O or import UI code.
"""

from .conditions import check_condition
from .events import GameEvent, apply_event, apply_events
from .objectives import CheckResult, ObjectiveSession, check_all_objectives, initialize_objective_states
from .rewards import calculate_objective_bonus, get_objective_reward
from .templates import apply_template, format_objective_description, get_objective_description
from .tracking import ObjectiveTracking, new_tracking
from .types import (
    Condition,
    Difficulty,
    EvaluationResult,
    ObjectiveDefinition,
    ObjectiveState,
    effective_params,
    make_condition,
)

__all__ = [
    "CheckResult",
    "Condition",
    "Difficulty",
    "EvaluationResult",
    "GameEvent",
    "ObjectiveDefinition",
    "ObjectiveSession",
    "ObjectiveState",
    "ObjectiveTracking",
    "apply_event",
    "apply_events",
    "apply_template",
    "calculate_objective_bonus",
    "check_all_objectives",
    "check_condition",
    "effective_params",
    "format_objective_description",
    "get_objective_description",
    "get_objective_reward",
    "initialize_objective_states",
    "make_condition",
    "new_tracking",
]
