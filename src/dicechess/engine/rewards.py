from __future__ import annotations

from collections.abc import Sequence

from .types import FALLBACK_DIFFICULTIES, Difficulty, ObjectiveDefinition, ObjectiveState


def get_objective_reward(definition: ObjectiveDefinition, difficulty: Difficulty | None = None) -> int:
    overrides = definition.reward_by_difficulty
    if difficulty is not None and overrides.get(difficulty) is not None:
        return overrides[difficulty]
    for fallback in FALLBACK_DIFFICULTIES:
        if overrides.get(fallback) is not None:
            return overrides[fallback]
    return definition.reward


def calculate_objective_bonus(
    definitions: Sequence[ObjectiveDefinition],
    states: Sequence[ObjectiveState],
    difficulty: Difficulty | None = None,
) -> int:
    """Total bonus gold for every completed objective."""
    by_id = {d.id: d for d in definitions}
    total = 0
    for state in states:
        if not state.is_completed:
            continue
        definition = by_id.get(state.objective_id)
        if definition is None:
            continue
        total += get_objective_reward(definition, difficulty)
    return total
