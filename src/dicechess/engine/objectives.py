from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Mapping, Protocol

from .conditions import check_condition
from .events import GameEvent, apply_events
from .rewards import calculate_objective_bonus
from .templates import format_objective_description
from .tracking import ObjectiveTracking, new_tracking
from .types import Board, Difficulty, ObjectiveDefinition, ObjectiveState, VictoryCondition

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    newly_completed: list[str] = field(default_factory=list)
    newly_failed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.newly_completed or self.newly_failed)


def initialize_objective_states(definitions: Sequence[ObjectiveDefinition]) -> list[ObjectiveState]:
    return [ObjectiveState(objective_id=d.id, progress=d.progress) for d in definitions]


def check_all_objectives(
    definitions: Sequence[ObjectiveDefinition],
    states: Sequence[ObjectiveState],
    tracking: ObjectiveTracking,
    board: Board | None = None,
    *,
    allow_completion: bool = False,
) -> CheckResult:
    """Evaluate every pending objective and apply terminal transitions.

    Conditions that are permanently met complete immediately; other met
    conditions complete only when ``allow_completion`` is set (typically at
    level end). Completed and failed states are never touched again.
    """
    by_id = {d.id: d for d in definitions}
    result = CheckResult()

    for state in states:
        if state.is_terminal:
            continue
        definition = by_id.get(state.objective_id)
        if definition is None:
            logger.warning("No definition for objective state %s", state.objective_id)
            continue

        evaluation = check_condition(definition.condition, tracking, board)
        if evaluation.progress is not None:
            state.progress = evaluation.progress

        if evaluation.is_met and (evaluation.is_permanently_met or allow_completion):
            state.is_completed = True
            state.completed_on_turn = tracking.turn_number
            result.newly_completed.append(state.objective_id)

        if evaluation.is_failed and not state.is_terminal:
            state.is_failed = True
            state.failed_on_turn = tracking.turn_number
            result.newly_failed.append(state.objective_id)

    return result


class TelemetrySink(Protocol):
    def log(self, event_type: str, payload: Mapping[str, object]) -> None: ...


@dataclass
class LevelSettlement:
    result: CheckResult
    bonus: int


class ObjectiveSession:
    """Objective definitions, tracking and states for one level.

    The host feeds gameplay events through ``apply`` and calls ``check``
    at each turn and ``finish_level`` once the level is won.
    """

    def __init__(
        self,
        level: int,
        definitions: Sequence[ObjectiveDefinition],
        *,
        difficulty: Difficulty | None = None,
        victory_condition: VictoryCondition | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.level = level
        self.definitions = list(definitions)
        self.tracking = new_tracking(difficulty, victory_condition)
        self.states = initialize_objective_states(self.definitions)
        self._telemetry = telemetry

    @property
    def difficulty(self) -> Difficulty | None:
        return self.tracking.difficulty

    def _emit(self, event_type: str, payload: Mapping[str, object]) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event_type, {"level": self.level, **payload})

    def apply(self, *events: GameEvent) -> None:
        apply_events(self.tracking, events)

    def check(self, board: Board | None = None, *, allow_completion: bool = False) -> CheckResult:
        result = check_all_objectives(
            self.definitions, self.states, self.tracking, board, allow_completion=allow_completion
        )
        turn = self.tracking.turn_number
        for oid in result.newly_completed:
            self._emit("OBJECTIVE_COMPLETED", {"objective_id": oid, "turn": turn})
        for oid in result.newly_failed:
            self._emit("OBJECTIVE_FAILED", {"objective_id": oid, "turn": turn})
        return result

    def finish_level(self, board: Board | None = None) -> LevelSettlement:
        result = self.check(board, allow_completion=True)
        bonus = self.bonus()
        completed = [s.objective_id for s in self.states if s.is_completed]
        self._emit("OBJECTIVE_BONUS", {"bonus": bonus, "completed": completed})
        return LevelSettlement(result=result, bonus=bonus)

    def bonus(self) -> int:
        return calculate_objective_bonus(self.definitions, self.states, self.difficulty)

    def state_for(self, objective_id: str) -> ObjectiveState | None:
        for state in self.states:
            if state.objective_id == objective_id:
                return state
        return None

    def descriptions(self, *, include_progress: bool = True) -> dict[str, str]:
        by_id = {s.objective_id: s for s in self.states}
        return {
            d.id: format_objective_description(
                d, by_id.get(d.id), difficulty=self.difficulty, include_progress=include_progress
            )
            for d in self.definitions
        }

    def reset(self) -> None:
        """Restart the level: fresh tracking and pending states."""
        self.tracking.reset()
        self.states = initialize_objective_states(self.definitions)
