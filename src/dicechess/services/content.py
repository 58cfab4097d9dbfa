from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from dicechess.engine.types import (
    CONDITION_TYPES,
    Condition,
    ObjectiveDefinition,
    Progress,
    make_condition,
)

logger = logging.getLogger(__name__)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _parse_condition(raw: Mapping[str, object]) -> Condition:
    kind = _require_str(raw, "type")
    params = raw.get("params", {})
    if not isinstance(params, dict):
        raise ContentError("condition.params must be an object")
    difficulty_params: dict[str, dict[str, object]] = {}
    raw_dp = raw.get("difficultyParams", {})
    if isinstance(raw_dp, dict):
        for difficulty, overrides in raw_dp.items():
            if isinstance(difficulty, str) and isinstance(overrides, dict):
                difficulty_params[difficulty] = dict(overrides)
    if kind not in CONDITION_TYPES:
        # Evaluates as inert; see check_condition.
        logger.warning("Objective condition type %r is not supported", kind)
    return make_condition(kind, params, difficulty_params)


def _parse_progress(raw: object) -> Progress | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ContentError("progress must be an object")
    return Progress(current=_require_int(raw, "current"), target=_require_int(raw, "target"))


def parse_objective(raw: Mapping[str, object]) -> ObjectiveDefinition:
    raw_condition = raw.get("condition")
    if not isinstance(raw_condition, dict):
        raise ContentError("objective.condition must be an object")
    rewards: dict[str, int] = {}
    raw_rewards = raw.get("rewardByDifficulty", {})
    if isinstance(raw_rewards, dict):
        for difficulty, amount in raw_rewards.items():
            if isinstance(difficulty, str) and isinstance(amount, int):
                rewards[difficulty] = amount
    return ObjectiveDefinition(
        id=_require_str(raw, "id"),
        description=_require_str(raw, "description"),
        condition=_parse_condition(raw_condition),
        reward=_require_int(raw, "reward"),
        reward_by_difficulty=rewards,
        progress=_parse_progress(raw.get("progress")),
    )


@dataclass(frozen=True)
class ObjectiveCatalog:
    levels: dict[int, tuple[ObjectiveDefinition, ...]]

    def for_level(self, level: int) -> tuple[ObjectiveDefinition, ...]:
        return self.levels.get(level, ())


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_objectives(self) -> ObjectiveCatalog:
        path = self._data_dir / "objectives.json"
        schema = _load_json(self._schema_dir / "objectives.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("objectives.json must be an object")
        raw_levels = raw.get("levels")
        if not isinstance(raw_levels, list):
            raise ContentError("objectives.json.levels must be a list")

        levels: dict[int, tuple[ObjectiveDefinition, ...]] = {}
        for entry in raw_levels:
            if not isinstance(entry, dict):
                continue
            level = _require_int(entry, "level")
            if level in levels:
                raise ContentError(f"Duplicate objectives for level {level}")
            defs: list[ObjectiveDefinition] = []
            seen: set[str] = set()
            for item in entry.get("objectives", []):
                if not isinstance(item, dict):
                    continue
                definition = parse_objective(item)
                if definition.id in seen:
                    raise ContentError(f"Duplicate objective id {definition.id} in level {level}")
                seen.add(definition.id)
                defs.append(definition)
            levels[level] = tuple(defs)
        return ObjectiveCatalog(levels=levels)

    def objectives_for_level(self, level: int) -> tuple[ObjectiveDefinition, ...]:
        return self.load_objectives().for_level(level)

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_objectives()
