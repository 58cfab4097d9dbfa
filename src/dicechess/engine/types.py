from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

PieceType = Literal["K", "Q", "R", "B", "N", "P", "ROCK"]
PieceColor = Literal["w", "b", "n"]
ItemKind = Literal[
    "sword",
    "shield",
    "lance",
    "torch",
    "bow",
    "staff",
    "crystal_ball",
    "disguise",
    "scythe",
    "banner",
    "curse",
    "skull",
    "purse",
]
TerrainCell = Literal["none", "forest", "water"]
KingDefeatType = Literal["beheaded", "dishonored", "checkmate"]
Difficulty = Literal["easy", "medium", "hard"]
VictoryCondition = Literal["king_beheaded", "king_captured", "checkmate"]
BoardArea = Literal["top", "bottom", "left", "right"]
KillComparison = Literal["exact", "atleast", "atmost"]

ConditionKind = Literal[
    "no_piece_type_lost",
    "win_under_turns",
    "king_at_position",
    "convert_pieces",
    "kill_count",
    "no_item_used",
    "max_casualties",
    "keep_king_disguised",
    "checkmate_with_piece",
    "dont_kill_courtiers",
    "custom",
]

Params = Mapping[str, object]
DifficultyParams = Mapping[str, Params]
Number = int | float

PLAYER_COLOR: PieceColor = "w"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Piece:
    id: str
    type: PieceType
    color: PieceColor
    name: str | None = None
    original_type: PieceType | None = None  # set while disguised
    equip: ItemKind | None = None
    stunned_for_turns: int = 0


@dataclass(frozen=True)
class Position:
    x: int  # file
    y: int  # rank


@dataclass(frozen=True)
class KilledPiece:
    piece: Piece
    defeat_type: KingDefeatType | None = None  # kings only
    killer_type: PieceType | None = None
    killer_name: str | None = None
    killer_terrain: TerrainCell | None = None
    victim_stunned: bool = False


@dataclass(frozen=True)
class Progress:
    current: int
    target: Number


# Row-major grid, row index is the rank.
Board = Sequence[Sequence[Piece | None]]




class ParamError(ValueError):
    """A condition parameter is missing or has the wrong type."""


def _number(raw: Params, key: str) -> Number:
    v = raw.get(key)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ParamError(f"{key} must be a number, got {v!r}")
    return v


def _opt_number(raw: Params, key: str) -> Number | None:
    if raw.get(key) is None:
        return None
    return _number(raw, key)


def _text(raw: Params, key: str) -> str:
    v = raw.get(key)
    if not isinstance(v, str) or not v:
        raise ParamError(f"{key} must be a non-empty string, got {v!r}")
    return v


def _opt_text(raw: Params, key: str) -> str | None:
    # Empty strings act as "not specified".
    v = raw.get(key)
    if v is None or v == "":
        return None
    return _text(raw, key)


def _choice(raw: Params, key: str, allowed: tuple[str, ...]) -> str | None:
    v = _opt_text(raw, key)
    if v is not None and v not in allowed:
        raise ParamError(f"{key} must be one of {', '.join(allowed)}, got {v!r}")
    return v


@dataclass(frozen=True)
class NoPieceTypeLostParams:
    piece_type: PieceType
    piece_name: str | None = None

    @staticmethod
    def from_params(raw: Params) -> "NoPieceTypeLostParams":
        return NoPieceTypeLostParams(
            piece_type=_text(raw, "pieceType"),  # type: ignore[arg-type]
            piece_name=_opt_text(raw, "pieceName"),
        )


@dataclass(frozen=True)
class WinUnderTurnsParams:
    max_turns: Number

    @staticmethod
    def from_params(raw: Params) -> "WinUnderTurnsParams":
        return WinUnderTurnsParams(max_turns=_number(raw, "maxTurns"))


@dataclass(frozen=True)
class KingAtPositionParams:
    rank: Number | None = None
    file: Number | None = None
    area: BoardArea | None = None

    @staticmethod
    def from_params(raw: Params) -> "KingAtPositionParams":
        return KingAtPositionParams(
            rank=_opt_number(raw, "rank"),
            file=_opt_number(raw, "file"),
            area=_choice(raw, "area", ("top", "bottom", "left", "right")),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class ConvertPiecesParams:
    count: Number

    @staticmethod
    def from_params(raw: Params) -> "ConvertPiecesParams":
        return ConvertPiecesParams(count=_number(raw, "count"))


@dataclass(frozen=True)
class KillCountParams:
    count: Number
    comparison: KillComparison = "atleast"
    piece_type: PieceType | None = None
    killer_piece_type: PieceType | None = None
    killer_name: str | None = None
    killer_terrain: TerrainCell | None = None
    victim_stunned: bool | None = None

    @staticmethod
    def from_params(raw: Params) -> "KillCountParams":
        stunned = raw.get("victimStunned")
        return KillCountParams(
            count=_number(raw, "count"),
            comparison=_choice(raw, "comparison", ("exact", "atleast", "atmost")) or "atleast",  # type: ignore[arg-type]
            piece_type=_opt_text(raw, "pieceType"),  # type: ignore[arg-type]
            killer_piece_type=_opt_text(raw, "killerPieceType"),  # type: ignore[arg-type]
            killer_name=_opt_text(raw, "killerName"),
            killer_terrain=_opt_text(raw, "killerTerrain"),  # type: ignore[arg-type]
            victim_stunned=None if stunned is None else bool(stunned),
        )


@dataclass(frozen=True)
class NoItemUsedParams:
    item_type: ItemKind

    @staticmethod
    def from_params(raw: Params) -> "NoItemUsedParams":
        return NoItemUsedParams(item_type=_text(raw, "itemType"))  # type: ignore[arg-type]


@dataclass(frozen=True)
class MaxCasualtiesParams:
    max_losses: Number

    @staticmethod
    def from_params(raw: Params) -> "MaxCasualtiesParams":
        return MaxCasualtiesParams(max_losses=_number(raw, "maxLosses"))


@dataclass(frozen=True)
class CheckmateWithPieceParams:
    piece_type: PieceType

    @staticmethod
    def from_params(raw: Params) -> "CheckmateWithPieceParams":
        return CheckmateWithPieceParams(piece_type=_text(raw, "pieceType"))  # type: ignore[arg-type]


@dataclass(frozen=True)
class DontKillCourtiersParams:
    max_courtiers: Number

    @staticmethod
    def from_params(raw: Params) -> "DontKillCourtiersParams":
        return DontKillCourtiersParams(max_courtiers=_number(raw, "maxCourtiers"))


# Authored params use the content's camelCase keys; ``resolve`` merges the
# difficulty overrides and returns the kind's typed params.


@dataclass(frozen=True)
class NoPieceTypeLost:
    type: Literal["no_piece_type_lost"] = "no_piece_type_lost"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> NoPieceTypeLostParams:
        return NoPieceTypeLostParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class WinUnderTurns:
    type: Literal["win_under_turns"] = "win_under_turns"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> WinUnderTurnsParams:
        return WinUnderTurnsParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class KingAtPosition:
    type: Literal["king_at_position"] = "king_at_position"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> KingAtPositionParams:
        return KingAtPositionParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class ConvertPieces:
    type: Literal["convert_pieces"] = "convert_pieces"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> ConvertPiecesParams:
        return ConvertPiecesParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class KillCount:
    type: Literal["kill_count"] = "kill_count"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> KillCountParams:
        return KillCountParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class NoItemUsed:
    type: Literal["no_item_used"] = "no_item_used"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> NoItemUsedParams:
        return NoItemUsedParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class MaxCasualties:
    type: Literal["max_casualties"] = "max_casualties"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> MaxCasualtiesParams:
        return MaxCasualtiesParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class KeepKingDisguised:
    type: Literal["keep_king_disguised"] = "keep_king_disguised"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)


@dataclass(frozen=True)
class CheckmateWithPiece:
    type: Literal["checkmate_with_piece"] = "checkmate_with_piece"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> CheckmateWithPieceParams:
        return CheckmateWithPieceParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class DontKillCourtiers:
    type: Literal["dont_kill_courtiers"] = "dont_kill_courtiers"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)

    def resolve(self, difficulty: Difficulty | None = None) -> DontKillCourtiersParams:
        return DontKillCourtiersParams.from_params(effective_params(self, difficulty))


@dataclass(frozen=True)
class CustomCondition:
    type: Literal["custom"] = "custom"
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)


@dataclass(frozen=True)
class UnknownCondition:
    """A condition kind authored in content that this engine does not know.

    Kept so that loading never fails on it; it evaluates like ``custom``.
    """

    type: str
    params: Params = field(default_factory=dict)
    difficulty_params: DifficultyParams = field(default_factory=dict)


Condition = (
    NoPieceTypeLost
    | WinUnderTurns
    | KingAtPosition
    | ConvertPieces
    | KillCount
    | NoItemUsed
    | MaxCasualties
    | KeepKingDisguised
    | CheckmateWithPiece
    | DontKillCourtiers
    | CustomCondition
    | UnknownCondition
)

CONDITION_TYPES: dict[ConditionKind, type] = {
    "no_piece_type_lost": NoPieceTypeLost,
    "win_under_turns": WinUnderTurns,
    "king_at_position": KingAtPosition,
    "convert_pieces": ConvertPieces,
    "kill_count": KillCount,
    "no_item_used": NoItemUsed,
    "max_casualties": MaxCasualties,
    "keep_king_disguised": KeepKingDisguised,
    "checkmate_with_piece": CheckmateWithPiece,
    "dont_kill_courtiers": DontKillCourtiers,
    "custom": CustomCondition,
}


def make_condition(
    kind: str,
    params: Params | None = None,
    difficulty_params: DifficultyParams | None = None,
) -> Condition:
    """Build the condition variant for ``kind``; unknown kinds are preserved."""
    p = dict(params or {})
    # Malformed override sets are kept as-is; effective_params skips them.
    dp = {k: dict(v) if isinstance(v, Mapping) else v for k, v in (difficulty_params or {}).items()}
    cls = CONDITION_TYPES.get(kind)  # type: ignore[call-overload]
    if cls is None:
        return UnknownCondition(type=kind, params=p, difficulty_params=dp)
    return cls(params=p, difficulty_params=dp)


# Used when no difficulty is active, in this order.
FALLBACK_DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "hard")


def _override_set(condition: Condition, difficulty: str) -> Params | None:
    chosen = condition.difficulty_params.get(difficulty)
    if chosen is None:
        return None
    if not isinstance(chosen, Mapping):
        logger.warning("Ignoring %s overrides for %s condition: %r", difficulty, condition.type, chosen)
        return None
    return chosen


def effective_params(condition: Condition, difficulty: Difficulty | None = None) -> dict[str, object]:
    """Merge base params with the overrides for ``difficulty``.

    With no difficulty, the first defined fallback override set is used.
    A difficulty without overrides yields the base params alone. Override
    sets that are not mappings are skipped with a warning.
    """
    base = dict(condition.params) if isinstance(condition.params, Mapping) else {}
    if not isinstance(condition.difficulty_params, Mapping):
        logger.warning("Ignoring difficulty overrides for %s condition", condition.type)
        return base
    if difficulty is not None:
        chosen = _override_set(condition, difficulty)
        if chosen is not None:
            base.update(chosen)
        return base
    for fallback in FALLBACK_DIFFICULTIES:
        chosen = _override_set(condition, fallback)
        if chosen is not None:
            base.update(chosen)
            break
    return base



@dataclass(frozen=True)
class ObjectiveDefinition:
    id: str
    description: str
    condition: Condition
    reward: int
    reward_by_difficulty: Mapping[str, int] = field(default_factory=dict)
    progress: Progress | None = None


@dataclass
class ObjectiveState:
    objective_id: str
    is_completed: bool = False
    is_failed: bool = False
    progress: Progress | None = None
    completed_on_turn: int | None = None
    failed_on_turn: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.is_completed or self.is_failed


@dataclass(frozen=True)
class EvaluationResult:
    is_met: bool = False
    is_failed: bool = False
    is_permanently_met: bool = False
    progress: Progress | None = None


NEUTRAL_RESULT = EvaluationResult()
