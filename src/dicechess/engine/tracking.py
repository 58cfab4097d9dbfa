from __future__ import annotations

from dataclasses import dataclass, fields

from .types import (
    Difficulty,
    ItemKind,
    KilledPiece,
    KingDefeatType,
    Piece,
    PieceType,
    Position,
    TerrainCell,
    VictoryCondition,
)


@dataclass
class ObjectiveTracking:
    """Per-level telemetry that objective conditions are evaluated against.

    Owned by a single level session. Collections are immutable values;
    change them only through the ``record_*`` / ``set_*`` methods.
    """

    turn_number: int = 0
    player_turn_count: int | None = None
    player_pieces_lost: tuple[Piece, ...] = ()
    enemy_pieces_killed: tuple[KilledPiece, ...] = ()
    piece_conversions: int = 0
    courtiers_destroyed: int = 0
    items_used: frozenset[ItemKind] = frozenset()
    king_position: Position | None = None
    king_disguise_active: bool = False
    victory_deliverer_type: PieceType | None = None
    victory_deliverer_original_type: PieceType | None = None
    victory_condition: VictoryCondition | None = None
    difficulty: Difficulty | None = None

    @property
    def turns_taken(self) -> int:
        if self.player_turn_count is not None:
            return self.player_turn_count
        return self.turn_number

    def advance_turn(self) -> None:
        self.turn_number += 1

    def set_player_turn_count(self, count: int) -> None:
        self.player_turn_count = count

    def record_piece_lost(self, piece: Piece) -> None:
        self.player_pieces_lost = self.player_pieces_lost + (piece,)

    def record_kill(
        self,
        piece: Piece,
        *,
        defeat_type: KingDefeatType | None = None,
        killer_type: PieceType | None = None,
        killer_name: str | None = None,
        killer_terrain: TerrainCell | None = None,
        victim_stunned: bool = False,
    ) -> KilledPiece:
        kill = KilledPiece(
            piece=piece,
            defeat_type=defeat_type if piece.type == "K" else None,
            killer_type=killer_type,
            killer_name=killer_name,
            killer_terrain=killer_terrain,
            victim_stunned=victim_stunned,
        )
        self.enemy_pieces_killed = self.enemy_pieces_killed + (kill,)
        return kill

    def record_conversion(self, count: int = 1) -> None:
        self.piece_conversions += count

    def record_courtier_destroyed(self, count: int = 1) -> None:
        self.courtiers_destroyed += count

    def record_item_used(self, item: ItemKind) -> None:
        self.items_used = self.items_used | {item}

    def set_king_position(self, position: Position | None) -> None:
        self.king_position = position

    def set_king_disguise(self, active: bool) -> None:
        self.king_disguise_active = active

    def record_victory(self, piece_type: PieceType, original_type: PieceType | None = None) -> None:
        self.victory_deliverer_type = piece_type
        self.victory_deliverer_original_type = original_type

    def set_victory_condition(self, victory_condition: VictoryCondition | None) -> None:
        self.victory_condition = victory_condition

    def set_difficulty(self, difficulty: Difficulty | None) -> None:
        self.difficulty = difficulty

    def reset(self) -> None:
        """Return to level-start values; difficulty and victory condition survive."""
        fresh = ObjectiveTracking(difficulty=self.difficulty, victory_condition=self.victory_condition)
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))


def new_tracking(
    difficulty: Difficulty | None = None,
    victory_condition: VictoryCondition | None = None,
) -> ObjectiveTracking:
    return ObjectiveTracking(difficulty=difficulty, victory_condition=victory_condition)
