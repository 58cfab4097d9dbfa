from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .tracking import ObjectiveTracking
from .types import ItemKind, KingDefeatType, Piece, PieceType, Position, TerrainCell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnAdvanced:
    player_turn_count: int | None = None


@dataclass(frozen=True)
class PieceLost:
    piece: Piece


@dataclass(frozen=True)
class PieceKilled:
    piece: Piece
    defeat_type: KingDefeatType | None = None
    killer_type: PieceType | None = None
    killer_name: str | None = None
    killer_terrain: TerrainCell | None = None
    victim_stunned: bool = False


@dataclass(frozen=True)
class ItemUsed:
    item: ItemKind


@dataclass(frozen=True)
class KingMoved:
    position: Position | None


@dataclass(frozen=True)
class KingDisguiseChanged:
    active: bool


@dataclass(frozen=True)
class PieceConverted:
    count: int = 1


@dataclass(frozen=True)
class CourtierDestroyed:
    count: int = 1


@dataclass(frozen=True)
class VictoryDelivered:
    piece_type: PieceType
    original_type: PieceType | None = None


GameEvent = (
    TurnAdvanced
    | PieceLost
    | PieceKilled
    | ItemUsed
    | KingMoved
    | KingDisguiseChanged
    | PieceConverted
    | CourtierDestroyed
    | VictoryDelivered
)


def apply_event(tracking: ObjectiveTracking, event: GameEvent) -> None:
    """Fold one game-loop notification into ``tracking``."""
    if isinstance(event, TurnAdvanced):
        tracking.advance_turn()
        if event.player_turn_count is not None:
            tracking.set_player_turn_count(event.player_turn_count)
        return
    if isinstance(event, PieceLost):
        tracking.record_piece_lost(event.piece)
        return
    if isinstance(event, PieceKilled):
        tracking.record_kill(
            event.piece,
            defeat_type=event.defeat_type,
            killer_type=event.killer_type,
            killer_name=event.killer_name,
            killer_terrain=event.killer_terrain,
            victim_stunned=event.victim_stunned,
        )
        return
    if isinstance(event, ItemUsed):
        tracking.record_item_used(event.item)
        return
    if isinstance(event, KingMoved):
        tracking.set_king_position(event.position)
        return
    if isinstance(event, KingDisguiseChanged):
        tracking.set_king_disguise(event.active)
        return
    if isinstance(event, PieceConverted):
        tracking.record_conversion(event.count)
        return
    if isinstance(event, CourtierDestroyed):
        tracking.record_courtier_destroyed(event.count)
        return
    if isinstance(event, VictoryDelivered):
        tracking.record_victory(event.piece_type, event.original_type)
        return
    # should be unreachable
    logger.warning("Ignoring unknown game event: %r", event)


def apply_events(tracking: ObjectiveTracking, events: Iterable[GameEvent]) -> None:
    """Fold ``events`` into ``tracking`` in order."""
    for event in events:
        apply_event(tracking, event)
