from __future__ import annotations

import logging

from .tracking import ObjectiveTracking
from .types import (
    NEUTRAL_RESULT,
    PLAYER_COLOR,
    Board,
    CheckmateWithPiece,
    CheckmateWithPieceParams,
    Condition,
    ConvertPieces,
    ConvertPiecesParams,
    CustomCondition,
    DontKillCourtiers,
    DontKillCourtiersParams,
    EvaluationResult,
    KeepKingDisguised,
    KilledPiece,
    KillCount,
    KillCountParams,
    KingAtPosition,
    KingAtPositionParams,
    MaxCasualties,
    MaxCasualtiesParams,
    NoItemUsed,
    NoItemUsedParams,
    NoPieceTypeLost,
    NoPieceTypeLostParams,
    ParamError,
    Progress,
    UnknownCondition,
    WinUnderTurns,
    WinUnderTurnsParams,
)

logger = logging.getLogger(__name__)


def _named_piece_on_board(board: Board, name: str) -> bool:
    for row in board:
        for piece in row:
            if piece is not None and piece.name == name and piece.color == PLAYER_COLOR:
                return True
    return False


def _no_piece_type_lost(p: NoPieceTypeLostParams, tracking: ObjectiveTracking, board: Board | None) -> EvaluationResult:
    lost = [piece for piece in tracking.player_pieces_lost if piece.type == p.piece_type]
    failed = len(lost) > 0
    if p.piece_name is not None and board is not None and not _named_piece_on_board(board, p.piece_name):
        failed = True

    progress = None
    if p.piece_name is None and lost:
        progress = Progress(current=len(lost), target=0)
    # Only confirmed once the level ends.
    return EvaluationResult(is_met=not failed, is_failed=failed, progress=progress)


def _win_under_turns(p: WinUnderTurnsParams, tracking: ObjectiveTracking) -> EvaluationResult:
    turns = tracking.turns_taken
    return EvaluationResult(
        is_met=turns <= p.max_turns,
        is_failed=turns > p.max_turns,
        progress=Progress(current=turns, target=p.max_turns),
    )


def _king_at_position(p: KingAtPositionParams, tracking: ObjectiveTracking, board: Board | None) -> EvaluationResult:
    pos = tracking.king_position
    if pos is None or board is None:
        return NEUTRAL_RESULT

    size = len(board)
    met = True
    if p.rank is not None:
        met = met and pos.y == p.rank
    if p.file is not None:
        met = met and pos.x == p.file
    if p.area == "top":
        met = met and pos.y == size - 1
    elif p.area == "bottom":
        met = met and pos.y == 0
    elif p.area == "left":
        met = met and pos.x == 0
    elif p.area == "right":
        met = met and pos.x == size - 1

    # Checked at level end only, so it never fails mid-game.
    return EvaluationResult(is_met=met)


def _convert_pieces(p: ConvertPiecesParams, tracking: ObjectiveTracking) -> EvaluationResult:
    met = tracking.piece_conversions >= p.count
    return EvaluationResult(
        is_met=met,
        is_permanently_met=met,
        progress=Progress(current=tracking.piece_conversions, target=p.count),
    )


def filter_kills(p: KillCountParams, kills: tuple[KilledPiece, ...]) -> list[KilledPiece]:
    """Narrow ``kills`` by the optional kill_count filters set in ``p``."""
    out = list(kills)
    if p.piece_type is not None:
        out = [k for k in out if k.piece.type == p.piece_type]
    if p.killer_piece_type is not None:
        out = [k for k in out if k.killer_type == p.killer_piece_type]
    if p.killer_name is not None:
        out = [k for k in out if k.killer_name and k.killer_name == p.killer_name]
    if p.killer_terrain is not None:
        out = [k for k in out if k.killer_terrain == p.killer_terrain]
    if p.victim_stunned is not None:
        out = [k for k in out if bool(k.victim_stunned) == p.victim_stunned]
    return out


def _kill_count(p: KillCountParams, tracking: ObjectiveTracking) -> EvaluationResult:
    count = len(filter_kills(p, tracking.enemy_pieces_killed))
    progress = Progress(current=count, target=p.count)

    match p.comparison:
        case "exact":
            # Only meaningful at level end.
            return EvaluationResult(is_met=count == p.count, progress=progress)
        case "atleast":
            met = count >= p.count
            return EvaluationResult(is_met=met, is_permanently_met=met, progress=progress)
        case "atmost":
            return EvaluationResult(is_met=count <= p.count, is_failed=count > p.count, progress=progress)
        case _:
            raise ParamError(f"unknown comparison {p.comparison!r}")


def _no_item_used(p: NoItemUsedParams, tracking: ObjectiveTracking) -> EvaluationResult:
    used = p.item_type in tracking.items_used
    return EvaluationResult(is_met=not used, is_failed=used)


def _max_casualties(p: MaxCasualtiesParams, tracking: ObjectiveTracking) -> EvaluationResult:
    losses = len(tracking.player_pieces_lost)
    return EvaluationResult(
        is_met=losses <= p.max_losses,
        is_failed=losses > p.max_losses,
        progress=Progress(current=losses, target=p.max_losses),
    )


def _keep_king_disguised(tracking: ObjectiveTracking) -> EvaluationResult:
    active = tracking.king_disguise_active
    return EvaluationResult(is_met=active, is_failed=not active)


def _checkmate_with_piece(p: CheckmateWithPieceParams, tracking: ObjectiveTracking) -> EvaluationResult:
    deliverer = tracking.victory_deliverer_original_type or tracking.victory_deliverer_type
    if deliverer is None:
        return NEUTRAL_RESULT
    met = deliverer == p.piece_type
    return EvaluationResult(is_met=met, is_failed=not met, is_permanently_met=met)


def _dont_kill_courtiers(p: DontKillCourtiersParams, tracking: ObjectiveTracking) -> EvaluationResult:
    destroyed = tracking.courtiers_destroyed
    return EvaluationResult(
        is_met=destroyed <= p.max_courtiers,
        is_failed=destroyed > p.max_courtiers,
        progress=Progress(current=destroyed, target=p.max_courtiers),
    )


def check_condition(
    condition: Condition,
    tracking: ObjectiveTracking,
    board: Board | None = None,
) -> EvaluationResult:
    """Evaluate ``condition`` against the current tracking and optional board.

    Pure: neither input is modified. Never raises; custom, unknown and
    malformed conditions log a warning and evaluate as neither met nor failed.
    """
    difficulty = tracking.difficulty
    try:
        match condition:
            case NoPieceTypeLost():
                return _no_piece_type_lost(condition.resolve(difficulty), tracking, board)
            case WinUnderTurns():
                return _win_under_turns(condition.resolve(difficulty), tracking)
            case KingAtPosition():
                return _king_at_position(condition.resolve(difficulty), tracking, board)
            case ConvertPieces():
                return _convert_pieces(condition.resolve(difficulty), tracking)
            case KillCount():
                return _kill_count(condition.resolve(difficulty), tracking)
            case NoItemUsed():
                return _no_item_used(condition.resolve(difficulty), tracking)
            case MaxCasualties():
                return _max_casualties(condition.resolve(difficulty), tracking)
            case KeepKingDisguised():
                return _keep_king_disguised(tracking)
            case CheckmateWithPiece():
                return _checkmate_with_piece(condition.resolve(difficulty), tracking)
            case DontKillCourtiers():
                return _dont_kill_courtiers(condition.resolve(difficulty), tracking)
            case CustomCondition():
                logger.warning("Custom objective conditions are not evaluated")
                return NEUTRAL_RESULT
            case UnknownCondition(type=kind):
                logger.warning("Unknown objective condition type: %s", kind)
                return NEUTRAL_RESULT
            case _:
                logger.warning("Unhandled objective condition: %r", condition)
                return NEUTRAL_RESULT
    except ParamError as e:
        logger.warning("Invalid params for %s condition: %s", getattr(condition, "type", "?"), e)
        return NEUTRAL_RESULT
