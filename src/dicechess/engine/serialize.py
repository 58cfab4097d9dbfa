from __future__ import annotations

from collections.abc import Mapping, Sequence

from .tracking import ObjectiveTracking
from .types import KilledPiece, ObjectiveState, Piece, Position, Progress


def _progress_to_dict(p: Progress | None) -> dict[str, object] | None:
    if p is None:
        return None
    return {"current": p.current, "target": p.target}


def _progress_from_dict(raw: object) -> Progress | None:
    if not isinstance(raw, Mapping):
        return None
    cur = _opt_int(raw.get("current"))
    tgt = raw.get("target")
    if cur is None or not isinstance(tgt, (int, float)) or isinstance(tgt, bool):
        return None
    return Progress(current=cur, target=tgt)


def _opt_int(raw: object) -> int | None:
    return raw if isinstance(raw, int) and not isinstance(raw, bool) else None


def _opt_str(raw: object) -> str | None:
    return raw if isinstance(raw, str) else None


def objective_state_to_dict(state: ObjectiveState) -> dict[str, object]:
    return {
        "objective_id": state.objective_id,
        "is_completed": state.is_completed,
        "is_failed": state.is_failed,
        "progress": _progress_to_dict(state.progress),
        "completed_on_turn": state.completed_on_turn,
        "failed_on_turn": state.failed_on_turn,
    }


def objective_state_from_dict(d: Mapping[str, object]) -> ObjectiveState:
    oid = d.get("objective_id")
    if not isinstance(oid, str):
        raise ValueError("objective_id must be a string")
    completed = bool(d.get("is_completed", False))
    return ObjectiveState(
        objective_id=oid,
        is_completed=completed,
        # keep the terminal flags exclusive even for hand-edited saves
        is_failed=bool(d.get("is_failed", False)) and not completed,
        progress=_progress_from_dict(d.get("progress")),
        completed_on_turn=_opt_int(d.get("completed_on_turn")),
        failed_on_turn=_opt_int(d.get("failed_on_turn")),
    )


def _piece_to_dict(p: Piece) -> dict[str, object]:
    return {
        "id": p.id,
        "type": p.type,
        "color": p.color,
        "name": p.name,
        "original_type": p.original_type,
        "equip": p.equip,
        "stunned_for_turns": p.stunned_for_turns,
    }


def _kill_to_dict(k: KilledPiece) -> dict[str, object]:
    return {
        "piece": _piece_to_dict(k.piece),
        "defeat_type": k.defeat_type,
        "killer_type": k.killer_type,
        "killer_name": k.killer_name,
        "killer_terrain": k.killer_terrain,
        "victim_stunned": k.victim_stunned,
    }


def _position_to_dict(p: Position | None) -> dict[str, object] | None:
    if p is None:
        return None
    return {"x": p.x, "y": p.y}


def tracking_snapshot(t: ObjectiveTracking) -> dict[str, object]:
    """Return a JSON-serializable snapshot of the tracking store."""
    return {
        "turn_number": t.turn_number,
        "player_turn_count": t.player_turn_count,
        "player_pieces_lost": [_piece_to_dict(p) for p in t.player_pieces_lost],
        "enemy_pieces_killed": [_kill_to_dict(k) for k in t.enemy_pieces_killed],
        "piece_conversions": t.piece_conversions,
        "courtiers_destroyed": t.courtiers_destroyed,
        "items_used": sorted(t.items_used),
        "king_position": _position_to_dict(t.king_position),
        "king_disguise_active": t.king_disguise_active,
        "victory_deliverer_type": t.victory_deliverer_type,
        "victory_deliverer_original_type": t.victory_deliverer_original_type,
        "victory_condition": t.victory_condition,
        "difficulty": t.difficulty,
    }


def snapshot_objectives(states: Sequence[ObjectiveState]) -> list[dict[str, object]]:
    return [objective_state_to_dict(s) for s in states]


def restore_objectives(raw: Sequence[Mapping[str, object]]) -> list[ObjectiveState]:
    return [objective_state_from_dict(d) for d in raw]


def _piece_from_dict(d: object) -> Piece:
    if not isinstance(d, Mapping):
        raise ValueError("piece must be an object")
    pid, ptype, color = d.get("id"), d.get("type"), d.get("color")
    if not isinstance(pid, str) or not isinstance(ptype, str) or not isinstance(color, str):
        raise ValueError("piece id, type and color must be strings")
    return Piece(
        id=pid,
        type=ptype,  # type: ignore[arg-type]
        color=color,  # type: ignore[arg-type]
        name=_opt_str(d.get("name")),
        original_type=_opt_str(d.get("original_type")),  # type: ignore[arg-type]
        equip=_opt_str(d.get("equip")),  # type: ignore[arg-type]
        stunned_for_turns=_opt_int(d.get("stunned_for_turns")) or 0,
    )


def _kill_from_dict(d: object) -> KilledPiece:
    if not isinstance(d, Mapping):
        raise ValueError("kill must be an object")
    return KilledPiece(
        piece=_piece_from_dict(d.get("piece")),
        defeat_type=_opt_str(d.get("defeat_type")),  # type: ignore[arg-type]
        killer_type=_opt_str(d.get("killer_type")),  # type: ignore[arg-type]
        killer_name=_opt_str(d.get("killer_name")),
        killer_terrain=_opt_str(d.get("killer_terrain")),  # type: ignore[arg-type]
        victim_stunned=bool(d.get("victim_stunned", False)),
    )


def _position_from_dict(raw: object) -> Position | None:
    if not isinstance(raw, Mapping):
        return None
    x, y = _opt_int(raw.get("x")), _opt_int(raw.get("y"))
    if x is None or y is None:
        return None
    return Position(x=x, y=y)


def _list(d: Mapping[str, object], key: str) -> list[object]:
    raw = d.get(key, [])
    if not isinstance(raw, list):
        raise ValueError(f"{key} must be a list")
    return raw


def tracking_from_dict(d: Mapping[str, object]) -> ObjectiveTracking:
    """Rebuild a tracking store from a ``tracking_snapshot`` dict."""
    return ObjectiveTracking(
        turn_number=_opt_int(d.get("turn_number")) or 0,
        player_turn_count=_opt_int(d.get("player_turn_count")),
        player_pieces_lost=tuple(_piece_from_dict(p) for p in _list(d, "player_pieces_lost")),
        enemy_pieces_killed=tuple(_kill_from_dict(k) for k in _list(d, "enemy_pieces_killed")),
        piece_conversions=_opt_int(d.get("piece_conversions")) or 0,
        courtiers_destroyed=_opt_int(d.get("courtiers_destroyed")) or 0,
        items_used=frozenset(i for i in _list(d, "items_used") if isinstance(i, str)),  # type: ignore[misc]
        king_position=_position_from_dict(d.get("king_position")),
        king_disguise_active=bool(d.get("king_disguise_active", False)),
        victory_deliverer_type=_opt_str(d.get("victory_deliverer_type")),  # type: ignore[arg-type]
        victory_deliverer_original_type=_opt_str(d.get("victory_deliverer_original_type")),  # type: ignore[arg-type]
        victory_condition=_opt_str(d.get("victory_condition")),  # type: ignore[arg-type]
        difficulty=_opt_str(d.get("difficulty")),  # type: ignore[arg-type]
    )
