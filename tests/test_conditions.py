from __future__ import annotations

import logging

from dicechess.engine.conditions import check_condition
from dicechess.engine.tracking import new_tracking
from dicechess.engine.types import KillCountParams, Piece, Position, Progress, make_condition


def _piece(pid: str, ptype: str = "P", color: str = "w", name: str | None = None) -> Piece:
    return Piece(id=pid, type=ptype, color=color, name=name)  # type: ignore[arg-type]


def _board(size: int, pieces: dict[tuple[int, int], Piece] | None = None) -> list[list[Piece | None]]:
    grid: list[list[Piece | None]] = [[None] * size for _ in range(size)]
    for (x, y), p in (pieces or {}).items():
        grid[y][x] = p
    return grid


def test_difficulty_overrides_params() -> None:
    cond = make_condition("max_casualties", {"maxLosses": 3}, {"hard": {"maxLosses": 1}})
    tracking = new_tracking("hard")
    tracking.record_piece_lost(_piece("p1"))
    tracking.record_piece_lost(_piece("p2"))

    res = check_condition(cond, tracking)
    assert res.is_failed
    assert res.progress == Progress(current=2, target=1)

    tracking.set_difficulty("easy")  # no easy override -> base
    res = check_condition(cond, tracking)
    assert res.is_met and not res.is_failed
    assert res.progress == Progress(current=2, target=3)


def test_no_difficulty_falls_back_to_hard_override() -> None:
    cond = make_condition("max_casualties", {"maxLosses": 3}, {"hard": {"maxLosses": 1}})
    tracking = new_tracking()
    res = check_condition(cond, tracking)
    assert res.progress == Progress(current=0, target=1)


def test_no_piece_type_lost_counts_losses() -> None:
    cond = make_condition("no_piece_type_lost", {"pieceType": "R"})
    tracking = new_tracking()
    res = check_condition(cond, tracking)
    assert res.is_met and not res.is_failed and not res.is_permanently_met
    assert res.progress is None

    tracking.record_piece_lost(_piece("p1", "P"))
    assert check_condition(cond, tracking).is_met

    tracking.record_piece_lost(_piece("r1", "R"))
    res = check_condition(cond, tracking)
    assert res.is_failed and not res.is_met
    assert res.progress == Progress(current=1, target=0)


def test_no_piece_type_lost_named_piece_must_be_on_board() -> None:
    cond = make_condition("no_piece_type_lost", {"pieceType": "N", "pieceName": "Sir Galahad"})
    tracking = new_tracking()
    galahad = _piece("n1", "N", name="Sir Galahad")

    res = check_condition(cond, tracking, _board(5, {(1, 0): galahad}))
    assert res.is_met and res.progress is None

    # an enemy piece with the same name does not count
    impostor = _piece("n2", "N", color="b", name="Sir Galahad")
    res = check_condition(cond, tracking, _board(5, {(1, 4): impostor}))
    assert res.is_failed and not res.is_met

    # without a board only losses are considered
    assert check_condition(cond, tracking).is_met


def test_win_under_turns_boundary() -> None:
    cond = make_condition("win_under_turns", {"maxTurns": 3})
    tracking = new_tracking()
    for _ in range(3):
        tracking.advance_turn()
    res = check_condition(cond, tracking)
    assert res.is_met and not res.is_failed
    assert res.progress == Progress(current=3, target=3)

    tracking.advance_turn()
    res = check_condition(cond, tracking)
    assert res.is_failed and not res.is_met


def test_win_under_turns_prefers_player_turn_count() -> None:
    cond = make_condition("win_under_turns", {"maxTurns": 3})
    tracking = new_tracking()
    for _ in range(6):
        tracking.advance_turn()
    tracking.set_player_turn_count(3)
    res = check_condition(cond, tracking)
    assert res.is_met
    assert res.progress == Progress(current=3, target=3)


def test_king_at_position() -> None:
    board = _board(6)
    tracking = new_tracking()

    area = make_condition("king_at_position", {"area": "top"})
    # unknown king position is neutral
    res = check_condition(area, tracking, board)
    assert not res.is_met and not res.is_failed

    tracking.set_king_position(Position(x=2, y=5))
    assert check_condition(area, tracking, board).is_met
    # needs a board to know its size
    assert not check_condition(area, tracking).is_met

    exact = make_condition("king_at_position", {"rank": 5, "file": 3})
    res = check_condition(exact, tracking, board)
    assert not res.is_met and not res.is_failed
    assert res.progress is None

    tracking.set_king_position(Position(x=3, y=5))
    assert check_condition(exact, tracking, board).is_met

    right = make_condition("king_at_position", {"area": "right"})
    assert not check_condition(right, tracking, board).is_met


def test_convert_pieces_is_permanent_once_met() -> None:
    cond = make_condition("convert_pieces", {"count": 2})
    tracking = new_tracking()
    tracking.record_conversion()
    res = check_condition(cond, tracking)
    assert not res.is_met and not res.is_permanently_met and not res.is_failed
    assert res.progress == Progress(current=1, target=2)

    tracking.record_conversion()
    res = check_condition(cond, tracking)
    assert res.is_met and res.is_permanently_met


def test_kill_count_atmost_boundary() -> None:
    cond = make_condition("kill_count", {"count": 2, "comparison": "atmost"})
    tracking = new_tracking()
    tracking.record_kill(_piece("b1", color="b"))
    tracking.record_kill(_piece("b2", color="b"))
    res = check_condition(cond, tracking)
    assert res.is_met and not res.is_failed and not res.is_permanently_met

    tracking.record_kill(_piece("b3", color="b"))
    res = check_condition(cond, tracking)
    assert res.is_failed and not res.is_met
    assert res.progress == Progress(current=3, target=2)


def test_kill_count_atleast_default_and_exact() -> None:
    atleast = make_condition("kill_count", {"count": 2})
    exact = make_condition("kill_count", {"count": 2, "comparison": "exact"})
    tracking = new_tracking()
    tracking.record_kill(_piece("b1", color="b"))
    assert not check_condition(atleast, tracking).is_met

    tracking.record_kill(_piece("b2", color="b"))
    res = check_condition(atleast, tracking)
    assert res.is_met and res.is_permanently_met
    res = check_condition(exact, tracking)
    assert res.is_met and not res.is_permanently_met

    tracking.record_kill(_piece("b3", color="b"))
    res = check_condition(exact, tracking)
    assert not res.is_met and not res.is_failed


def test_kill_count_filters() -> None:
    tracking = new_tracking()
    tracking.record_kill(_piece("b1", "P", "b"), killer_type="B", killer_terrain="forest")
    tracking.record_kill(_piece("b2", "N", "b"), killer_type="B", killer_name="Robin", victim_stunned=True)
    tracking.record_kill(_piece("b3", "P", "b"), killer_type="Q", killer_terrain="forest", victim_stunned=True)

    def count(params: dict[str, object]) -> int:
        res = check_condition(make_condition("kill_count", {"count": 0, **params}), tracking)
        assert res.progress is not None
        return res.progress.current

    assert count({}) == 3
    assert count({"pieceType": "P"}) == 2
    assert count({"killerPieceType": "B"}) == 2
    assert count({"killerName": "Robin"}) == 1
    assert count({"killerTerrain": "forest"}) == 2
    assert count({"victimStunned": True}) == 2
    assert count({"victimStunned": False}) == 1
    assert count({"pieceType": "P", "killerTerrain": "forest", "victimStunned": True}) == 1


def test_no_item_used() -> None:
    cond = make_condition("no_item_used", {"itemType": "crystal_ball"})
    tracking = new_tracking()
    tracking.record_item_used("sword")
    res = check_condition(cond, tracking)
    assert res.is_met and not res.is_failed

    tracking.record_item_used("crystal_ball")
    res = check_condition(cond, tracking)
    assert res.is_failed and not res.is_met


def test_keep_king_disguised_follows_flag() -> None:
    cond = make_condition("keep_king_disguised")
    tracking = new_tracking()
    assert check_condition(cond, tracking).is_failed
    tracking.set_king_disguise(True)
    res = check_condition(cond, tracking)
    assert res.is_met and not res.is_failed and not res.is_permanently_met


def test_checkmate_with_piece_uses_original_type() -> None:
    cond = make_condition("checkmate_with_piece", {"pieceType": "P"})
    tracking = new_tracking()
    res = check_condition(cond, tracking)
    assert not res.is_met and not res.is_failed

    # a pawn disguised as a queen still counts as a pawn
    tracking.record_victory("Q", original_type="P")
    res = check_condition(cond, tracking)
    assert res.is_met and res.is_permanently_met

    tracking.record_victory("R")
    res = check_condition(cond, tracking)
    assert res.is_failed and not res.is_met


def test_dont_kill_courtiers() -> None:
    cond = make_condition("dont_kill_courtiers", {"maxCourtiers": 1})
    tracking = new_tracking()
    tracking.record_courtier_destroyed()
    res = check_condition(cond, tracking)
    assert res.is_met and res.progress == Progress(current=1, target=1)
    tracking.record_courtier_destroyed()
    assert check_condition(cond, tracking).is_failed


def test_custom_and_unknown_are_inert(caplog) -> None:
    tracking = new_tracking()
    with caplog.at_level(logging.WARNING, logger="dicechess.engine.conditions"):
        custom = check_condition(make_condition("custom", {"anything": 1}), tracking)
        unknown = check_condition(make_condition("capture_the_flag"), tracking)
    for res in (custom, unknown):
        assert not res.is_met and not res.is_failed and not res.is_permanently_met
        assert res.progress is None
    assert "capture_the_flag" in caplog.text
    assert len(caplog.records) == 2


def test_malformed_params_never_raise(caplog) -> None:
    tracking = new_tracking()
    with caplog.at_level(logging.WARNING, logger="dicechess.engine.conditions"):
        missing = check_condition(make_condition("max_casualties"), tracking)
        wrong = check_condition(make_condition("win_under_turns", {"maxTurns": "ten"}), tracking)
        bad_cmp = check_condition(make_condition("kill_count", {"count": 1, "comparison": "most"}), tracking)
    for res in (missing, wrong, bad_cmp):
        assert not res.is_met and not res.is_failed
    assert len(caplog.records) == 3


def test_evaluation_does_not_mutate_tracking() -> None:
    tracking = new_tracking("medium")
    tracking.record_piece_lost(_piece("p1"))
    before = (tracking.player_pieces_lost, tracking.turn_number, tracking.items_used)
    check_condition(make_condition("max_casualties", {"maxLosses": 0}), tracking)
    assert (tracking.player_pieces_lost, tracking.turn_number, tracking.items_used) == before


def test_malformed_difficulty_overrides_use_base_params(caplog) -> None:
    tracking = new_tracking("hard")
    tracking.record_piece_lost(_piece("p1"))
    tracking.record_piece_lost(_piece("p2"))
    with caplog.at_level(logging.WARNING):
        listed = check_condition(make_condition("max_casualties", {"maxLosses": 1}, {"hard": ["x"]}), tracking)
        scalar = check_condition(make_condition("max_casualties", {"maxLosses": 1}, {"hard": 5}), tracking)
    for res in (listed, scalar):
        assert res.is_failed and not res.is_met
        assert res.progress == Progress(current=2, target=1)
    assert len(caplog.records) == 2


def test_fractional_kill_count_is_not_truncated() -> None:
    cond = make_condition("kill_count", {"count": 2.5})
    tracking = new_tracking()
    tracking.record_kill(_piece("b1", color="b"))
    tracking.record_kill(_piece("b2", color="b"))
    res = check_condition(cond, tracking)
    assert not res.is_met and not res.is_permanently_met
    assert res.progress == Progress(current=2, target=2.5)

    tracking.record_kill(_piece("b3", color="b"))
    res = check_condition(cond, tracking)
    assert res.is_met and res.is_permanently_met


def test_resolve_builds_typed_params_after_difficulty_merge() -> None:
    cond = make_condition(
        "kill_count",
        {"count": 3, "killerName": "", "victimStunned": 1},
        {"hard": {"count": 5, "comparison": "atmost", "pieceType": "P"}},
    )
    assert cond.resolve("hard") == KillCountParams(count=5, comparison="atmost", piece_type="P", victim_stunned=True)
    assert cond.resolve("medium") == KillCountParams(count=3, victim_stunned=True)
