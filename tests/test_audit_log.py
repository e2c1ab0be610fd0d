# tests/test_audit_log.py
from estimation_engine import session
from estimation_engine.audit_log import RoundAuditLogger
from estimation_engine.game_log import build_round_score_rows
from estimation_engine.state import GameMode, Suit


def _voided_doubled_round():
    # caller with two "with" players, then voided while being played
    game = session.new_game(GameMode.MINI, game_id="voided")
    for pid, call in enumerate([5, 5, 5]):
        game = session.update_call(game, 0, pid, call)
    game = session.set_dash_call(game, 0, 3)
    game = session.set_caller(game, 0, 0, Suit.HEARTS)
    game = session.start_playing_round(game, 0)
    return session.mark_everyone_lost(game, 0)


def test_voided_round_multiplier_matches_score_sheet(tmp_path):
    game = _voided_doubled_round()
    audit = RoundAuditLogger(tmp_path / "audit.txt")
    audit.log_round(game, 0)
    audit.flush()

    text = (tmp_path / "audit.txt").read_text(encoding="utf-8")
    assert "Everyone lost: scores voided" in text
    assert "Multiplier: x1" in text
    assert {row["multiplier"] for row in build_round_score_rows(game)} == {1}


def test_round_after_voided_round_reports_streak(tmp_path):
    game = _voided_doubled_round()
    game = session.update_call(game, 1, 0, 6)
    audit = RoundAuditLogger(tmp_path / "audit.txt")
    audit.log_round(game, 1, totals=[0, 0, 0, 0])
    audit.flush()

    text = (tmp_path / "audit.txt").read_text(encoding="utf-8")
    assert "=== Game: voided | Round: 2 | Mode: mini ===" in text
    assert "Multiplier: x2 (everyone-lost streak 1)" in text
    assert "Totals: 0, 0, 0, 0" in text
    assert "Scores:" not in text
