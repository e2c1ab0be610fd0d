# tests/test_state.py
import pytest

from estimation_engine.state import (
    GameMode,
    RoundStatus,
    Suit,
    game_from_dict,
    game_to_dict,
)


def test_sample_game_scores(sample_game):
    assert sample_game.rounds[0].scores == (25, 14, 13, -22)
    assert sample_game.rounds[1].scores == (0, 0, 0, 0)
    assert sample_game.rounds[2].scores == (100, 100, -128, 100)


def test_dict_conversion_keeps_everything(sample_game):
    data = game_to_dict(sample_game)
    assert data["mode"] == "mini"
    assert data["everyoneLost"][:3] == [False, True, False]
    assert data["callerSuits"][0] == ["hearts", None, None, None]
    assert data["statuses"][2] == ["finished"] * 4

    assert game_from_dict(data) == sample_game


def test_app_format_without_optional_arrays():
    data = {
        "id": "2024-05-01T10:00:00.000Z",
        "players": ["A", "B", "C", "D"],
        "mode": "micro",
        "calls": [[4, 4, 3, 3]] + [[None] * 4] * 4,
        "results": [[4, 4, 1, 4]] + [[None] * 4] * 4,
        "scores": [[24, 24, -2, -1]] + [[0] * 4] * 4,
        "isWinner": [[True, True, False, False]] + [[False] * 4] * 4,
        "isCaller": [[True, False, False, False]] + [[False] * 4] * 4,
        "roundDifferences": [1, None, None, None, None],
        "statuses": [["finished"] * 4] + [["preparing"] * 4] * 4,
    }
    game = game_from_dict(data)
    assert game.mode == GameMode.MICRO
    assert game.num_rounds == 5
    assert game.rounds[0].status == RoundStatus.FINISHED
    assert game.rounds[0].is_dash_call == (False,) * 4
    assert game.rounds[0].manual_risk == (False,) * 4
    assert game.rounds[0].caller_suits == (None,) * 4
    assert game.everyone_lost == (False,) * 5


def test_suit_values_round_trip_from_strings():
    assert Suit("suns") is Suit.SUNS


def test_bad_player_or_row_sizes_are_rejected():
    with pytest.raises(ValueError):
        game_from_dict({"mode": "micro", "players": ["A", "B"]})
    with pytest.raises(ValueError):
        game_from_dict({"mode": "micro", "calls": [[1, 2, 3]]})
