# tests/conftest.py
import pytest

from estimation_engine import session
from estimation_engine.state import GameMode, Suit


def play_round(game, round_index, calls, results, caller=0, dash=()):
    for pid, call in enumerate(calls):
        if pid in dash:
            game = session.set_dash_call(game, round_index, pid)
        else:
            game = session.update_call(game, round_index, pid, call)
    game = session.set_caller(game, round_index, caller, Suit.HEARTS)
    game = session.start_playing_round(game, round_index)
    for pid, result in enumerate(results):
        game = session.update_result(game, round_index, pid, result)
    return session.finalize_round(game, round_index)


@pytest.fixture
def sample_game():
    """
    Three finished rounds of a mini game:

    1. caller plus risk on the last seat, who is the only one to miss
    2. everyone lost
    3. caller with two "with" players and a dash call, doubled twice
    """
    game = session.new_game(
        GameMode.MINI, players=["Ali", "Mona", "Sara", "Omar"], game_id="sample"
    )
    game = play_round(game, 0, [5, 4, 3, 3], [5, 4, 3, 1])
    game = session.mark_everyone_lost(game, 1)
    game = play_round(game, 2, [5, 5, 5, 0], [5, 5, 3, 0], dash=(3,))
    return game
