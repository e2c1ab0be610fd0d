# estimation_engine/session.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .rules import (
    HIGH_BID_MIN,
    MAX_BID,
    IncompleteRoundError,
    Score,
    compute_round_scores,
    cumulative_scores,
    is_mandatory_suit_round,
    mandatory_suit_for_round,
)
from .state import (
    DEFAULT_PLAYER_NAMES,
    NUM_PLAYERS,
    ROUNDS_BY_MODE,
    TOTAL_TRICKS,
    GameMode,
    GameState,
    RoundState,
    RoundStatus,
    Suit,
    replace_at,
)

logger = logging.getLogger(__name__)

MIN_CALLER_BID = 4
MAX_DASH_CALLS = 2


class InvalidTransitionError(ValueError):
    """Raised when a round is moved to a status its data does not allow."""

    def __init__(self, round_index: int, problems: Sequence[str]) -> None:
        message = f"Round {round_index + 1}: " + "; ".join(problems)
        super().__init__(message)
        self.round_index = round_index
        self.problems = list(problems)


def _check_player(player_index: int) -> None:
    if not 0 <= player_index < NUM_PLAYERS:
        raise ValueError(
            f"player_index must be between 0 and {NUM_PLAYERS - 1}, got {player_index}"
        )


def _check_tricks(value: int, what: str) -> None:
    if not isinstance(value, int) or not 0 <= value <= MAX_BID:
        raise ValueError(f"{what} must be an integer between 0 and {MAX_BID}")


def _editable_round(game: GameState, round_index: int) -> RoundState:
    """Round that may still change; a finished round has to be undone first."""
    r = game.round(round_index)
    if r.status == RoundStatus.FINISHED:
        raise InvalidTransitionError(
            round_index, ["round is finished; undo it before editing"]
        )
    return r


# --------------------------------------------------------------------------- #
# Game lifecycle                                                              #
# --------------------------------------------------------------------------- #


def new_game(
    mode: GameMode = GameMode.CLASSIC,
    players: Optional[Sequence[str]] = None,
    game_id: Optional[str] = None,
) -> GameState:
    """Create an empty score sheet with one pristine row per round of `mode`."""
    if players is None:
        players = DEFAULT_PLAYER_NAMES
    if len(players) != NUM_PLAYERS:
        raise ValueError(f"Estimation needs exactly {NUM_PLAYERS} players")
    if game_id is None:
        game_id = datetime.now().isoformat()

    rounds = tuple(RoundState() for _ in range(ROUNDS_BY_MODE[mode]))
    return GameState(mode=mode, rounds=rounds, players=tuple(players), game_id=game_id)


def add_extra_round(game: GameState) -> GameState:
    """Append one blank round (a replayed, doubled round at the end)."""
    return replace(game, rounds=game.rounds + (RoundState(),))


def update_player_name(game: GameState, player_index: int, name: str) -> GameState:
    _check_player(player_index)
    name = name.strip() or f"Player {player_index + 1}"
    return replace(game, players=replace_at(game.players, player_index, name))


# --------------------------------------------------------------------------- #
# Bidding                                                                     #
# --------------------------------------------------------------------------- #


def update_call(game: GameState, round_index: int, player_index: int, call: int) -> GameState:
    """Set a bid. A manually entered bid is never a dash call."""
    _check_player(player_index)
    _check_tricks(call, "call")
    r = _editable_round(game, round_index)
    r = replace(
        r,
        calls=replace_at(r.calls, player_index, call),
        is_dash_call=replace_at(r.is_dash_call, player_index, False),
    )
    return game.with_round(round_index, r)


def set_dash_call(game: GameState, round_index: int, player_index: int) -> GameState:
    """Fix the player's bid at 0 as a dash call; a dash call cannot be the caller."""
    _check_player(player_index)
    r = _editable_round(game, round_index)
    r = replace(
        r,
        calls=replace_at(r.calls, player_index, 0),
        is_dash_call=replace_at(r.is_dash_call, player_index, True),
        is_caller=replace_at(r.is_caller, player_index, False),
        caller_suits=replace_at(r.caller_suits, player_index, None),
    )
    return game.with_round(round_index, r)


def set_caller(
    game: GameState,
    round_index: int,
    player_index: int,
    suit: Optional[Suit] = None,
) -> GameState:
    """
    Make `player_index` the only caller of the round.

    In mandatory-suit rounds a caller below a high bid plays the round's
    fixed suit and keeps their bid. Elsewhere a missing or too-low bid is
    raised to MIN_CALLER_BID.
    """
    _check_player(player_index)
    r = _editable_round(game, round_index)
    bid = r.calls[player_index]

    mandatory = mandatory_suit_for_round(game.mode, round_index)
    if mandatory is not None:
        if bid is None or bid < HIGH_BID_MIN:
            suit = mandatory
    elif bid is None or bid < MIN_CALLER_BID:
        r = replace(r, calls=replace_at(r.calls, player_index, MIN_CALLER_BID))

    if suit is None:
        raise ValueError("suit is required for the caller")

    r = replace(
        r,
        is_caller=tuple(pid == player_index for pid in range(NUM_PLAYERS)),
        caller_suits=tuple(
            suit if pid == player_index else None for pid in range(NUM_PLAYERS)
        ),
        is_dash_call=replace_at(r.is_dash_call, player_index, False),
    )
    return game.with_round(round_index, r)


def set_manual_risk(game: GameState, round_index: int, player_index: Optional[int]) -> GameState:
    """Designate (or clear, with None) the at-risk player of a mandatory-suit round."""
    if not is_mandatory_suit_round(game.mode, round_index):
        raise ValueError(
            f"Round {round_index + 1} is not a mandatory-suit round; "
            "its risk player is derived from the caller"
        )
    if player_index is not None:
        _check_player(player_index)
    r = _editable_round(game, round_index)
    r = replace(
        r, manual_risk=tuple(pid == player_index for pid in range(NUM_PLAYERS))
    )
    return game.with_round(round_index, r)


def bidding_problems(game: GameState, round_index: int) -> List[str]:
    """Reasons the round cannot move from bidding to playing (empty if it can)."""
    r = game.round(round_index)
    if not r.all_called:
        return ["not every player has called"]

    problems: List[str] = []
    calls: List[int] = list(r.calls)  # type: ignore[arg-type]
    if sum(calls) == TOTAL_TRICKS:
        problems.append(f"total calls must not equal {TOTAL_TRICKS}")

    callers = [pid for pid, flag in enumerate(r.is_caller) if flag]
    if not callers:
        problems.append("no caller selected")
    elif calls[callers[0]] < max(calls):
        problems.append("the caller must hold the highest call")

    if sum(r.is_dash_call) > MAX_DASH_CALLS:
        problems.append(f"at most {MAX_DASH_CALLS} dash calls are allowed")
    return problems


def start_playing_round(game: GameState, round_index: int) -> GameState:
    """Lock the bids in, record the round difference and start play."""
    r = game.round(round_index)
    if r.status != RoundStatus.PREPARING:
        raise InvalidTransitionError(round_index, [f"round is {r.status.value}"])
    problems = bidding_problems(game, round_index)
    if problems:
        raise InvalidTransitionError(round_index, problems)

    difference = sum(r.calls) - TOTAL_TRICKS  # type: ignore[arg-type]
    r = replace(r, round_difference=difference, status=RoundStatus.PLAYING)
    logger.info("Round %d playing (difference %+d)", round_index + 1, difference)
    return game.with_round(round_index, r)


# --------------------------------------------------------------------------- #
# Results                                                                     #
# --------------------------------------------------------------------------- #


def update_result(game: GameState, round_index: int, player_index: int, result: int) -> GameState:
    _check_player(player_index)
    _check_tricks(result, "result")
    r = _editable_round(game, round_index)
    r = replace(r, results=replace_at(r.results, player_index, result))
    return game.with_round(round_index, r)


def results_problems(game: GameState, round_index: int) -> List[str]:
    r = game.round(round_index)
    if not r.all_results:
        return ["not every result has been entered"]
    total = sum(r.results)  # type: ignore[arg-type]
    if total != TOTAL_TRICKS:
        return [f"results add up to {total}, expected {TOTAL_TRICKS}"]
    return []


def finalize_round(game: GameState, round_index: int) -> GameState:
    """
    Score a round that is being played and mark it finished.

    Missing calls or results leave the game untouched; the failure is logged
    rather than raised, since the finalize action should not have been
    reachable.
    """
    r = game.round(round_index)
    if r.status != RoundStatus.PLAYING:
        raise InvalidTransitionError(round_index, [f"round is {r.status.value}"])

    try:
        outcome = compute_round_scores(game, round_index)
    except IncompleteRoundError as exc:
        logger.error("Cannot finalize round: %s", exc)
        return game

    problems = results_problems(game, round_index)
    if problems:
        raise InvalidTransitionError(round_index, problems)

    r = replace(
        r,
        scores=tuple(outcome.scores),
        is_winner=tuple(outcome.is_winner),
        status=RoundStatus.FINISHED,
    )
    logger.info("Round %d finished: %s", round_index + 1, list(outcome.scores))
    return game.with_round(round_index, r)


def mark_everyone_lost(game: GameState, round_index: int) -> GameState:
    """Void a round: zero scores, no winners, and double the next round."""
    r = replace(
        _editable_round(game, round_index),
        scores=(0,) * NUM_PLAYERS,
        is_winner=(False,) * NUM_PLAYERS,
        everyone_lost=True,
        status=RoundStatus.FINISHED,
    )
    logger.info("Round %d marked as everyone lost", round_index + 1)
    return game.with_round(round_index, r)


def undo_round(game: GameState, round_index: int) -> GameState:
    """Reset `round_index` and every later round as if never played."""
    game.round(round_index)
    rounds = game.rounds[:round_index] + tuple(
        RoundState() for _ in game.rounds[round_index:]
    )
    logger.info(
        "Undid rounds %d..%d", round_index + 1, len(game.rounds)
    )
    return replace(game, rounds=rounds)


def recompute_scores(game: GameState) -> GameState:
    """Rescore every finished round in order, e.g. after loading a saved game."""
    for idx, r in enumerate(game.rounds):
        if r.status != RoundStatus.FINISHED or r.everyone_lost:
            continue
        outcome = compute_round_scores(game, idx)
        game = game.with_round(
            idx,
            replace(r, scores=tuple(outcome.scores), is_winner=tuple(outcome.is_winner)),
        )
    return game


# --------------------------------------------------------------------------- #
# Standings                                                                   #
# --------------------------------------------------------------------------- #


def current_round_index(game: GameState) -> Optional[int]:
    """First round that is not finished, or None once the game is over."""
    for idx, r in enumerate(game.rounds):
        if r.status != RoundStatus.FINISHED:
            return idx
    return None


def totals(game: GameState) -> List[Score]:
    return cumulative_scores(game.score_rows, game.num_rounds)


def rankings(game: GameState) -> List[Tuple[int, str, Score]]:
    """(player_index, name, total) ordered by total, highest first."""
    standing = [
        (pid, game.players[pid], total) for pid, total in enumerate(totals(game))
    ]
    return sorted(standing, key=lambda item: -item[2])
