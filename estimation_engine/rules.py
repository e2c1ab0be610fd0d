# estimation_engine/rules.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .state import NUM_PLAYERS, TOTAL_TRICKS, GameMode, GameState, RoundState, Suit

logger = logging.getLogger(__name__)

Score = Union[int, float]

HIGH_BID_MIN = 8
MAX_BID = TOTAL_TRICKS
MANDATORY_SUIT_ROUNDS = range(14, 19)

# Classic mode fixes the caller's suit in the last five rounds.
MANDATORY_SUITS = {
    14: Suit.SUNS,
    15: Suit.SPADES,
    16: Suit.HEARTS,
    17: Suit.DIAMONDS,
    18: Suit.CLUBS,
}

MADE_BONUS = 10
CALLER_BONUS = 10
WITH_BONUS = 10
ONLY_WINNER_BONUS = 10
ONLY_LOSER_PENALTY = 10
RISK_BONUS = 10
DASH_POINTS = 30
POSITIVE_DASH_POINTS = 25


class IncompleteRoundError(ValueError):
    """Raised when a round is scored before every bid and result is entered."""

    def __init__(self, round_index: int) -> None:
        super().__init__(
            f"Cannot calculate scores for round {round_index + 1}: "
            "missing calls or results"
        )
        self.round_index = round_index


@dataclass(frozen=True)
class RoundScores:
    scores: List[Score]
    is_winner: List[bool]


def score_player(
    bid: int,
    result: int,
    is_dash: bool,
    is_positive_dash: bool,
    is_caller: bool,
    is_risk: bool,
    is_only_winner: bool,
    is_only_loser: bool,
    is_with: bool = False,
    risk_multiplier: int = 0,
) -> Score:
    """
    Score one player for one round.

    Tiers are checked in order and the first match decides which bonuses can
    apply:

    - Dash (bid 0): +/-30, or +/-25 in a positive dash round. Nothing else.
    - High bid (8-13): bid**2 if made, -(bid**2)/2 if missed, then only the
      only-winner / only-loser adjustment.
    - Low bid (1-7): +10 and +result if made, -|bid - result| if missed, then
      caller, with, only-winner/loser and risk bonuses accumulate.
    """
    made = bid == result

    if is_dash:
        points = POSITIVE_DASH_POINTS if is_positive_dash else DASH_POINTS
        return points if made else -points

    if HIGH_BID_MIN <= bid <= MAX_BID:
        if made:
            score: Score = bid * bid
        else:
            half, odd = divmod(bid * bid, 2)
            # Odd squares keep their half point.
            score = -(half + 0.5) if odd else -half
        if is_only_winner:
            score += ONLY_WINNER_BONUS
        if is_only_loser:
            score -= ONLY_LOSER_PENALTY
        return score

    score = 0
    if made:
        score += MADE_BONUS
        score += result
    else:
        score -= abs(bid - result)

    if is_caller:
        score += CALLER_BONUS if made else -CALLER_BONUS
    if is_with:
        score += WITH_BONUS if made else -WITH_BONUS

    if is_only_winner:
        score += ONLY_WINNER_BONUS
    if is_only_loser:
        score -= ONLY_LOSER_PENALTY

    if is_risk and risk_multiplier > 0:
        risk_bonus = RISK_BONUS * risk_multiplier
        score += risk_bonus if made else -risk_bonus

    return score


def risk_multiplier_for(round_difference: Optional[int]) -> int:
    """Map |sum(calls) - 13| to the risk tier: 2-3 -> 1, 4-5 -> 2, 6-7 -> 3, 8+ -> 4."""
    if round_difference is None:
        return 0
    diff = abs(round_difference)
    if diff >= 8:
        return 4
    if diff >= 6:
        return 3
    if diff >= 4:
        return 2
    if diff >= 2:
        return 1
    return 0


def is_mandatory_suit_round(mode: GameMode, round_index: int) -> bool:
    return mode == GameMode.CLASSIC and (round_index + 1) in MANDATORY_SUIT_ROUNDS


def mandatory_suit_for_round(mode: GameMode, round_index: int) -> Optional[Suit]:
    if not is_mandatory_suit_round(mode, round_index):
        return None
    return MANDATORY_SUITS[round_index + 1]


def caller_index(game: GameState, round_index: int) -> int:
    """Seat of the round's caller, or -1 if nobody has called yet."""
    for idx, flag in enumerate(game.round(round_index).is_caller):
        if flag:
            return idx
    return -1


def is_with_player(round_state: RoundState, player_index: int, caller_idx: int) -> bool:
    """A non-caller, non-dash player who bid the same number as the caller."""
    if caller_idx == -1 or player_index == caller_idx:
        return False
    if round_state.is_dash_call[player_index]:
        return False
    caller_bid = round_state.calls[caller_idx]
    return caller_bid is not None and round_state.calls[player_index] == caller_bid


def with_count(game: GameState, round_index: int) -> int:
    round_state = game.round(round_index)
    caller_idx = caller_index(game, round_index)
    return sum(
        1
        for pid in range(NUM_PLAYERS)
        if is_with_player(round_state, pid, caller_idx)
    )


def everyone_lost_streak(everyone_lost: Sequence[bool], round_index: int) -> int:
    """Count consecutive everyone-lost rounds immediately before `round_index`."""
    streak = 0
    i = round_index - 1
    while i >= 0 and i < len(everyone_lost):
        if not everyone_lost[i]:
            break
        streak += 1
        i -= 1
    return streak


def doubling_multiplier(game: GameState, round_index: int) -> int:
    """
    Score multiplier for a round.

    Doubles once when the current caller has two or more "with" players, and
    once more for each immediately preceding everyone-lost round. Only the
    everyone-lost history chains backward.
    """
    multiplier = 1
    if caller_index(game, round_index) != -1 and with_count(game, round_index) >= 2:
        multiplier *= 2
    multiplier *= 2 ** everyone_lost_streak(game.everyone_lost, round_index)
    return multiplier


def risk_player_index(game: GameState, round_index: int) -> int:
    """
    Seat of the player exposed to the risk bonus, or -1.

    Mandatory-suit rounds use the manually flagged player only. Otherwise the
    search starts furthest from the caller (offset 3, then 2, then 1) and
    skips dash calls.
    """
    round_state = game.round(round_index)

    if is_mandatory_suit_round(game.mode, round_index):
        for idx, flag in enumerate(round_state.manual_risk):
            if flag:
                return idx
        return -1

    caller_idx = caller_index(game, round_index)
    if caller_idx == -1:
        return -1
    for offset in range(3, 0, -1):
        candidate = (caller_idx + offset) % NUM_PLAYERS
        if not round_state.is_dash_call[candidate]:
            return candidate
    return -1


def compute_round_scores(game: GameState, round_index: int) -> RoundScores:
    """
    Score every player for a completed round.

    Raises IncompleteRoundError if any call or result of the round is unset.
    The game snapshot is only read.
    """
    round_state = game.round(round_index)
    if not round_state.all_called or not round_state.all_results:
        raise IncompleteRoundError(round_index)

    calls: List[int] = list(round_state.calls)  # type: ignore[arg-type]
    results: List[int] = list(round_state.results)  # type: ignore[arg-type]

    multiplier = doubling_multiplier(game, round_index)

    total_calls = sum(calls)
    is_positive_dash = total_calls > TOTAL_TRICKS
    difference = round_state.round_difference
    is_risk = difference is not None and abs(difference) >= 2
    risk_multiplier = risk_multiplier_for(difference)
    risk_idx = risk_player_index(game, round_index)
    caller_idx = caller_index(game, round_index)

    winners = [call == res for call, res in zip(calls, results)]
    winners_count = sum(winners)
    is_only_winner = winners_count == 1
    is_only_loser = NUM_PLAYERS - winners_count == 1

    logger.debug(
        "Round %d: caller=%d risk_player=%d risk_tier=%d multiplier=%d "
        "positive_dash=%s winners=%d",
        round_index + 1,
        caller_idx,
        risk_idx,
        risk_multiplier,
        multiplier,
        is_positive_dash,
        winners_count,
    )

    scores: List[Score] = []
    for pid in range(NUM_PLAYERS):
        made = winners[pid]
        base = score_player(
            bid=calls[pid],
            result=results[pid],
            is_dash=calls[pid] == 0,
            is_positive_dash=is_positive_dash,
            is_caller=round_state.is_caller[pid],
            is_risk=is_risk and pid == risk_idx,
            is_only_winner=is_only_winner and made,
            is_only_loser=is_only_loser and not made,
            is_with=is_with_player(round_state, pid, caller_idx),
            risk_multiplier=risk_multiplier,
        )
        scores.append(base * multiplier)

    return RoundScores(scores=scores, is_winner=winners)


def cumulative_scores(
    score_rows: Sequence[Sequence[Score]],
    up_to_round: int,
) -> List[Score]:
    """Sum per-round score rows for rounds [0, up_to_round)."""
    totals: List[Score] = [0] * NUM_PLAYERS
    for row in score_rows[:max(up_to_round, 0)]:
        if not row:
            continue
        for pid in range(NUM_PLAYERS):
            totals[pid] += row[pid]
    return totals
