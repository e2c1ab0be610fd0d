# estimation_engine/__init__.py
from .rules import (
    IncompleteRoundError,
    RoundScores,
    compute_round_scores,
    cumulative_scores,
    score_player,
)
from .session import InvalidTransitionError
from .state import GameMode, GameState, RoundState, RoundStatus, Suit

__all__ = [
    "GameMode",
    "GameState",
    "IncompleteRoundError",
    "InvalidTransitionError",
    "RoundScores",
    "RoundState",
    "RoundStatus",
    "Suit",
    "compute_round_scores",
    "cumulative_scores",
    "score_player",
]
