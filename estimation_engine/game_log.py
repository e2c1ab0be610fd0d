# estimation_engine/game_log.py
from __future__ import annotations

import csv
from typing import Any, Dict, List, Optional

from .rules import (
    caller_index,
    doubling_multiplier,
    is_with_player,
    risk_player_index,
)
from .state import GameState, RoundStatus

FIELDNAMES = [
    "game_id",
    "round_index",
    "round_number",
    "mode",
    "player_index",
    "player_name",
    "bid",
    "result",
    "is_caller",
    "is_dash_call",
    "is_with",
    "is_risk",
    "everyone_lost",
    "multiplier",
    "round_delta",
    "total_score",
    "caller_suit",
]


def build_round_score_rows(
    game_state: GameState,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Build a list of rows summarizing per-round scores for CSV export.

    Each row corresponds to (round, player) and has keys in FIELDNAMES. Rounds
    that are not finished are skipped so games in progress can still be
    exported. Stored scores are used as-is; nothing is rescored here.
    """
    if game_id is None:
        game_id = game_state.game_id
    running_scores = [0] * game_state.num_players
    rows: List[Dict[str, Any]] = []

    for round_index, round_state in enumerate(game_state.rounds):
        if round_state.status != RoundStatus.FINISHED:
            continue

        caller_idx = caller_index(game_state, round_index)
        risk_idx = (
            risk_player_index(game_state, round_index)
            if round_state.round_difference is not None
            and abs(round_state.round_difference) >= 2
            else -1
        )
        multiplier = (
            1 if round_state.everyone_lost
            else doubling_multiplier(game_state, round_index)
        )
        suit = next((s for s in round_state.caller_suits if s is not None), None)

        for pid, name in enumerate(game_state.players):
            running_scores[pid] += round_state.scores[pid]
            rows.append(
                {
                    "game_id": game_id,
                    "round_index": round_index,
                    "round_number": round_index + 1,
                    "mode": game_state.mode.value,
                    "player_index": pid,
                    "player_name": name,
                    "bid": round_state.calls[pid],
                    "result": round_state.results[pid],
                    "is_caller": round_state.is_caller[pid],
                    "is_dash_call": round_state.is_dash_call[pid],
                    "is_with": is_with_player(round_state, pid, caller_idx),
                    "is_risk": pid == risk_idx,
                    "everyone_lost": round_state.everyone_lost,
                    "multiplier": multiplier,
                    "round_delta": round_state.scores[pid],
                    "total_score": running_scores[pid],
                    "caller_suit": suit.value if suit is not None else None,
                }
            )

    return rows


def write_round_scores_csv(
    game_state: GameState,
    path,
    game_id: Optional[str] = None,
) -> None:
    """
    Write per-round scores to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    rows = build_round_score_rows(game_state, game_id=game_id)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in FIELDNAMES})
