# estimation_engine/audit_log.py
from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import List, Optional, Sequence

from .rules import (
    Score,
    caller_index,
    doubling_multiplier,
    everyone_lost_streak,
    is_mandatory_suit_round,
    risk_multiplier_for,
    risk_player_index,
    with_count,
)
from .state import GameState, RoundStatus


class RoundAuditLogger:
    """Accumulates a readable account of how each round was scored."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._entries: List[str] = []
        self._lock = Lock()

    def log_round(
        self,
        game: GameState,
        round_index: int,
        *,
        totals: Optional[Sequence[Score]] = None,
    ) -> None:
        round_state = game.round(round_index)
        header_parts = [f"Round: {round_index + 1}", f"Mode: {game.mode.value}"]
        if game.game_id is not None:
            header_parts.insert(0, f"Game: {game.game_id}")
        header = " | ".join(header_parts)

        lines = [f"=== {header} ===", f"Status: {round_state.status.value}"]

        if round_state.everyone_lost:
            lines.append("Everyone lost: scores voided")
        else:
            caller_idx = caller_index(game, round_index)
            diff = round_state.round_difference
            lines.extend(
                [
                    "Calls: " + _fmt(round_state.calls, round_state.is_dash_call),
                    "Results: " + _fmt(round_state.results),
                    "Caller: "
                    + (game.players[caller_idx] if caller_idx != -1 else "<none>"),
                    f"With players: {with_count(game, round_index)}",
                    f"Round difference: {diff if diff is not None else '<unset>'}",
                    f"Risk tier: {risk_multiplier_for(diff)}",
                ]
            )
            risk_idx = risk_player_index(game, round_index)
            source = (
                "manual" if is_mandatory_suit_round(game.mode, round_index) else "auto"
            )
            lines.append(
                f"Risk player ({source}): "
                + (game.players[risk_idx] if risk_idx != -1 else "<none>")
            )

        # Voided rounds are never multiplied.
        streak = everyone_lost_streak(game.everyone_lost, round_index)
        multiplier = (
            1 if round_state.everyone_lost
            else doubling_multiplier(game, round_index)
        )
        lines.append(
            f"Multiplier: x{multiplier}"
            + (f" (everyone-lost streak {streak})" if streak and multiplier > 1 else "")
        )
        if round_state.status == RoundStatus.FINISHED:
            lines.append("Scores: " + _fmt(round_state.scores))
        if totals is not None:
            lines.append("Totals: " + _fmt(totals))

        entry = "\n".join(lines).strip()
        with self._lock:
            self._entries.append(entry)

    def flush(self) -> None:
        with self._lock:
            if not self._entries:
                return
            to_write = "\n\n".join(self._entries)
            self._entries.clear()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(to_write, encoding="utf-8")


def _fmt(values: Sequence[object], dash_flags: Optional[Sequence[bool]] = None) -> str:
    parts = []
    for i, value in enumerate(values):
        text = "-" if value is None else str(value)
        if dash_flags is not None and dash_flags[i]:
            text += " (DC)"
        parts.append(text)
    return ", ".join(parts)
