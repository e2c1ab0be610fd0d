# estimation_engine/state.py
from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

NUM_PLAYERS = 4
TOTAL_TRICKS = 13

DEFAULT_PLAYER_NAMES: Tuple[str, ...] = tuple(
    f"Player {i + 1}" for i in range(NUM_PLAYERS)
)


class GameMode(enum.Enum):
    CLASSIC = "classic"
    MINI = "mini"
    MICRO = "micro"


ROUNDS_BY_MODE: Dict[GameMode, int] = {
    GameMode.CLASSIC: 18,
    GameMode.MINI: 10,
    GameMode.MICRO: 5,
}


class Suit(enum.Enum):
    """Suit named by the caller. Suns is no-trump and ranks highest."""

    SUNS = "suns"
    SPADES = "spades"
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"


class RoundStatus(enum.Enum):
    PREPARING = "preparing"
    PLAYING = "playing"
    FINISHED = "finished"


def _blank(value: Any) -> Tuple[Any, ...]:
    return (value,) * NUM_PLAYERS


@dataclass(frozen=True)
class RoundState:
    """
    One row of the score sheet.

    `calls` and `results` use None for "not entered yet"; a dash call keeps a
    bid of 0 together with its `is_dash_call` flag so it never collapses into
    an unset value.
    """

    calls: Tuple[Optional[int], ...] = field(default_factory=lambda: _blank(None))
    results: Tuple[Optional[int], ...] = field(default_factory=lambda: _blank(None))
    scores: Tuple[float, ...] = field(default_factory=lambda: _blank(0))
    is_winner: Tuple[bool, ...] = field(default_factory=lambda: _blank(False))
    is_caller: Tuple[bool, ...] = field(default_factory=lambda: _blank(False))
    is_dash_call: Tuple[bool, ...] = field(default_factory=lambda: _blank(False))
    manual_risk: Tuple[bool, ...] = field(default_factory=lambda: _blank(False))
    caller_suits: Tuple[Optional[Suit], ...] = field(
        default_factory=lambda: _blank(None)
    )
    round_difference: Optional[int] = None
    everyone_lost: bool = False
    status: RoundStatus = RoundStatus.PREPARING

    @property
    def all_called(self) -> bool:
        return all(c is not None for c in self.calls)

    @property
    def all_results(self) -> bool:
        return all(r is not None for r in self.results)


@dataclass(frozen=True)
class GameState:
    mode: GameMode
    rounds: Tuple[RoundState, ...]
    players: Tuple[str, ...] = DEFAULT_PLAYER_NAMES
    game_id: Optional[str] = None

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def num_rounds(self) -> int:
        return len(self.rounds)

    @property
    def everyone_lost(self) -> Tuple[bool, ...]:
        return tuple(r.everyone_lost for r in self.rounds)

    @property
    def score_rows(self) -> List[Tuple[float, ...]]:
        return [r.scores for r in self.rounds]

    def round(self, round_index: int) -> RoundState:
        if not 0 <= round_index < len(self.rounds):
            raise ValueError(
                f"round_index {round_index} out of range 0..{len(self.rounds) - 1}"
            )
        return self.rounds[round_index]

    def with_round(self, round_index: int, round_state: RoundState) -> "GameState":
        """Return a copy of the game with one round replaced."""
        self.round(round_index)
        rounds = list(self.rounds)
        rounds[round_index] = round_state
        return replace(self, rounds=tuple(rounds))


def replace_at(values: Sequence[Any], index: int, value: Any) -> Tuple[Any, ...]:
    """Copy `values` as a tuple with position `index` set to `value`."""
    out = list(values)
    out[index] = value
    return tuple(out)


# --------------------------------------------------------------------------- #
# JSON-compatible conversion                                                  #
# --------------------------------------------------------------------------- #


def game_to_dict(game: GameState) -> Dict[str, Any]:
    """Convert a GameState to a JSON-serializable dict."""
    return {
        "id": game.game_id,
        "players": list(game.players),
        "mode": game.mode.value,
        "calls": [list(r.calls) for r in game.rounds],
        "results": [list(r.results) for r in game.rounds],
        "scores": [list(r.scores) for r in game.rounds],
        "isWinner": [list(r.is_winner) for r in game.rounds],
        "isCaller": [list(r.is_caller) for r in game.rounds],
        "isDashCall": [list(r.is_dash_call) for r in game.rounds],
        "manualRisk": [list(r.manual_risk) for r in game.rounds],
        "callerSuits": [
            [s.value if s is not None else None for s in r.caller_suits]
            for r in game.rounds
        ],
        "everyoneLost": [r.everyone_lost for r in game.rounds],
        "roundDifferences": [r.round_difference for r in game.rounds],
        "statuses": [[r.status.value] * NUM_PLAYERS for r in game.rounds],
    }


def _row(data: Dict[str, Any], key: str, index: int, default: Any) -> Tuple[Any, ...]:
    rows = data.get(key) or []
    if index >= len(rows) or rows[index] is None:
        return _blank(default)
    row = tuple(rows[index])
    if len(row) != NUM_PLAYERS:
        raise ValueError(
            f"{key}[{index}] must have {NUM_PLAYERS} entries, got {len(row)}"
        )
    return row


def _status(data: Dict[str, Any], index: int) -> RoundStatus:
    statuses = data.get("statuses") or []
    if index >= len(statuses):
        return RoundStatus.PREPARING
    raw = statuses[index]
    # Stored per player; every entry of a round carries the same value.
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else RoundStatus.PREPARING.value
    return RoundStatus(raw)


def game_from_dict(data: Dict[str, Any]) -> GameState:
    """
    Build a GameState from a dict produced by `game_to_dict` (or the mobile
    app's stored game format).

    Optional arrays (dash calls, manual risk, suits, everyone-lost) default to
    all-false / None when absent.
    """
    mode = GameMode(data.get("mode", GameMode.CLASSIC.value))
    num_rounds = len(data.get("calls") or []) or ROUNDS_BY_MODE[mode]

    everyone_lost = list(data.get("everyoneLost") or [])
    differences = list(data.get("roundDifferences") or [])

    rounds: List[RoundState] = []
    for i in range(num_rounds):
        suits = tuple(
            Suit(s) if s is not None else None
            for s in _row(data, "callerSuits", i, None)
        )
        rounds.append(
            RoundState(
                calls=_row(data, "calls", i, None),
                results=_row(data, "results", i, None),
                scores=_row(data, "scores", i, 0),
                is_winner=tuple(bool(v) for v in _row(data, "isWinner", i, False)),
                is_caller=tuple(bool(v) for v in _row(data, "isCaller", i, False)),
                is_dash_call=tuple(
                    bool(v) for v in _row(data, "isDashCall", i, False)
                ),
                manual_risk=tuple(
                    bool(v) for v in _row(data, "manualRisk", i, False)
                ),
                caller_suits=suits,
                round_difference=differences[i] if i < len(differences) else None,
                everyone_lost=bool(everyone_lost[i]) if i < len(everyone_lost) else False,
                status=_status(data, i),
            )
        )

    players = tuple(data.get("players") or DEFAULT_PLAYER_NAMES)
    if len(players) != NUM_PLAYERS:
        raise ValueError(f"Estimation needs exactly {NUM_PLAYERS} players")

    return GameState(
        mode=mode,
        rounds=tuple(rounds),
        players=players,
        game_id=data.get("id"),
    )
