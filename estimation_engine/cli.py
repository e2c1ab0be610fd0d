# estimation_engine/cli.py
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from .audit_log import RoundAuditLogger
from .game_log import write_round_scores_csv
from .paths import ensure_results_dir, resolve_results_path
from .rules import IncompleteRoundError, cumulative_scores
from .session import rankings, recompute_scores
from .state import GameState, RoundStatus, game_from_dict

logger = logging.getLogger(__name__)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Score a saved Estimation game and export its per-round score "
            "sheet to a CSV file."
        )
    )

    parser.add_argument(
        "game",
        help="Path to a saved game in JSON form.",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Output CSV path (default: <game id or file stem>_scores.csv).",
    )
    parser.add_argument(
        "--recompute",
        action="store_true",
        help="Rescore every finished round instead of trusting stored scores.",
    )
    parser.add_argument(
        "--audit-log",
        type=str,
        default=None,
        help="Optional path for a round-by-round scoring breakdown.",
    )
    parser.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Optional PNG path for a running-score chart.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: INFO.",
    )

    return parser.parse_args(argv)


def load_game(path: str) -> GameState:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise SystemExit(f"Cannot read game file {path}: {exc}")
    try:
        return game_from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise SystemExit(f"Invalid game file {path}: {exc}")


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    game = load_game(args.game)
    finished = sum(1 for r in game.rounds if r.status == RoundStatus.FINISHED)
    logger.info(
        "Loaded %s game with %d/%d finished rounds",
        game.mode.value,
        finished,
        game.num_rounds,
    )

    if args.recompute:
        try:
            game = recompute_scores(game)
        except IncompleteRoundError as exc:
            raise SystemExit(f"Cannot rescore {args.game}: {exc}")
        logger.info("Rescored %d finished rounds", finished)

    ensure_results_dir()
    stem = (game.game_id or Path(args.game).stem).replace(":", "-")
    csv_path = resolve_results_path(args.csv or f"{stem}_scores.csv")
    write_round_scores_csv(game, csv_path)
    logger.info("Wrote score sheet to %s", csv_path)

    if args.audit_log:
        audit = RoundAuditLogger(resolve_results_path(args.audit_log))
        for idx, r in enumerate(game.rounds):
            if r.status == RoundStatus.PREPARING:
                continue
            audit.log_round(
                game, idx, totals=cumulative_scores(game.score_rows, idx + 1)
            )
        audit.flush()
        logger.info("Wrote audit log to %s", audit.path)

    if args.plot:
        # matplotlib is only needed for charts.
        from .results.score_progress import load_score_rows, plot_score_progress

        plot_path = resolve_results_path(args.plot)
        plot_score_progress(load_score_rows(csv_path), output=plot_path)
        logger.info("Wrote chart to %s", plot_path)

    for place, (_pid, name, total) in enumerate(rankings(game), start=1):
        logger.info("%d. %s: %s", place, name, total)


if __name__ == "__main__":
    main()
