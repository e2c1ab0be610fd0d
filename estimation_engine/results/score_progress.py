# estimation_engine/results/score_progress.py
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

# Columns written by game_log.write_round_scores_csv that the analysis needs.
REQUIRED_COLUMNS = [
    "game_id",
    "round_number",
    "player_name",
    "bid",
    "result",
    "round_delta",
    "total_score",
]


def load_score_rows(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(path)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {', '.join(missing)}")
    return df


def cumulative_table(df: pd.DataFrame) -> pd.DataFrame:
    """
    Running totals per round, one column per player.

    With several games in the frame the totals are averaged across games.
    """
    table = df.pivot_table(
        index="round_number",
        columns="player_name",
        values="total_score",
        aggfunc="mean",
    )
    return table.sort_index()


def bid_accuracy(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-player hit rate and mean absolute miss over played rounds.

    Everyone-lost rounds carry no results and are left out.
    """
    played = df.dropna(subset=["bid", "result"]).copy()
    played["miss"] = (played["result"] - played["bid"]).abs()
    played["made"] = played["miss"] == 0

    stats = (
        played.groupby("player_name")
        .agg(
            rounds=("made", "size"),
            hit_rate=("made", "mean"),
            mean_abs_miss=("miss", "mean"),
            points=("round_delta", "sum"),
        )
        .sort_values("points", ascending=False)
    )
    return stats


def plot_score_progress(
    df: pd.DataFrame,
    output: Optional[str | Path] = None,
):
    """Line chart of running totals per player; saved to `output` when given."""
    table = cumulative_table(df)
    if table.empty:
        raise ValueError("No finished rounds to plot")

    fig, ax = plt.subplots(figsize=(10, 6))
    for player in table.columns:
        ax.plot(table.index, table[player], marker="o", label=player)
    ax.axhline(0, linestyle="--", color="grey", linewidth=0.8)

    # One tick per round keeps the short modes readable.
    ax.set_xticks(np.arange(table.index.min(), table.index.max() + 1))
    ax.set_xlabel("Round")
    ax.set_ylabel("Total score")
    ax.set_title("Running score per player")
    ax.grid(True, axis="y", linestyle=":", alpha=0.5)
    ax.legend()
    fig.tight_layout()

    if output is not None:
        fig.savefig(output, dpi=150)
    return fig


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Summarize an exported Estimation score sheet."
    )
    parser.add_argument("csv", help="Score sheet written by estimation_engine.cli")
    parser.add_argument("--plot", default=None, help="Optional PNG output path.")
    args = parser.parse_args(argv)

    df = load_score_rows(args.csv)
    print(cumulative_table(df).to_string())
    print()
    print(bid_accuracy(df).to_string(float_format=lambda v: f"{v:.2f}"))
    if args.plot:
        plot_score_progress(df, output=args.plot)
        plt.close("all")


if __name__ == "__main__":
    main()
