"""Render ranked rows for humans and machines."""

from __future__ import annotations

import csv
import io
import json
from typing import Literal

from tabulate import tabulate

from leaderboard.models import RankInfo

OutputFormat = Literal["table", "markdown", "csv", "json"]

HEADERS = ("Rank", "Player", "Score")


def format_ranks(rows: list[RankInfo], fmt: OutputFormat = "table") -> str:
    """Format ranked rows.

    Args:
        rows: Rows to render, already in rank order.
        fmt: "table" (plain text), "markdown", "csv" or "json".

    Returns:
        Rendered text.
    """
    if fmt == "json":
        return json.dumps([r.model_dump(mode="json") for r in rows], indent=2)

    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["rank", "player_id", "score"])
        for r in rows:
            writer.writerow([r.rank, r.player_id, r.score])
        return buffer.getvalue()

    table = [[r.rank, r.player_id, r.score] for r in rows]
    tablefmt = "github" if fmt == "markdown" else "simple"
    return tabulate(table, headers=HEADERS, tablefmt=tablefmt)
