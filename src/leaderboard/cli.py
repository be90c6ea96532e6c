"""CLI for the leaderboard."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Annotated

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from leaderboard import __version__
from leaderboard.core.config import LeaderboardConfig, load_config
from leaderboard.core.errors import ConfigurationError
from leaderboard.demo import run_demo
from leaderboard.ranking import BaseLeaderboard, create_leaderboard
from leaderboard.services.index import MemoryStore
from leaderboard.services.reporting import format_ranks

load_dotenv()

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="leaderboard",
    help="Leaderboard - rank players by cumulative score on Redis sorted sets",
    add_completion=False,
)
console = Console()


class Backend(str, Enum):
    memory = "memory"
    redis = "redis"


class OutputFormat(str, Enum):
    table = "table"
    markdown = "markdown"
    csv = "csv"
    json = "json"


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config YAML file"),
]
KeyOption = Annotated[
    str | None,
    typer.Option("--key", "-k", help="Leaderboard key (overrides config)"),
]
FormatOption = Annotated[
    OutputFormat,
    typer.Option("--format", "-f", help="Output format: table, markdown, csv or json"),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"leaderboard v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Leaderboard CLI."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _load(config_path: Path | None, key: str | None) -> LeaderboardConfig:
    config = load_config(config_path) if config_path else LeaderboardConfig()
    if key is not None:
        config = config.model_copy(update={"leaderboard_key": key or config.leaderboard_key})
    return config


def _open_board(config_path: Path | None, key: str | None) -> BaseLeaderboard:
    try:
        return create_leaderboard(_load(config_path, key))
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e


def _no_result(what: str) -> typer.Exit:
    console.print(f"[yellow]No result:[/yellow] {what} (unknown player or index unavailable)")
    return typer.Exit(1)


@app.command()
def update(
    player_id: Annotated[str, typer.Argument(help="Player identifier")],
    points: Annotated[int, typer.Argument(help="Score increment; may be negative")],
    config_path: ConfigOption = None,
    key: KeyOption = None,
) -> None:
    """Add points to a player's cumulative score."""
    with _open_board(config_path, key) as board:
        try:
            board.update_score(player_id, points)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        info = board.get_player_rank(player_id)
    if info is None:
        raise _no_result(player_id)
    console.print(f"{info.player_id}: #{info.rank} with {info.score} points")


@app.command()
def rank(
    player_id: Annotated[str, typer.Argument(help="Player identifier")],
    config_path: ConfigOption = None,
    key: KeyOption = None,
) -> None:
    """Show a player's current rank."""
    with _open_board(config_path, key) as board:
        info = board.get_player_rank(player_id)
    if info is None:
        raise _no_result(player_id)
    console.print(f"{info.player_id}: #{info.rank} with {info.score} points")


@app.command()
def top(
    n: Annotated[int, typer.Argument(help="Number of players")] = 10,
    config_path: ConfigOption = None,
    key: KeyOption = None,
    fmt: FormatOption = OutputFormat.table,
) -> None:
    """Show the top N players."""
    with _open_board(config_path, key) as board:
        rows = board.get_top_n(n)
    if rows is None:
        raise _no_result(f"top {n}")
    console.print(format_ranks(rows, fmt.value), markup=False, highlight=False)


@app.command()
def around(
    player_id: Annotated[str, typer.Argument(help="Player identifier")],
    n: Annotated[int, typer.Argument(help="Players to show on each side")] = 5,
    config_path: ConfigOption = None,
    key: KeyOption = None,
    fmt: FormatOption = OutputFormat.table,
) -> None:
    """Show the players ranked around a player."""
    with _open_board(config_path, key) as board:
        rows = board.get_player_range(player_id, n)
    if rows is None:
        raise _no_result(player_id)
    console.print(format_ranks(rows, fmt.value), markup=False, highlight=False)


@app.command()
def stats(
    config_path: ConfigOption = None,
    key: KeyOption = None,
) -> None:
    """Show board statistics."""
    with _open_board(config_path, key) as board:
        summary = board.get_statistics()
    if summary is None:
        raise _no_result("statistics")
    for name, value in summary.items():
        console.print(f"  {name}: {value}")


@app.command()
def remove(
    player_id: Annotated[str, typer.Argument(help="Player identifier")],
    config_path: ConfigOption = None,
    key: KeyOption = None,
) -> None:
    """Remove a player from the board."""
    with _open_board(config_path, key) as board:
        removed = board.remove_player(player_id)
    if not removed:
        raise _no_result(player_id)
    console.print(f"[green]Removed[/green] {player_id}")


@app.command()
def demo(
    backend: Annotated[
        Backend,
        typer.Option("--backend", "-b", help="Index backend: memory or redis"),
    ] = Backend.memory,
    config_path: ConfigOption = None,
) -> None:
    """Run the sample standard and dense ranking walkthrough.

    Uses the boards ``demo:standard`` and ``demo:dense``, clearing them first.
    """
    try:
        base = load_config(config_path) if config_path else LeaderboardConfig()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    store = MemoryStore()
    boards: dict[str, BaseLeaderboard] = {}
    for ranking in ("standard", "dense"):
        cfg = base.model_copy(
            update={
                "backend": backend.value,
                "ranking": ranking,
                "leaderboard_key": f"demo:{ranking}",
            }
        )
        try:
            boards[ranking] = create_leaderboard(cfg, store=store)
        except ConfigurationError as e:
            console.print(f"[red]{e}")
            raise typer.Exit(1) from e

    with boards["standard"] as standard_board, boards["dense"] as dense_board:
        standard_board.reset()
        dense_board.reset()
        run_demo(standard_board, dense_board, console, start=datetime.now(UTC))


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without connecting."""
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Leaderboard key: {config.leaderboard_key}")
        console.print(f"  Ranking: {config.ranking}")
        if config.is_dense:
            console.print(f"  Dense policy: {config.dense_policy}")
        console.print(f"  Range window: {config.range_window}")
        console.print(f"  Backend: {config.backend}")
        if config.backend == "redis":
            console.print(f"  Redis: {config.redis.describe()}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
