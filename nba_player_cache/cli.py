"""Typer CLI for maintaining the player cache.

Commands:
- nba-player-cache refresh [--player ID ...]
- nba-player-cache player 237
- nba-player-cache history 237 --seasons 6
- nba-player-cache invalidate 237
- nba-player-cache cleanup
- nba-player-cache health
"""

import asyncio
import os
from collections.abc import Coroutine

from dotenv import load_dotenv

# Load .env file before anything else
load_dotenv()

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nba_player_cache import __version__
from nba_player_cache.config import get_settings
from nba_player_cache.db import get_engine, init_database
from nba_player_cache.errors import PlayerCacheError, PlayerLookupError, PlayerNotFoundError
from nba_player_cache.monitoring import configure_logging
from nba_player_cache.refresh import RefreshPipeline
from nba_player_cache.service import PlayerStatsService, build_service
from nba_player_cache.stats import PlayerPayload, SeasonSplit

cli = typer.Typer(
    name="nba-player-cache",
    help="""NBA player stats cache - aggregate balldontlie stats and keep them warm.

QUICK START:
  nba-player-cache refresh                 # refresh every rostered player
  nba-player-cache player 237              # cache-through read of one player
  nba-player-cache health                  # size, age range and hit rate
""",
    add_completion=False,
)

# Disable colors if NO_COLOR env var is set (standard convention)
console = Console(no_color=os.getenv("NO_COLOR") is not None)


def _setup() -> PlayerStatsService:
    settings = get_settings()
    configure_logging("production" if settings.environment == "production" else "development")
    try:
        return build_service(settings)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)


def _run(coro: Coroutine):
    """Run one command on a single event loop.

    With the database backend the schema is created and the pooled
    connections are released on that same loop, so nothing pooled outlives it.
    """
    async def _main():
        if get_settings().cache_backend != "database":
            return await coro
        engine = get_engine()
        try:
            await init_database(engine)
            return await coro
        finally:
            await engine.dispose()

    return asyncio.run(_main())


def _fmt(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}"


def _split_row(table: Table, label: str, split: SeasonSplit) -> None:
    table.add_row(
        label,
        str(split.games_played),
        _fmt(split.points),
        _fmt(split.rebounds),
        _fmt(split.assists),
        _fmt(split.net_rating),
    )


def _display_payload(payload: PlayerPayload) -> None:
    team = payload.team.abbreviation if payload.team else "-"
    console.print(Panel.fit(
        f"[bold cyan]{payload.first_name} {payload.last_name}[/bold cyan] "
        f"({payload.position or '-'}, {team})\n"
        f"Season {payload.season}-{str(payload.season + 1)[-2:]}",
        title=f"Player {payload.id}",
        border_style="cyan",
    ))

    table = Table(title="Season averages")
    for column in ("Split", "GP", "PTS", "REB", "AST", "NET"):
        table.add_column(column, justify="right" if column != "Split" else "left")
    _split_row(table, "Regular season", payload.regular_season)
    _split_row(table, "Postseason", payload.postseason)
    console.print(table)

    if payload.recent_games:
        recent = Table(title=f"Recent games ({len(payload.recent_games)})")
        for column in ("Date", "MIN", "PTS", "REB", "AST", "NET"):
            recent.add_column(column)
        for matched in payload.recent_games[:10]:
            game = matched.game
            recent.add_row(
                (game.game_date or "-")[:10],
                game.minutes or "0",
                _fmt(game.points),
                _fmt(game.rebounds),
                _fmt(game.assists),
                _fmt(matched.net_rating),
            )
        console.print(recent)


@cli.command()
def refresh(
    player: list[int] = typer.Option(None, "--player", "-p", help="Refresh only these player IDs (repeatable)"),
):
    """Refresh cached payloads for the whole roster or selected players."""
    service = _setup()
    settings = get_settings()
    pipeline = RefreshPipeline(
        service,
        batch_size=settings.refresh_batch_size,
        batch_delay=settings.refresh_batch_delay,
        max_roster_pages=settings.max_roster_pages,
    )

    async def _refresh():
        players = None
        if player:
            players = []
            for player_id in player:
                identity = await service.get_player_identity(player_id)
                if identity is None:
                    console.print(f"[yellow]Skipping unknown player {player_id}[/yellow]")
                    continue
                players.append(identity)
        return await pipeline.refresh_all(players)

    try:
        report = _run(_refresh())
    except PlayerCacheError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Refreshed {report.refreshed}/{report.total_players} players[/bold green] "
        f"in {report.batches} batches ({report.duration_ms} ms)"
    )
    if report.failed_players:
        console.print(f"[yellow]Failed players:[/yellow] {', '.join(map(str, report.failed_players))}")
    if report.failed_batches:
        console.print(f"[red]Failed batch writes:[/red] {report.failed_batches}")
        raise typer.Exit(code=1)


@cli.command()
def player(player_id: int = typer.Argument(..., help="balldontlie player ID")):
    """Show a player's season payload, reading through the cache."""
    service = _setup()
    try:
        payload = _run(service.get_player_payload(player_id))
    except PlayerNotFoundError:
        console.print(f"[bold red]Player {player_id} not found[/bold red]")
        raise typer.Exit(code=1)
    except (PlayerLookupError, PlayerCacheError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    _display_payload(payload)


@cli.command()
def history(
    player_id: int = typer.Argument(..., help="balldontlie player ID"),
    seasons: int = typer.Option(None, "--seasons", "-s", help="Number of seasons (default from settings)"),
):
    """Show a player's net rating over recent seasons."""
    service = _setup()
    rows = _run(service.get_net_rating_history(player_id, seasons))

    table = Table(title=f"Net rating history for player {player_id}")
    table.add_column("Season")
    table.add_column("Games", justify="right")
    table.add_column("NET", justify="right")
    for row in rows:
        table.add_row(str(row.season), str(row.games), _fmt(row.net_rating))
    console.print(table)


@cli.command()
def invalidate(player_id: int = typer.Argument(..., help="balldontlie player ID")):
    """Drop a player's cached payload."""
    service = _setup()
    try:
        _run(service.invalidate_player(player_id))
    except PlayerCacheError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print(f"Invalidated player {player_id}")


@cli.command()
def cleanup():
    """Delete expired and outdated entries from every cache."""
    service = _setup()

    async def _cleanup():
        removed = {service.stats_cache.namespace: await service.stats_cache.cleanup()}
        if service.identity_cache is not None:
            removed[service.identity_cache.namespace] = await service.identity_cache.cleanup()
        return removed

    try:
        removed = _run(_cleanup())
    except PlayerCacheError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    for namespace, count in removed.items():
        console.print(f"{namespace}: removed {count} entries")


@cli.command()
def health():
    """Show cache size, version, entry age range and hit rate."""
    service = _setup()
    try:
        stats = _run(service.get_cache_health())
    except PlayerCacheError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Player cache health")
    table.add_column("Namespace", no_wrap=True)
    for column in ("Size", "Version", "TTL (s)", "Oldest", "Newest", "Hit rate"):
        table.add_column(column)
    for namespace, snapshot in stats.items():
        table.add_row(
            namespace,
            str(snapshot.size),
            str(snapshot.version),
            str(snapshot.ttl_seconds),
            snapshot.oldest_entry.isoformat(timespec="seconds") if snapshot.oldest_entry else "-",
            snapshot.newest_entry.isoformat(timespec="seconds") if snapshot.newest_entry else "-",
            f"{snapshot.hit_rate:.1f}%",
        )
    console.print(table)


@cli.command()
def version():
    """Show version and configuration info."""
    settings = get_settings()
    console.print(f"[bold cyan]NBA Player Cache[/bold cyan] v{__version__}")
    console.print(f"  balldontlie: {'configured' if settings.balldontlie_api_key else 'missing BALLDONTLIE_API_KEY'}")
    console.print(f"  Backend: {settings.cache_backend}")
    console.print(f"  Cache version: {settings.cache_version}")
