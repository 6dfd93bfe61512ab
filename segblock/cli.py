"""Command-line interface for segblock."""

import asyncio
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Awaitable, Iterator, Optional, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from segblock.config import Config, find_config_file, load_config, merge_cli_options
from segblock.errors import SegblockError
from segblock.normalizer import require_url
from segblock.segments import (
    ALLOWED_SEGMENTS,
    SegmentSelection,
    is_unblocked,
    next_change,
    unblock_windows,
)
from segblock.service import BlockRuleService
from segblock.storage import DuckDBBackend, RuleStore
from segblock.sync import HttpListener, RuleSync, SyncEndpointConfig, SyncResult, build_message

console = Console()

T = TypeVar("T")


def _build_sync(cfg: Config) -> RuleSync:
    listeners = []
    if cfg.sync_enabled:
        listeners.append(HttpListener(SyncEndpointConfig(
            url=cfg.sync_endpoint_url,
            timeout=cfg.sync_timeout,
        )))
    return RuleSync(listeners, attempts=cfg.sync_attempts)


@contextmanager
def _open_service(cfg: Config) -> Iterator[BlockRuleService]:
    """Open the rule database and yield a service wired to it."""
    with DuckDBBackend(cfg.db_path) as backend:
        yield BlockRuleService(RuleStore(backend), _build_sync(cfg))


def _run(service: BlockRuleService, coro: Awaitable[T]) -> T:
    """Run one service call, closing sync listeners afterwards."""
    async def _main() -> T:
        try:
            return await coro
        finally:
            await service.sync.close()

    return asyncio.run(_main())


@contextmanager
def _report_errors() -> Iterator[None]:
    """Turn segblock errors into a one-line message and exit code 1."""
    try:
        yield
    except SegblockError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


def _print_sync_warnings(result: SyncResult) -> None:
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {escape(warning)}[/yellow]")


def _format_offset(offset: timedelta) -> str:
    minutes = int(offset.total_seconds()) // 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to config file (default: searches standard locations)",
)
@click.option(
    "--db",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to the DuckDB rule database",
)
@click.option("--sync/--no-sync", default=None, help="Notify the enforcement endpoint after changes")
@click.option("--endpoint", type=str, default=None, help="Enforcement endpoint URL")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def main(
    ctx: click.Context,
    config: Path | None,
    db: Path | None,
    sync: bool | None,
    endpoint: str | None,
    verbose: bool,
) -> None:
    """segblock - block websites except for a window in every part of the day."""
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    cfg = load_config(config)
    cfg = merge_cli_options(cfg, db=db, sync=sync, endpoint=endpoint)

    # Ensure parent directory exists
    if str(cfg.db_path) != ":memory:":
        cfg.db_path.parent.mkdir(parents=True, exist_ok=True)

    ctx.obj["config"] = cfg

    config_path = config or find_config_file()
    if config_path:
        ctx.obj["config_path"] = config_path


@main.command()
@click.argument("url")
@click.option(
    "--segments",
    "-s",
    type=click.Choice([str(s) for s in ALLOWED_SEGMENTS]),
    default=None,
    help="Equal segments per day (default from config: 4)",
)
@click.option("--hours", "-h", type=int, default=None, help="Unblocked hours at the start of each segment")
@click.pass_context
def add(ctx: click.Context, url: str, segments: str | None, hours: int | None) -> None:
    """Block a website, or update its schedule if already blocked.

    Example:
        segblock add www.example.com --segments 8 --hours 1
    """
    cfg: Config = ctx.obj["config"]

    selection = SegmentSelection(cfg.default_segments, cfg.default_unblock_hours)
    if segments is not None:
        selection.select_segments(int(segments))
    if hours is not None:
        selection.set_unblock_hours(hours)
    if hours is not None and hours != selection.unblock_hours:
        console.print(
            f"[yellow]Unblock time limited to {selection.unblock_hours}h "
            f"({selection.segments} segments of {selection.max_hours}h)[/yellow]"
        )

    with _report_errors(), _open_service(cfg) as service:
        result = _run(service, service.save(url, selection))

    _print_sync_warnings(result.sync)
    verb = "updated" if result.replaced else "saved"
    console.print(f"[green]Block rule {verb} successfully![/green]")
    console.print(
        f"  {result.rule.url}: {result.rule.segments} segments, "
        f"{result.rule.unblock_hours}h unblock per segment"
    )


@main.command(name="list")
@click.pass_context
def list_rules(ctx: click.Context) -> None:
    """Show blocked websites."""
    cfg: Config = ctx.obj["config"]

    with _report_errors(), _open_service(cfg) as service:
        rules = service.list()

    if not rules:
        console.print("[green]No blocked websites[/green]")
        return

    table = Table(title="Blocked Websites")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Website")
    table.add_column("Segments", justify="right")
    table.add_column("Unblock", justify="right")
    table.add_column("Updated", style="dim")

    for index, rule in enumerate(rules):
        updated = datetime.fromtimestamp(rule.created_at / 1000).strftime("%Y-%m-%d %H:%M")
        table.add_row(
            str(index),
            rule.url,
            f"{rule.segments} x {rule.segment_duration}h",
            f"{rule.unblock_hours}h",
            updated,
        )

    console.print(table)


@main.command()
@click.argument("index", type=int, required=False)
@click.option("--host", type=str, default=None, help="Delete by website instead of list position")
@click.pass_context
def delete(ctx: click.Context, index: int | None, host: str | None) -> None:
    """Remove a block rule by list position or by website."""
    cfg: Config = ctx.obj["config"]

    if (index is None) == (host is None):
        console.print("[red]Error: Specify either INDEX or --host[/red]")
        sys.exit(1)

    with _report_errors(), _open_service(cfg) as service:
        if host is not None:
            result = _run(service, service.delete_host(host))
        else:
            result = _run(service, service.delete(index))

    _print_sync_warnings(result.sync)
    console.print(f"[green]Block rule deleted[/green] ({result.removed.url})")


@main.command()
@click.argument("url")
@click.option(
    "--at",
    "at_time",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%H:%M"]),
    default=None,
    help="Check a specific time instead of now",
)
@click.pass_context
def windows(ctx: click.Context, url: str, at_time: Optional[datetime]) -> None:
    """Show the daily unblock windows for a blocked website."""
    cfg: Config = ctx.obj["config"]

    with _report_errors(), _open_service(cfg) as service:
        host = require_url(url)
        rule = service.store.get(host)

    if rule is None:
        console.print(f"[yellow]{host} is not blocked[/yellow]")
        return

    when = at_time or datetime.now()
    if at_time is not None and at_time.year == 1900:
        # Time-only input: apply it to today
        when = datetime.now().replace(
            hour=at_time.hour, minute=at_time.minute, second=0, microsecond=0
        )

    table = Table(title=f"Unblock windows for {rule.url}")
    table.add_column("Segment", justify="right")
    table.add_column("Open")
    table.add_column("Blocked")
    for i, (start, end) in enumerate(unblock_windows(rule), start=1):
        segment_end = start + timedelta(hours=rule.segment_duration)
        blocked = "-" if end == segment_end else f"{_format_offset(end)}-{_format_offset(segment_end)}"
        table.add_row(str(i), f"{_format_offset(start)}-{_format_offset(end)}", blocked)
    console.print(table)

    state = "[green]unblocked[/green]" if is_unblocked(rule, when) else "[red]blocked[/red]"
    change = next_change(rule, when)
    if change is None:
        console.print(f"At {when.strftime('%H:%M')}: {state}, never blocked")
    else:
        console.print(f"At {when.strftime('%H:%M')}: {state}, changes at {change.strftime('%H:%M')}")


@main.command()
@click.pass_context
def export(ctx: click.Context) -> None:
    """Print the rule-update message sent to the enforcement component."""
    cfg: Config = ctx.obj["config"]

    with _report_errors(), _open_service(cfg) as service:
        rules = service.list()

    click.echo(json.dumps(build_message(rules), indent=2))


if __name__ == "__main__":
    main()
