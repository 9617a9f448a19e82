"""scanwatch command line.

``serve`` runs the coordinator, ``scan`` drives one scan as the requester,
``watch`` edits the watched list in the identity store.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..core.config import get_effective_config

console = Console()


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.option("--config-dir", type=click.Path(exists=True, file_okay=False), help="Directory holding scanwatch.yaml")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.pass_context
def cli(ctx: click.Context, config_dir: str | None, log_level: str | None) -> None:
    """scanwatch - coordinate scans across polling agents."""
    overrides: dict = {}
    if log_level:
        overrides["logging"] = {"level": log_level}
    config = get_effective_config(
        Path(config_dir) if config_dir else None,
        cli_overrides=overrides or None,
    )
    setup_logging(config["logging"]["level"])
    ctx.obj = config


@cli.command()
@click.option("--host", type=str, help="Bind address")
@click.option("--port", type=int, help="Listen port")
@click.option("--store", "store_path", type=click.Path(dir_okay=False), help="Identity store file")
@click.option("--window", type=float, help="Scan window in seconds")
@click.pass_obj
def serve(config: dict, host: str | None, port: int | None, store_path: str | None, window: float | None) -> None:
    """Run the coordinator HTTP server."""
    import uvicorn

    from ..api.server import create_app
    from ..core.coordinator import build_coordinator
    from ..store import StoreError, YamlIdentityStore

    host = host or config["server"]["host"]
    port = port or config["server"]["port"]
    if window:
        config["scan"]["window_seconds"] = window

    try:
        store = YamlIdentityStore(Path(store_path or config["store"]["path"]))
    except StoreError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(12)

    app = create_app(build_coordinator(config, store))
    console.print(f"  [green]OK[/green] API server on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)


@cli.command()
@click.option("--target", "-t", type=str, help="Only this agent collects")
@click.option("--base-url", type=str, help="Coordinator API root")
@click.option("--timeout", type=float, help="Seconds to wait for results")
@click.pass_obj
def scan(config: dict, target: str | None, base_url: str | None, timeout: float | None) -> None:
    """Request a scan and wait for its results."""
    from ..client import ClientError, ScanClient, ScanRejected, ScanTimeout

    client_config = config["client"]
    client = ScanClient(
        base_url or client_config["base_url"],
        poll_interval=client_config["poll_interval_seconds"],
        timeout=timeout or client_config["timeout_seconds"],
    )

    console.print(f"  [cyan]Scanning...[/cyan] Target: {target or 'all agents'}")
    try:
        result = asyncio.run(client.run_scan(target))
    except ScanRejected as e:
        console.print(f"  [yellow]REJECTED[/yellow] {e}")
        sys.exit(2)
    except ScanTimeout as e:
        console.print(f"  [red]TIMEOUT[/red] {e}")
        sys.exit(1)
    except ClientError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(13)

    table = Table(title="Scan results")
    table.add_column("Watched online")
    table.add_column("Active agents")
    rows = max(len(result.watched_online), len(result.active_agents), 1)
    for i in range(rows):
        table.add_row(
            result.watched_online[i] if i < len(result.watched_online) else "",
            result.active_agents[i] if i < len(result.active_agents) else "",
        )
    console.print(table)
    if not result.watched_online:
        console.print("  [yellow]No watched names found.[/yellow]")
    console.print(f"  Total seen: {result.total_seen}")


@cli.group()
def watch() -> None:
    """Manage the watched list."""


@watch.command("add")
@click.argument("name")
@click.option("--store", "store_path", type=click.Path(dir_okay=False), help="Identity store file")
@click.option("--added-by", default="cli", show_default=True)
@click.pass_obj
def watch_add(config: dict, name: str, store_path: str | None, added_by: str) -> None:
    """Add NAME to the watched list."""
    from ..store import StoreError, YamlIdentityStore

    try:
        store = YamlIdentityStore(Path(store_path or config["store"]["path"]))
        added = store.add_watched(name, added_by=added_by)
    except (StoreError, ValueError) as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(12)

    if added:
        console.print(f"  [green]Added[/green] {name} to the watched list")
    else:
        console.print(f"  [yellow]{name} is already watched[/yellow]")


@watch.command("list")
@click.option("--store", "store_path", type=click.Path(dir_okay=False), help="Identity store file")
@click.pass_obj
def watch_list(config: dict, store_path: str | None) -> None:
    """Show the watched list."""
    from ..store import StoreError, YamlIdentityStore

    try:
        store = YamlIdentityStore(Path(store_path or config["store"]["path"]))
    except StoreError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        sys.exit(12)

    for entity in store.watched():
        suffix = f" [dim](added by {entity.added_by})[/dim]" if entity.added_by else ""
        console.print(f"  {entity.name}{suffix}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
