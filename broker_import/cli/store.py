"""Broker store CLI commands."""

import click
from rich.console import Console
from rich.table import Table
from rich import box

from broker_import.config.settings import get_settings
from broker_import.store import StoreError, get_broker_store

console = Console()


@click.group(name="store")
def store_group():
    """Broker store commands."""
    pass


@store_group.command(name="stats")
@click.pass_context
def store_stats(ctx: click.Context):
    """Show broker and per-collection counts of the configured store."""
    settings = (ctx.obj or {}).get("settings") or get_settings()

    try:
        store = get_broker_store(settings)
        stats = store.stats()
    except StoreError as e:
        console.print(f"[red]✗ Store error:[/red] {e}")
        raise click.Abort()

    table = Table(title=f"Broker store ({settings.store.backend})", box=box.SIMPLE)
    table.add_column("Collection", style="cyan")
    table.add_column("Count", justify="right")

    for name, count in stats.items():
        table.add_row(name, str(count))

    console.print(table)


@store_group.command(name="list")
@click.pass_context
def store_list(ctx: click.Context):
    """List the slugs of all stored brokers."""
    settings = (ctx.obj or {}).get("settings") or get_settings()

    try:
        slugs = get_broker_store(settings).list_slugs()
    except StoreError as e:
        console.print(f"[red]✗ Store error:[/red] {e}")
        raise click.Abort()

    if not slugs:
        console.print("[yellow]Store is empty[/yellow]")
        return

    for slug in slugs:
        console.print(slug)
    console.print(f"\n[dim]{len(slugs)} broker(s)[/dim]")
