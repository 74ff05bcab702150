"""Inspect command: parse one file and show what would be imported."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from broker_import.ingest import ImportPipelineError, ParserDispatch
from broker_import.models.broker import as_records
from broker_import.parsers import ParseError
from broker_import.store import count_entities
from broker_import.validators import BrokerDataValidator

console = Console()


def _fmt(value) -> str:
    return "-" if value is None else str(value)


@click.command(name="inspect")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--show-warnings",
    is_flag=True,
    help="Also list validator warnings",
)
def inspect_file(file: Path, show_warnings: bool):
    """
    Parse FILE and display the extracted brokers with validation results.

    Nothing is written to the store.
    """
    console.print(f"\n[bold blue]Inspecting:[/bold blue] {file}\n")

    dispatch = ParserDispatch()
    validator = BrokerDataValidator()

    try:
        candidate = dispatch.candidate(file)
        content = file.read_text(encoding="utf-8")
        records = as_records(dispatch.parse(candidate, content))
    except (ImportPipelineError, ParseError, OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    if not records:
        console.print("[yellow]No broker data found[/yellow]")
        return

    console.print(f"[green]✓ Found {len(records)} broker(s)[/green] ({candidate.kind.value})\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Slug", style="cyan")
    table.add_column("Rating")
    table.add_column("Min deposit")
    table.add_column("Leverage")
    table.add_column("Regulators")
    table.add_column("Items", justify="right")
    table.add_column("Valid")

    outcomes = []
    for record in records:
        outcome = validator.validate(record)
        outcomes.append((record, outcome))
        broker = record.broker
        item_count = count_entities(record).total
        table.add_row(
            _fmt(broker.name),
            _fmt(broker.slug),
            _fmt(broker.rating),
            _fmt(broker.min_deposit),
            f"1:{broker.max_leverage:g}" if broker.max_leverage else "-",
            ", ".join(r.regulatory_body for r in record.regulations if r.regulatory_body) or "-",
            str(item_count),
            "[green]yes[/green]" if outcome.is_valid else "[red]no[/red]",
        )

    console.print(table)

    for record, outcome in outcomes:
        if outcome.errors or (show_warnings and outcome.warnings):
            console.print(f"\n[bold cyan]{_fmt(record.name)}[/bold cyan]")
        for error in outcome.errors:
            console.print(f"  [red]✗[/red] {error}")
        if show_warnings:
            for warning in outcome.warnings:
                console.print(f"  [yellow]![/yellow] {warning}")
