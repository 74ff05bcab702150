"""Main CLI entry point for broker-import."""

import click
from typing import Optional
from rich.console import Console

from broker_import import __version__
from broker_import.config.settings import get_settings
from broker_import.utils.logging import setup_logging, get_logger
from broker_import.cli.inspect import inspect_file
from broker_import.cli.run import run_import
from broker_import.cli.store import store_group


console = Console()
logger = get_logger("cli")


@click.group()
@click.version_option(version=__version__, prog_name="broker-import")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Set the logging level"
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str] = None) -> None:
    """
    Broker Import - batch import of scraped forex broker reviews.

    Discovers review pages and script bundles, extracts broker data,
    validates it and writes it to the broker store.
    """
    ctx.ensure_object(dict)

    config_overrides = {}
    if log_level:
        config_overrides = {"app": {"log_level": log_level}}

    try:
        settings = get_settings(config_overrides)
        ctx.obj["settings"] = settings

        setup_logging(settings.app.log_level, console)

        logger.debug(f"Loaded configuration: source={settings.pipeline.source_directory}")
        logger.debug(f"Store: {settings.store.backend} ({settings.store.path})")

    except ValueError as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        ctx.exit(1)


@cli.command()
def version() -> None:
    """Display version information."""
    console.print(f"[bold green]broker-import[/bold green] version [bold]{__version__}[/bold]")


cli.add_command(run_import)
cli.add_command(inspect_file)
cli.add_command(store_group)


def main() -> None:
    """Entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        console.print(f"[red]Error: {e}[/red]")
        exit(1)


if __name__ == "__main__":
    main()
