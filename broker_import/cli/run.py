"""CLI command for running the broker import pipeline."""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from click.core import ParameterSource

from broker_import.config.settings import Settings, get_settings
from broker_import.ingest import ImportPipeline, LogExportError
from broker_import.store import StoreError, get_broker_store

logger = logging.getLogger(__name__)

MAX_LISTED_MESSAGES = 10


def _echo_messages(title: str, messages: list) -> None:
    """Print the first few messages of a list with an overflow note."""
    if not messages:
        return

    click.echo()
    click.echo(title)
    click.echo()
    for i, message in enumerate(messages[:MAX_LISTED_MESSAGES], 1):
        click.echo(f"  {i}. {message}")

    if len(messages) > MAX_LISTED_MESSAGES:
        remaining = len(messages) - MAX_LISTED_MESSAGES
        click.echo(f"  ... and {remaining} more")


def _from_command_line(ctx: click.Context, name: str) -> bool:
    return ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE


@click.command('run')
@click.argument('source_dir', required=False, type=click.Path(file_okay=False, dir_okay=True))
@click.option(
    '--pattern', '-p', 'patterns',
    multiple=True,
    help='File pattern to import (can specify multiple times), e.g. "*-review.html"'
)
@click.option(
    '--batch-size',
    type=click.IntRange(min=1),
    help='Number of files processed per batch'
)
@click.option(
    '--max-retries',
    type=click.IntRange(min=0),
    help='Retries for transient file read errors'
)
@click.option(
    '--skip-existing/--reimport',
    default=True,
    help='Skip brokers that are already in the store'
)
@click.option(
    '--strict/--lenient',
    default=False,
    help='Reject records that fail validation instead of importing them with warnings'
)
@click.option(
    '--no-log-buffer',
    is_flag=True,
    help='Do not keep an in-memory log of the run'
)
@click.option(
    '--store-path',
    type=click.Path(dir_okay=False),
    help='JSON store file (overrides configuration)'
)
@click.option(
    '--export-logs',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Write the run log to this file when finished'
)
@click.pass_context
def run_import(
    ctx: click.Context,
    source_dir: Optional[str],
    patterns: tuple,
    batch_size: Optional[int],
    max_retries: Optional[int],
    skip_existing: bool,
    strict: bool,
    no_log_buffer: bool,
    store_path: Optional[str],
    export_logs: Optional[Path]
):
    """
    Import broker review pages and script bundles into the broker store.

    SOURCE_DIR defaults to the configured source directory.

    \b
    Examples:
        # Import everything under the configured directory
        broker-import run

        # Only review pages, strict validation
        broker-import run data/forex-brokers -p "*-review.html" --strict

        # Re-import brokers that already exist and keep the log
        broker-import run --reimport --export-logs logs/import.log
    """
    settings: Settings = (ctx.obj or {}).get("settings") or get_settings()

    config = replace(settings.to_pipeline_config(), **{
        key: value for key, value in {
            "source_directory": source_dir,
            "file_patterns": tuple(patterns) if patterns else None,
            "batch_size": batch_size,
            "max_retries": max_retries,
            "skip_existing": skip_existing if _from_command_line(ctx, "skip_existing") else None,
            "validation_strict": strict if _from_command_line(ctx, "strict") else None,
            "enable_logging": False if no_log_buffer else None,
        }.items() if value is not None
    })

    logger.debug(f"Effective pipeline configuration: {config}")

    if store_path:
        settings = settings.model_copy(
            update={"store": settings.store.model_copy(update={"backend": "json", "path": store_path})}
        )

    # Display banner
    click.echo("=" * 70)
    click.echo("📥  Broker Import Pipeline")
    click.echo("=" * 70)
    click.echo(f"📂 Source:         {config.source_directory}")
    click.echo(f"🔍 Patterns:       {', '.join(config.file_patterns)}")
    click.echo(f"📦 Batch size:     {config.batch_size}")
    click.echo(f"♻️  Skip existing:  {'Yes' if config.skip_existing else 'No'}")
    click.echo(f"🛡️  Validation:     {'strict' if config.validation_strict else 'lenient'}")
    click.echo(f"🗄️  Store:          {settings.store.backend} ({settings.store.path})")
    click.echo("=" * 70)
    click.echo()

    try:
        store = get_broker_store(settings)
    except StoreError as e:
        click.echo(f"\n❌ Initialization failed: {e}", err=True)
        raise click.Abort()

    pipeline = ImportPipeline(store, config=config)
    result = pipeline.run()

    click.echo()
    click.echo("=" * 70)
    click.echo("📊 Import Results")
    click.echo("=" * 70)
    click.echo(f"📄 Processed files:   {result.processed_files}")
    click.echo(f"✅ Imported brokers:  {result.imported_brokers}")
    click.echo(f"❌ Failed files:      {result.failed_files}")
    click.echo(f"⚠️  Warnings:          {len(result.warnings)}")
    click.echo(f"🏷️  Imported entities: {result.stats.total}")
    click.echo(f"⏱️  Duration:          {result.processing_time}ms")
    click.echo("=" * 70)

    _echo_messages("❌ Errors encountered:", result.errors)
    _echo_messages("⚠️  Warnings:", result.warnings)

    if export_logs:
        try:
            path = pipeline.export_logs(export_logs)
            click.echo(f"\n📝 Logs exported to: {path}")
        except LogExportError as e:
            click.echo(f"\n❌ {e}", err=True)

    click.echo()
    if not result.success:
        click.echo("⚠️  No brokers were imported")
        sys.exit(1)

    click.echo(f"✅ Imported {result.imported_brokers} broker(s)")
