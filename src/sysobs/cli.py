"""
Main CLI entry point for sysobs.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from sysobs import __version__
from sysobs.config import ConfigError, load_config
from sysobs.converter import Converter, summarize
from sysobs.encoder import BebopcEncoder
from sysobs.event_log import RunLog, new_run_id
from sysobs.events import EventKind

app = typer.Typer(
    name="sysobs",
    help="Convert AmbientOps NDJSON events into Bebop frames",
    no_args_is_help=True,
)
console = Console()


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: ~/sysobs.yml or ./sysobs.yml)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
):
    """
    sysobs: Bebop observability channel for AmbientOps events.
    """
    setup_logging(verbose)

    try:
        config = load_config(config_path)
    except (FileNotFoundError, yaml.YAMLError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    ctx.obj = {"config": config, "verbose": verbose}


def _make_encoder(config: dict) -> BebopcEncoder:
    return BebopcEncoder(binary=config["bebopc"], timeout=config["timeout"])


@app.command()
def convert(
    ctx: typer.Context,
    input_path: str = typer.Option(
        ..., "--input", "-i", help="NDJSON file with one event per line"
    ),
    outdir: str = typer.Option(
        ..., "--outdir", "-o", help="Directory for .bebop (or fallback .json) files"
    ),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--no-strict",
        help="Exit with code 1 if any event fails to convert",
    ),
    event_log: Optional[str] = typer.Option(
        None,
        "--event-log",
        help="Append run records to this JSONL file",
    ),
):
    """Convert an NDJSON event file into Bebop frames.

    Examples:
        sysobs convert --input events.jsonl --outdir out/
        sysobs -v convert -i events.jsonl -o out/ --strict
    """
    logger = logging.getLogger(__name__)

    config = ctx.obj.get("config", {}) if ctx.obj else {}
    verbose = ctx.obj.get("verbose", False) if ctx.obj else False

    if strict is None:
        strict = config.get("strict", False)
    log_path = event_log or config.get("event_log")

    converter = Converter(encoder=_make_encoder(config), schema_path=Path(config["schema"]))

    run_id = new_run_id()
    run_log = RunLog(Path(log_path)) if log_path else None
    if run_log:
        run_log.started(run_id, input_path, outdir)

    try:
        results = converter.convert_file(input_path, outdir)
    except OSError as e:
        logger.exception("Conversion failed")
        if run_log:
            run_log.aborted(run_id, e)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    for result in results:
        if result.ok:
            typer.echo(f"  ✓ {result.path}")
        else:
            typer.echo(f"  ✗ {result.event_type}: {result.error}")

    summary = summarize(results)
    if run_log:
        run_log.completed(run_id, results)

    typer.echo("")
    typer.echo(
        f"Converted {summary['succeeded']}/{summary['total']} events "
        f"({summary['bebop']} bebop, {summary['json']} json, {summary['failed']} failed)"
    )
    if verbose:
        typer.echo(f"Run ID: {run_id}")

    if strict and summary["failed"]:
        raise typer.Exit(1)


@app.command("types")
def list_types():
    """List supported event types and their Bebop schema types."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("event_type")
    table.add_column("schema type")
    for kind in EventKind:
        table.add_row(kind.value, kind.type_name)
    console.print(table)


@app.command()
def check(ctx: typer.Context):
    """Check that bebopc and the schema file are available."""
    config = ctx.obj.get("config", {}) if ctx.obj else {}
    binary = config["bebopc"]
    schema = Path(config["schema"])

    location = shutil.which(binary)
    if location:
        typer.secho(f"✓ bebopc: {location}", fg="green")
    else:
        typer.secho(f"○ bebopc: '{binary}' not found (output will be JSON)", fg="yellow")

    if schema.exists():
        typer.secho(f"✓ schema: {schema}", fg="green")
    else:
        typer.secho(f"✗ schema: {schema} not found", fg="red")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    typer.echo(f"sysobs version {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
