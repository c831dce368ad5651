"""Command-line interface for sheetcheck."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import click
import structlog
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.text import Text

from sheetcheck import __version__
from sheetcheck.config import Config, load_config
from sheetcheck.errors import SheetCheckError
from sheetcheck.io.csv_io import read_urls_from_csv, write_results_csv
from sheetcheck.models import ValidationOutcome, Verdict
from sheetcheck.observability import ProgressReporter, configure_logging
from sheetcheck.runner import run_batch

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)
logger = structlog.get_logger(__name__)


def format_outcome(outcome: ValidationOutcome) -> Text:
    """``[OK] url`` in green or ``[KO] url - comments`` in red."""
    if outcome.result is Verdict.OK:
        status = Text("[OK]", style="green")
    else:
        status = Text("[KO]", style="red")
    line = Text.assemble(status, " ", outcome.url)
    if outcome.comments:
        line.append(f" - {outcome.comments}")
    return line


def _positive_delay(ctx: click.Context, param: click.Parameter, value: Optional[int]) -> Optional[int]:
    if value is not None and value <= 0:
        raise click.BadParameter("the delay must be a strictly positive integer (ms)")
    return value


async def _validate_all(urls: List[str], config: Config) -> List[ValidationOutcome]:
    progress = ProgressReporter(len(urls), interval=config.monitoring.progress_interval)

    def on_outcome(outcome: ValidationOutcome) -> None:
        progress.on_processed()
        console.print(format_outcome(outcome))

    progress.start()
    try:
        return await run_batch(urls, config, on_outcome)
    finally:
        await progress.finish()


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file path (YAML)",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], log_level: Optional[str]) -> None:
    """sheetcheck - checks product pages for their safety and technical data sheets."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except (ValidationError, FileNotFoundError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    if log_level:
        config.monitoring.log_level = log_level.upper()
    configure_logging(config.monitoring)
    ctx.obj["config"] = config


@cli.command()
@click.option("-i", "--input", "input_path", type=click.Path(path_type=Path), help="Input CSV file")
@click.option("-o", "--output", "output_path", type=click.Path(path_type=Path), help="Output CSV file")
@click.option("-d", "--delay", type=int, callback=_positive_delay, help="Delay before each HTTP request (ms)")
@click.option("-c", "--concurrency", type=click.IntRange(min=1), help="Maximum URLs validated concurrently")
@click.option("--skip-pdf-validation", is_flag=True, help="Do not probe the PDF links")
@click.option("--pdf-validation", is_flag=True, help="Force PDF link probing (default)")
@click.option("--renderer", type=click.Choice(["http", "browser"]), help="Page rendering backend")
@click.pass_context
def validate(
    ctx: click.Context,
    input_path: Optional[Path],
    output_path: Optional[Path],
    delay: Optional[int],
    concurrency: Optional[int],
    skip_pdf_validation: bool,
    pdf_validation: bool,
    renderer: Optional[str],
) -> None:
    """Validate every product URL of the input CSV and write the verdicts."""
    config: Config = ctx.obj["config"]

    if input_path is not None:
        config.io.input_path = input_path
    if output_path is not None:
        config.io.output_path = output_path
    if delay is not None:
        config.fetch.delay_ms = delay
    if concurrency is not None:
        config.validation.concurrency = concurrency
    if renderer is not None:
        config.validation.renderer = renderer
    if skip_pdf_validation:
        config.validation.validate_pdf_links = False
    if pdf_validation:
        config.validation.validate_pdf_links = True

    input_file = config.io.input_path.resolve()
    output_file = config.io.output_path.resolve()

    try:
        urls = read_urls_from_csv(input_file)
        outcomes: List[ValidationOutcome] = []
        if urls:
            outcomes = asyncio.run(_validate_all(urls, config))
        else:
            err_console.print("No valid URL found in the input file.", style="yellow")
        write_results_csv(output_file, outcomes, config.io.output_delimiter)
    except (SheetCheckError, OSError) as e:
        logger.debug("Run failed", error=str(e), exc_info=True)
        err_console.print(f"Error: {e}", style="red", markup=False)
        sys.exit(1)

    console.print(f"\nResults saved to {output_file}", markup=False)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
