"""Command-line interface for trying out the debug hook."""

import io

import click
import structlog
from rich.console import Console
from rich.table import Table
from structlog.types import EventDict, WrappedLogger

from .hook import HookConfigError, HookOptions, Level, limit_path
from .logger import reset_logger, setup_logging

console = Console()

LEVEL_CHOICES = [level.value for level in Level]


class EventCollector:
    """Processor that keeps a copy of every event it sees."""

    def __init__(self) -> None:
        self.events: list[dict] = []

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        self.events.append(dict(event_dict))
        return event_dict


def print_table(title: str, rows: list[dict], columns: list[tuple[str, str]]) -> None:
    """Print data in a formatted table.

    Args:
        title: Table title
        rows: List of row dictionaries
        columns: List of (key, header) tuples defining columns
    """
    table = Table(title=title)
    for key, header in columns:
        table.add_column(header, style="cyan")

    for row in rows:
        values = [str(row.get(key, "")) for key, _ in columns]
        table.add_row(*values)

    console.print(table)


def emit_samples(logger: structlog.stdlib.BoundLogger) -> None:
    """Log one sample record at every standard level.

    Args:
        logger: Logger configured with the debug hook
    """
    logger.debug("sample debug record")
    logger.info("sample info record")
    logger.warning("sample warning record")
    logger.error("sample error record")
    logger.critical("sample critical record")


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="DEBUG",
    help="Set logging level",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str) -> None:
    """Debug hook CLI.

    Enriches structured log records with caller information.
    """
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


@cli.command()
@click.option("--app-version", default=None, help="Version tag added as 'ver'")
@click.option(
    "--level",
    "levels",
    multiple=True,
    type=click.Choice(LEVEL_CHOICES),
    help="Level the hook fires for (can be specified multiple times)",
)
@click.option(
    "--path-segments-limit",
    type=int,
    default=None,
    help="Trailing source path segments to keep; 0 disables trimming",
)
@click.option("--stack-offset", type=int, default=0, help="Extra wrapper frames to skip")
@click.pass_context
def demo(
    ctx: click.Context,
    app_version: str | None,
    levels: tuple[str, ...],
    path_segments_limit: int | None,
    stack_offset: int,
) -> None:
    """Emit one record per level and show the enriched fields."""
    try:
        options = HookOptions(
            app_version=app_version,
            levels=levels or None,
            path_segments_limit=path_segments_limit,
            stack_offset=stack_offset,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    collector = EventCollector()
    try:
        logger = setup_logging(
            log_level=ctx.obj["log_level"],
            hook_options=options,
            stream=io.StringIO(),
            extra_processors=(collector,),
        )
        emit_samples(logger)
    except HookConfigError as e:
        raise click.ClickException(str(e)) from e
    finally:
        reset_logger()

    print_table(
        "Enriched records",
        collector.events,
        [("level", "Level"), ("fn", "Function"), ("src", "Source"), ("ver", "Version")],
    )


@cli.command()
@click.argument("path")
@click.option("--limit", type=int, default=3, help="Trailing segments to keep")
def trim(path: str, limit: int) -> None:
    """Trim PATH to its last path segments."""
    click.echo(limit_path(path, limit))


def main() -> None:
    """Entry point for CLI."""
    cli(obj={})
