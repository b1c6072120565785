"""Main CLI application using Click framework."""

import asyncio
import functools
import sys
from collections.abc import Coroutine
from typing import Any, Optional

import click
from rich.color import Color, ColorParseError
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .. import __version__
from ..commands.types import CheckCommandError
from ..config.loader import load_settings
from ..config.settings import get_settings
from ..config.types import ConfigError
from ..dashboard import cleanup_dashboard, get_dashboard
from ..domain.types import DEFAULT_INTERVAL_SECONDS, InvalidConfiguration, SiteWatchError
from ..presentation.views import (
    CheckRow,
    DashboardView,
    WebsiteRow,
    build_check_row,
    build_dashboard,
)
from ..utils.logging import get_structured_logger, setup_logging
from .types import (
    EXIT_FAILURE,
    EXIT_INVALID_INPUT,
    CLIContext,
    CLIError,
    CommandResult,
    OutputFormat,
)

console = Console()
logger = get_structured_logger(__name__)

STATUS_BADGES = {"up": "🟢 Up", "down": "🔴 Down", "unknown": "⚪ Unknown"}


def _run_coroutine(coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Already inside a loop (e.g. invoked from async code): use a fresh one
    import concurrent.futures

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


async def _with_cleanup(coro: Coroutine[Any, Any, Any]) -> Any:
    try:
        return await coro
    finally:
        await cleanup_dashboard()


def async_command(f):
    """Decorator to run async functions in Click commands.

    Known errors are turned into a red message and an exit code: 2 for input
    rejected by validation, 1 for everything else.
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = args[0] if args and isinstance(args[0], CLIContext) else CLIContext()
        try:
            return _run_coroutine(_with_cleanup(f(*args, **kwargs)))
        except KeyboardInterrupt:
            console.print("❌ Operation cancelled by user", style="red")
            sys.exit(EXIT_FAILURE)
        except InvalidConfiguration as e:
            result = CommandResult(
                success=False,
                message=str(e),
                data={"errors": e.errors},
                exit_code=EXIT_INVALID_INPUT,
            )
        except CheckCommandError as e:
            result = CommandResult(
                success=False,
                message=str(e),
                data={
                    "website_id": e.website_id,
                    "states": [state.value for state in e.states],
                },
                exit_code=EXIT_FAILURE,
            )
        except SiteWatchError as e:
            result = CommandResult(success=False, message=str(e), exit_code=EXIT_FAILURE)

        logger.error("CLI command failed", command=f.__name__, error=result.message)
        handle_result(result, ctx)

    return wrapper


def handle_result(result: CommandResult, ctx: CLIContext) -> None:
    """Handle command result output."""
    if result.success:
        if result.message:
            console.print(f"✅ {escape(result.message)}", style="green")
        if result.data and ctx.verbose:
            console.print_json(data=result.data)
    else:
        console.print(f"❌ {escape(result.message)}", style="red")
        if result.data and ctx.debug:
            console.print_json(data=result.data)

    if not result.success:
        sys.exit(result.exit_code)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML configuration file",
)
@click.version_option(__version__, prog_name="sitewatch")
@click.pass_context
def cli(ctx, verbose: bool, debug: bool, config: Optional[str]) -> None:
    """SiteWatch - dashboard for a website uptime monitor."""
    ctx.obj = CLIContext(verbose=verbose, debug=debug, config_path=config)

    try:
        settings = load_settings(config) if config else get_settings()
    except ConfigError as e:
        console.print(f"❌ {escape(str(e))}", style="red")
        sys.exit(EXIT_FAILURE)

    setup_logging(
        log_level="DEBUG" if debug else settings.log_level,
        json_logs=settings.json_logs,
    )

    if ctx.obj.verbose:
        console.print("🚀 SiteWatch CLI", style="bold blue")
        console.print(f"Service: {settings.service.base_url}", style="dim")


# Rendering helpers


def _swatch(color: str) -> Text:
    try:
        Color.parse(color)
    except ColorParseError:
        return Text(color)
    return Text.assemble(("■", color), " ", color)


def _render_stats(view: DashboardView) -> None:
    table = Table(title="Summary")
    for tile in view.stats:
        table.add_column(tile.label, justify="center", style="cyan")
    table.add_row(*(tile.value for tile in view.stats))
    console.print(table)


def _render_categories(view: DashboardView) -> None:
    if not view.categories:
        console.print("No categories yet.", style="dim")
        return

    table = Table(title="Categories")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Color")
    for chip in view.categories:
        table.add_row(chip.id, escape(chip.name), _swatch(chip.color))
    console.print(table)


def _render_websites(rows: tuple[WebsiteRow, ...]) -> None:
    if not rows:
        console.print("No websites yet.", style="dim")
        return

    table = Table(title="Websites")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("URL", style="blue")
    table.add_column("Category")
    table.add_column("Keywords", style="yellow")
    table.add_column("Interval", justify="right")
    table.add_column("Active", justify="center")
    table.add_column("Status", justify="center")
    for row in rows:
        table.add_row(
            row.id,
            escape(row.name),
            escape(row.url),
            escape(row.category_label),
            escape(", ".join(row.keywords)) or "-",
            row.interval_label,
            "yes" if row.is_active else "no",
            STATUS_BADGES[row.status],
        )
    console.print(table)


def _render_checks(rows: tuple[CheckRow, ...]) -> None:
    if not rows:
        console.print("No checks yet.", style="dim")
        return

    table = Table(title="Latest Checks")
    table.add_column("Website", style="green")
    table.add_column("Result", justify="center")
    table.add_column("Status", justify="right")
    table.add_column("Response", justify="right")
    table.add_column("Keywords", style="yellow")
    for row in rows:
        table.add_row(
            escape(row.website_label),
            f"[{'green' if row.is_up else 'red'}]{row.badge}[/]",
            row.status_code,
            row.response_time,
            escape(row.keyword_text),
        )
    console.print(table)


@cli.command()
@click.pass_obj
@async_command
async def dashboard(ctx: CLIContext) -> None:
    """Refresh and show the whole dashboard."""
    dash = await get_dashboard()
    view = await dash.refresh()

    _render_stats(view)
    _render_categories(view)
    _render_websites(view.websites)
    _render_checks(view.checks)

    if view.warnings:
        for warning in view.warnings:
            console.print(f"⚠️  {escape(warning)}", style="yellow")
        raise CLIError(f"Dashboard may be out of date (epoch {view.epoch})")

    if ctx.verbose:
        handle_result(
            CommandResult(
                success=True,
                message=f"Dashboard refreshed (epoch {view.epoch})",
                data={"epoch": view.epoch},
            ),
            ctx,
        )


# Category Commands
@cli.group()
def category():
    """Category management commands."""
    pass


@category.command("add")
@click.argument("name")
@click.option("--color", help="Hex color such as #3b82f6")
@click.pass_obj
@async_command
async def add_category(ctx: CLIContext, name: str, color: Optional[str]) -> None:
    """Create a category."""
    dash = await get_dashboard()
    outcome = await dash.dispatcher.create_category(name, color)

    created = outcome.created
    handle_result(
        CommandResult(
            success=True,
            message=f"Category created: {created.name} ({created.id})",
            data={"category_id": created.id, "epoch": outcome.snapshot.epoch},
        ),
        ctx,
    )


@category.command("list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TABLE.value,
)
@click.pass_obj
@async_command
async def list_categories(ctx: CLIContext, output_format: str) -> None:
    """List categories."""
    dash = await get_dashboard()
    snapshot = await dash.coordinator.refresh()

    if output_format == OutputFormat.JSON.value:
        console.print_json(
            data=[c.model_dump(mode="json") for c in snapshot.categories]
        )
    else:
        _render_categories(build_dashboard(snapshot, dash.coordinator.resolve_category))

    if ctx.verbose:
        handle_result(
            CommandResult(
                success=True,
                message=f"Found {len(snapshot.categories)} categories",
                data={"count": len(snapshot.categories)},
            ),
            ctx,
        )


# Website Commands
@cli.group()
def website():
    """Website management commands."""
    pass


@website.command("add")
@click.argument("name")
@click.argument("url")
@click.option("--category", "category_id", help="Category ID")
@click.option("--keywords", default="", help='Comma separated, e.g. "login, pricing"')
@click.option(
    "--interval",
    "interval_seconds",
    type=int,
    default=DEFAULT_INTERVAL_SECONDS,
    show_default=True,
    help="Check interval in seconds",
)
@click.option("--inactive", is_flag=True, help="Create the website paused")
@click.pass_obj
@async_command
async def add_website(
    ctx: CLIContext,
    name: str,
    url: str,
    category_id: Optional[str],
    keywords: str,
    interval_seconds: int,
    inactive: bool,
) -> None:
    """Add a website to monitor."""
    dash = await get_dashboard()
    outcome = await dash.dispatcher.create_website(
        name=name,
        url=url,
        category_id=category_id,
        keywords=keywords,
        interval_seconds=interval_seconds,
        is_active=not inactive,
    )

    created = outcome.created
    handle_result(
        CommandResult(
            success=True,
            message=f"Website added: {created.name} ({created.url})",
            data={"website_id": created.id, "epoch": outcome.snapshot.epoch},
        ),
        ctx,
    )
    console.print(f"ID: {created.id}", style="cyan")


@website.command("list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TABLE.value,
)
@click.pass_obj
@async_command
async def list_websites(ctx: CLIContext, output_format: str) -> None:
    """List monitored websites."""
    dash = await get_dashboard()
    snapshot = await dash.coordinator.refresh()

    if output_format == OutputFormat.JSON.value:
        console.print_json(data=[w.model_dump(mode="json") for w in snapshot.websites])
    else:
        view = build_dashboard(snapshot, dash.coordinator.resolve_category)
        _render_websites(view.websites)

    if ctx.verbose:
        handle_result(
            CommandResult(
                success=True,
                message=f"Found {len(snapshot.websites)} websites",
                data={"count": len(snapshot.websites)},
            ),
            ctx,
        )


@cli.command()
@click.argument("website_id")
@click.pass_obj
@async_command
async def check(ctx: CLIContext, website_id: str) -> None:
    """Run a check for a website now and show its result."""
    dash = await get_dashboard()
    outcome = await dash.dispatcher.trigger_check(website_id)
    row = build_check_row(outcome.check, outcome.snapshot)

    table = Table(title=f"Check: {escape(row.website_label)}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Result", f"[{'green' if row.is_up else 'red'}]{row.badge}[/]")
    table.add_row("Status Code", row.status_code)
    table.add_row("Response Time", row.response_time)
    table.add_row("Keywords", escape(row.keyword_text))
    if row.error:
        table.add_row("Error", escape(row.error))
    if outcome.check.created_at:
        table.add_row(
            "Checked At", outcome.check.created_at.strftime("%Y-%m-%d %H:%M:%S")
        )
    console.print(table)

    handle_result(
        CommandResult(
            success=True,
            message=f"Check completed: {row.badge}",
            data={
                "check_id": outcome.check.id,
                "states": [state.value for state in outcome.states],
            },
        ),
        ctx,
    )


if __name__ == "__main__":
    cli()
