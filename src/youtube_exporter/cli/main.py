"""Main CLI interface for YouTube Exporter."""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path
from typing import Any, NoReturn, Optional

import click
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from youtube_exporter.application.use_cases.validate_config import ValidateConfigUseCase
from youtube_exporter.cli.utils import (
    console,
    create_batch_table,
    create_quota_table,
    create_video_table,
    display_auto_resume,
    display_error_summary,
    display_init_result,
    display_status,
    display_success_message,
    display_sweep_result,
    display_warning_message,
)
from youtube_exporter.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ExportInProgressError,
    QuotaExceededError,
    YouTubeExporterError,
)
from youtube_exporter.domain.models.export import ExportBatchResult
from youtube_exporter.domain.models.source import RemoteSource
from youtube_exporter.infrastructure.container import (
    Container,
    create_container,
    get_configuration_provider,
    get_database,
    get_export_service,
    get_scheduler_manager,
    get_youtube_auth_manager,
)
from youtube_exporter.infrastructure.logging_setup import configure_logging


def _load_container(ctx: click.Context) -> Container:
    """Create the container and configure logging from its settings."""
    container = create_container(ctx.obj["config_path"])
    configure_logging(
        get_configuration_provider(container).get_logging_config(),
        verbose=ctx.obj["verbose"],
    )
    return container


def _fail(message: str, error: Exception, verbose: bool, tip: Optional[str] = None) -> NoReturn:
    console.print(f"\n[red]❌ {message}:[/red] {error}")
    if tip:
        console.print(f"\n[yellow]💡 Tip:[/yellow] {tip}")
    if verbose:
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="YouTube Exporter")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default="config/config.yml",
    help="Path to configuration file",
)
@click.option(
    "--user",
    "-u",
    envvar="YOUTUBE_EXPORTER_USER",
    default="default",
    show_default=True,
    help="User whose export is managed (or set YOUTUBE_EXPORTER_USER)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def cli(ctx: click.Context, config: Path, user: str, verbose: bool) -> None:
    """
    YouTube Exporter - Quota-aware export of a YouTube library.

    Imports the videos of a user's playlists and subscribed channels into a
    local store, one page per batch, and keeps each day's YouTube Data API
    usage under a safety ceiling. Auto-resume picks the export back up after
    the daily quota resets.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["user_id"] = user
    ctx.obj["verbose"] = verbose

    if verbose:
        console.print(f"[dim]Using configuration: {config} (user: {user})[/dim]")


@cli.group()
def db() -> None:
    """Export store management commands."""
    pass


@db.command("init")
@click.pass_context
def db_init(ctx: click.Context) -> None:
    """Create the export store tables."""
    try:
        container = _load_container(ctx)
        database = get_database(container)
        database.create_schema()
        if not database.check_connection():
            display_error_summary(["Could not connect to the export store"])
            sys.exit(1)
        display_success_message(f"Export store ready ({database.dialect_name})")
    except YouTubeExporterError as e:
        _fail("Database Error", e, ctx.obj["verbose"])


@cli.command("init")
@click.option(
    "--playlist",
    "playlists",
    multiple=True,
    help="Register a specific playlist ID (can be used multiple times)",
)
@click.option(
    "--channel",
    "channels",
    multiple=True,
    help="Register a specific channel ID (can be used multiple times)",
)
@click.pass_context
def init_export(ctx: click.Context, playlists: tuple[str, ...], channels: tuple[str, ...]) -> None:
    """Register the sources to export, discovering them when none are given."""
    user_id = ctx.obj["user_id"]

    try:
        service = get_export_service(_load_container(ctx))

        if playlists or channels:
            result = asyncio.run(service.init_export(
                user_id,
                [RemoteSource(id=playlist_id) for playlist_id in playlists],
                [RemoteSource(id=channel_id) for channel_id in channels],
            ))
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                progress.add_task("Discovering playlists and subscriptions...", total=None)
                result = asyncio.run(service.init_export(user_id))

        display_init_result(result)
        if result.playlist_sources + result.channel_sources == 0:
            console.print("\n[dim]No new sources; existing progress was kept.[/dim]")

    except QuotaExceededError as e:
        _fail("Quota Exhausted", e, ctx.obj["verbose"], "Try again after the daily quota resets.")
    except AuthenticationError as e:
        _fail("Authentication Error", e, ctx.obj["verbose"], "Run 'youtube-exporter auth setup' first.")
    except YouTubeExporterError as e:
        _fail("Error initializing export", e, ctx.obj["verbose"])


@cli.command()
@click.option(
    "--until-stop",
    is_flag=True,
    help="Keep running batches until the quota ceiling or the end of the export",
)
@click.option(
    "--max-batches",
    type=click.IntRange(min=1),
    default=None,
    help="Upper bound on batches when used with --until-stop",
)
@click.pass_context
def batch(ctx: click.Context, until_stop: bool, max_batches: Optional[int]) -> None:
    """Run export batches for the current user."""
    user_id = ctx.obj["user_id"]

    try:
        service = get_export_service(_load_container(ctx))
        results = asyncio.run(_run_batches(service, user_id, until_stop, max_batches))
    except ExportInProgressError as e:
        _fail("Export busy", e, ctx.obj["verbose"], "Another batch or sweep holds this user's export; retry shortly.")
    except AuthenticationError as e:
        _fail("Authentication Error", e, ctx.obj["verbose"], "Run 'youtube-exporter auth setup' first.")
    except YouTubeExporterError as e:
        _fail("Batch failed", e, ctx.obj["verbose"])

    console.print(create_batch_table(results))

    last = results[-1]
    imported = sum(result.videos_imported for result in results)
    if last.export_complete:
        display_success_message(f"Export complete. {imported} new videos in this run.")
    elif last.quota_exhausted:
        display_warning_message(
            f"Quota ceiling reached ({last.quota_used_today}/{last.quota_ceiling}). "
            f"{imported} new videos in this run."
        )
    else:
        console.print(f"\n[green]✅ {imported} new videos in this run.[/green]")


async def _run_batches(
    service: Any,
    user_id: str,
    until_stop: bool,
    max_batches: Optional[int],
) -> list[ExportBatchResult]:
    results: list[ExportBatchResult] = []
    limit = max_batches if until_stop else 1

    while True:
        result = await service.run_export_batch(user_id)
        results.append(result)
        if result.should_stop or not until_stop:
            break
        if limit is not None and len(results) >= limit:
            break

    return results


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show export progress for the current user."""
    try:
        service = get_export_service(_load_container(ctx))
        display_status(asyncio.run(service.get_export_status(ctx.obj["user_id"])))
    except YouTubeExporterError as e:
        _fail("Error reading status", e, ctx.obj["verbose"])


@cli.command()
@click.option("--language", help="Only videos whose language starts with this prefix (e.g. 'en')")
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--limit", type=click.IntRange(min=1, max=1000), default=50, show_default=True)
@click.pass_context
def videos(ctx: click.Context, language: Optional[str], page: int, limit: int) -> None:
    """List exported videos, newest first."""
    try:
        service = get_export_service(_load_container(ctx))
        result = asyncio.run(service.list_exported_videos(ctx.obj["user_id"], language, page, limit))
    except YouTubeExporterError as e:
        _fail("Error listing videos", e, ctx.obj["verbose"])

    if not result.videos:
        console.print("[dim]No exported videos match.[/dim]")
        return

    title = f"Exported videos ({language})" if language else "Exported videos"
    console.print(create_video_table(result, title))


@cli.command()
@click.option(
    "--history",
    "days",
    type=click.IntRange(min=1, max=90),
    default=None,
    help="Show usage for the last N quota days",
)
@click.pass_context
def quota(ctx: click.Context, days: Optional[int]) -> None:
    """Show quota usage for the current user."""
    user_id = ctx.obj["user_id"]

    try:
        service = get_export_service(_load_container(ctx))
        if days:
            states = asyncio.run(service.get_quota_history(user_id, days))
        else:
            states = [asyncio.run(service.get_quota_status(user_id))]
    except YouTubeExporterError as e:
        _fail("Error reading quota", e, ctx.obj["verbose"])

    console.print(create_quota_table(states))


@cli.group("auto-resume")
def auto_resume() -> None:
    """Auto-resume management commands."""
    pass


@auto_resume.command("enable")
@click.pass_context
def auto_resume_enable(ctx: click.Context) -> None:
    """Enable auto-resume for the current user."""
    try:
        service = get_export_service(_load_container(ctx))
        record = asyncio.run(service.enable_auto_resume(ctx.obj["user_id"]))
    except YouTubeExporterError as e:
        _fail("Error enabling auto-resume", e, ctx.obj["verbose"])

    console.print("[green]✅ Auto-resume enabled[/green]")
    display_auto_resume(record)


@auto_resume.command("disable")
@click.pass_context
def auto_resume_disable(ctx: click.Context) -> None:
    """Disable auto-resume for the current user."""
    try:
        service = get_export_service(_load_container(ctx))
        asyncio.run(service.disable_auto_resume(ctx.obj["user_id"]))
    except YouTubeExporterError as e:
        _fail("Error disabling auto-resume", e, ctx.obj["verbose"])

    console.print("[green]✅ Auto-resume disabled[/green]")


@auto_resume.command("status")
@click.pass_context
def auto_resume_status(ctx: click.Context) -> None:
    """Show the auto-resume state of the current user."""
    try:
        service = get_export_service(_load_container(ctx))
        display_auto_resume(asyncio.run(service.get_auto_resume_status(ctx.obj["user_id"])))
    except YouTubeExporterError as e:
        _fail("Error reading auto-resume state", e, ctx.obj["verbose"])


@auto_resume.command("attempt")
@click.pass_context
def auto_resume_attempt(ctx: click.Context) -> None:
    """Run one auto-resume attempt now, as the scheduler would."""
    try:
        service = get_export_service(_load_container(ctx))
        outcome = asyncio.run(service.attempt_auto_resume(ctx.obj["user_id"]))
    except YouTubeExporterError as e:
        _fail("Auto-resume attempt failed", e, ctx.obj["verbose"])

    if not outcome.ran:
        console.print("[dim]Nothing to do: auto-resume is not due or another batch is running.[/dim]")
    elif outcome.failed:
        display_warning_message(f"Batch failed: {outcome.error}")
    else:
        console.print(create_batch_table([outcome.result]))
    display_auto_resume(outcome.record)


@cli.command()
@click.option(
    "--max-batches",
    type=click.IntRange(min=1),
    default=None,
    help="Batch budget for this sweep (defaults to the configured value)",
)
@click.pass_context
def sweep(ctx: click.Context, max_batches: Optional[int]) -> None:
    """Run one auto-resume sweep over every eligible user."""
    try:
        service = get_export_service(_load_container(ctx))
        result = asyncio.run(service.run_auto_resume_sweep(max_batches))
    except YouTubeExporterError as e:
        _fail("Sweep failed", e, ctx.obj["verbose"])

    display_sweep_result(result)


@cli.group()
def scheduler() -> None:
    """Background scheduler commands."""
    pass


@scheduler.command("run")
@click.option("--once", is_flag=True, help="Run a single sweep and exit")
@click.pass_context
def scheduler_run(ctx: click.Context, once: bool) -> None:
    """Run auto-resume sweeps on the configured interval until interrupted."""
    try:
        manager = get_scheduler_manager(_load_container(ctx))
    except YouTubeExporterError as e:
        _fail("Error starting scheduler", e, ctx.obj["verbose"])

    if once:
        result = manager.run_sweep()
        if result is None:
            display_error_summary(["Sweep failed; see the log for details"])
            sys.exit(1)
        display_sweep_result(result)
        return

    console.print(Panel(
        f"[blue]⏱️ Sweeping every {manager.interval_minutes} minutes, "
        f"up to {manager.max_batches} batches per sweep[/blue]\n"
        "Press Ctrl+C to stop.",
        title="Scheduler",
        border_style="blue"
    ))

    manager.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping scheduler...[/yellow]")
    finally:
        manager.shutdown()


@cli.group()
def auth() -> None:
    """Authentication management commands."""
    pass


@auth.command()
@click.pass_context
def setup(ctx: click.Context) -> None:
    """Set up YouTube API authentication for the current user."""
    user_id = ctx.obj["user_id"]
    verbose = ctx.obj["verbose"]

    console.print(Panel(
        "[blue]🔐 YouTube API Authentication Setup[/blue]\n\n"
        f"This will authorize read access to the YouTube library of '{user_id}'.\n"
        "You'll need your credentials.json file from Google Cloud Console.",
        title="Authentication Setup",
        border_style="blue"
    ))

    try:
        container = _load_container(ctx)
        auth_manager = get_youtube_auth_manager(container)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Setting up authentication...", total=None)

            # Opens the consent page when no usable token is stored
            auth_manager.get_authenticated_service(user_id, interactive=True)
            user_info = auth_manager.get_user_info(user_id)
            progress.update(task, description="Authentication successful!")

        _display_user_info(user_info)

        console.print("\n[green]✅ Authentication setup complete![/green]")

    except ConfigurationError as e:
        console.print(f"\n[red]❌ Configuration Error:[/red] {e}")
        _show_auth_help()
        sys.exit(1)
    except AuthenticationError as e:
        console.print(f"\n[red]❌ Authentication Error:[/red] {e}")
        _show_auth_help()
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]❌ Unexpected Error:[/red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)


@auth.command("status")
@click.pass_context
def auth_status(ctx: click.Context) -> None:
    """Check authentication status of the current user."""
    user_id = ctx.obj["user_id"]

    try:
        container = _load_container(ctx)
        auth_manager = get_youtube_auth_manager(container)

        if auth_manager.is_authenticated(user_id):
            console.print("[green]✅ Authenticated[/green]")
            _display_user_info(auth_manager.get_user_info(user_id))
        else:
            console.print("[red]❌ Not authenticated[/red]")
            console.print("\n[yellow]💡 Tip:[/yellow] Run 'youtube-exporter auth setup' to authenticate.")

    except YouTubeExporterError as e:
        _fail("Error checking authentication", e, ctx.obj["verbose"])


@auth.command()
@click.confirmation_option(prompt="Are you sure you want to reset authentication?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Reset authentication (remove the stored token of the current user)."""
    try:
        container = _load_container(ctx)
        get_youtube_auth_manager(container).revoke_credentials(ctx.obj["user_id"])
        console.print("[green]✅ Authentication reset successfully[/green]")
        console.print("\n[yellow]💡 Tip:[/yellow] Run 'youtube-exporter auth setup' to re-authenticate.")

    except YouTubeExporterError as e:
        _fail("Error resetting authentication", e, ctx.obj["verbose"])


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate configuration, the export store and authentication."""
    user_id = ctx.obj["user_id"]

    console.print(Panel(
        "[blue]🔍 Configuration Validation[/blue]\n"
        "Checking configuration file, export store, and authentication...",
        title="Validation",
        border_style="blue"
    ))

    try:
        container = _load_container(ctx)
        config_provider = get_configuration_provider(container)
        use_case = ValidateConfigUseCase(config_provider)

        console.print("\n[cyan]📋 Configuration Check[/cyan]")
        errors = use_case.execute()
        credentials_error = use_case.validate_credentials_file(config_provider.get_credentials_file())
        if credentials_error:
            errors.append(credentials_error)
        if errors:
            display_error_summary(errors)
            sys.exit(1)

        console.print(
            f"✅ Quota ceiling: {config_provider.get_quota_ceiling()} of "
            f"{config_provider.get_daily_limit()} units per day"
        )
        console.print(f"✅ Page cost: {config_provider.get_page_cost()} units")
        console.print(f"✅ Quota resets at midnight {config_provider.get_quota_window().timezone_name}")
        console.print(f"✅ Missing sources: {config_provider.get_missing_source_policy()}")

        console.print("\n[cyan]🗄️ Export Store Check[/cyan]")
        if get_database(container).check_connection():
            console.print("✅ Export store reachable")
        else:
            console.print("[red]❌ Export store unreachable[/red]")
            sys.exit(1)

        console.print("\n[cyan]🔐 Authentication Check[/cyan]")
        auth_manager = get_youtube_auth_manager(container)
        if auth_manager.is_authenticated(user_id):
            console.print(f"✅ Authentication valid for '{user_id}'")
        else:
            console.print(f"[yellow]⚠️  '{user_id}' is not authenticated[/yellow]")

        console.print("\n[green]✅ Validation complete![/green]")

    except YouTubeExporterError as e:
        _fail("Validation failed", e, ctx.obj["verbose"])


def _display_user_info(user_info: dict[str, Any]) -> None:
    """Display user authentication information."""
    table = Table(title="Authentication Info")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Authenticated", "✅ Yes" if user_info.get("authenticated") else "❌ No")

    if user_info.get("has_channel"):
        table.add_row("Channel", user_info.get("channel_title", "Unknown"))
        table.add_row("Channel ID", user_info.get("channel_id", "Unknown"))
        table.add_row("Subscribers", user_info.get("subscriber_count", "0"))
        table.add_row("Videos", user_info.get("video_count", "0"))
    else:
        table.add_row("Channel", "❌ No YouTube channel found")

    console.print(table)


def _show_auth_help() -> None:
    """Show authentication help information."""
    console.print(Panel(
        "[yellow]🔧 Authentication Setup Help[/yellow]\n\n"
        "To set up authentication:\n\n"
        "1. Go to Google Cloud Console (console.cloud.google.com)\n"
        "2. Create a new project or select existing project\n"
        "3. Enable the YouTube Data API v3\n"
        "4. Create OAuth2 credentials (Desktop application)\n"
        "5. Download the credentials.json file\n"
        "6. Set youtube_api.credentials_file in config.yml to its path",
        title="Setup Help",
        border_style="yellow"
    ))


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
