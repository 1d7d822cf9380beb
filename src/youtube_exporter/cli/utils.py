"""Utility functions for CLI operations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from youtube_exporter.domain.models.auto_resume import AutoResumeRecord, AutoResumeStatus
from youtube_exporter.domain.models.export import (
    ExportBatchResult,
    ExportedVideosPage,
    ExportInitResult,
    ExportStatusResult,
    SweepResult,
)
from youtube_exporter.domain.models.quota import QuotaState

console = Console()


def display_error_summary(errors: list[str]) -> None:
    """Display configuration or processing errors."""
    if not errors:
        return

    console.print(Panel(
        "\n".join(f"• {error}" for error in errors),
        title="[red]❌ Errors Found[/red]",
        border_style="red"
    ))


def display_success_message(message: str) -> None:
    """Display a success message."""
    console.print(Panel(
        f"[green]{message}[/green]",
        title="[green]✅ Success[/green]",
        border_style="green"
    ))


def display_warning_message(message: str) -> None:
    """Display a warning message."""
    console.print(Panel(
        f"[yellow]{message}[/yellow]",
        title="[yellow]⚠️ Warning[/yellow]",
        border_style="yellow"
    ))


def format_duration(seconds: Optional[float]) -> str:
    """Format duration in seconds to human-readable format."""
    if seconds is None:
        return "Unknown"

    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        remaining_seconds = seconds % 60
        return f"{minutes}m {remaining_seconds}s"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m"


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp in local time, with the time left until it for future values."""
    if value is None:
        return "-"
    local = value.astimezone()
    text = local.strftime("%Y-%m-%d %H:%M:%S")
    delta = (value - datetime.now(timezone.utc)).total_seconds()
    if delta > 0:
        text += f" (in {format_duration(delta)})"
    return text


def format_quota(used: int, ceiling: int) -> str:
    """Format quota usage with a color matching how close it is to the ceiling."""
    ratio = used / ceiling if ceiling else 1.0
    color = "green" if ratio < 0.5 else "yellow" if ratio < 0.9 else "red"
    return f"[{color}]{used}/{ceiling}[/{color}]"


def display_init_result(result: ExportInitResult) -> None:
    """Display the outcome of export initialization."""
    table = Table(title="📋 Export Sources")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("New playlists", str(result.playlist_sources))
    table.add_row("New channels", str(result.channel_sources))
    table.add_row("Total sources", str(result.total_sources))
    table.add_row("Already completed", str(result.already_completed))

    console.print(table)


def create_batch_table(results: list[ExportBatchResult], title: str = "📦 Export Batches") -> Table:
    """Create a table with one row per batch."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Source", style="cyan", max_width=40)
    table.add_column("Type")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("More", justify="center")
    table.add_column("Quota", justify="right")
    table.add_column("Status", justify="center")

    for index, result in enumerate(results, start=1):
        if result.export_complete and not result.source_id:
            status = "[green]✅ Complete[/green]"
        elif result.skipped:
            status = "[yellow]⏭️ Skipped[/yellow]"
        elif result.quota_exhausted:
            status = "[red]⛔ Quota[/red]"
        elif result.export_complete:
            status = "[green]✅ Complete[/green]"
        else:
            status = "[blue]▶ Running[/blue]"

        table.add_row(
            str(index),
            result.source_title or result.source_id or "-",
            result.source_type or "-",
            str(result.videos_imported),
            "✅" if result.has_more else "-",
            format_quota(result.quota_used_today, result.quota_ceiling),
            status,
        )

    return table


def display_status(status: ExportStatusResult) -> None:
    """Display a user's export progress."""
    table = Table(title="📊 Export Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Total sources", str(status.total_sources))
    table.add_row("Completed", str(status.completed_sources))
    table.add_row("In progress", str(status.in_progress_sources))
    table.add_row("Pending", str(status.pending_sources))
    table.add_row("Completion", f"{status.completion_rate:.1f}%")
    table.add_row("Videos imported", str(status.total_videos_imported))
    table.add_row("English videos", str(status.english_videos_count))
    table.add_row("Quota today", format_quota(status.quota_used_today, status.quota_ceiling))
    table.add_row("Last import", format_timestamp(status.last_imported_at))
    table.add_row("Work left", "Yes" if status.has_incomplete_work else "No")

    console.print(table)


def create_video_table(page: ExportedVideosPage, title: str = "Videos") -> Table:
    """Create a table displaying exported videos."""
    table = Table(title=f"{title} (page {page.page}/{max(page.total_pages, 1)}, {page.total} total)")
    table.add_column("Video ID", style="dim")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Channel", max_width=24)
    table.add_column("Language", justify="center")
    table.add_column("Published", style="dim")
    table.add_column("Source", max_width=24)

    for video in page.videos:
        table.add_row(
            video.video_id,
            video.title[:37] + "..." if len(video.title) > 40 else video.title,
            video.channel_title or "-",
            video.language or "-",
            video.published_at.strftime("%Y-%m-%d") if video.published_at else "-",
            video.source_title or video.source_id,
        )

    return table


def create_quota_table(states: list[QuotaState], title: str = "🔋 Quota Usage") -> Table:
    """Create a table with one row per quota day."""
    table = Table(title=title)
    table.add_column("Day", style="cyan")
    table.add_column("Consumed", justify="right")
    table.add_column("Remaining", justify="right", style="green")
    table.add_column("Of daily limit", justify="right")

    for state in states:
        table.add_row(
            state.day.isoformat(),
            format_quota(state.consumed, state.ceiling),
            str(state.remaining),
            f"{state.percent_used:.1f}%",
        )

    return table


def display_auto_resume(record: Optional[AutoResumeRecord]) -> None:
    """Display a user's auto-resume state."""
    if record is None:
        console.print("[dim]Auto-resume was never enabled for this user.[/dim]")
        return

    status_styles = {
        AutoResumeStatus.ACTIVE: "[green]▶ Active[/green]",
        AutoResumeStatus.PAUSED: "[yellow]⏸ Paused[/yellow]",
        AutoResumeStatus.DISABLED: "[dim]⏹ Disabled[/dim]",
    }

    table = Table(title="🔁 Auto-Resume")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Status", status_styles[record.status])
    table.add_row("Pause reason", record.paused_reason.value)
    table.add_row("Paused until", format_timestamp(record.paused_until))
    table.add_row("Last attempt", format_timestamp(record.last_attempt))
    table.add_row("Next attempt", format_timestamp(record.next_attempt))
    table.add_row("Consecutive failures", str(record.consecutive_failures))
    table.add_row("Last error", record.last_error or "-")

    console.print(table)


def display_sweep_result(result: SweepResult) -> None:
    """Display the outcome of an auto-resume sweep."""
    table = Table(title="🧹 Auto-Resume Sweep")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Batches run", str(result.batches))
    table.add_row("Still active", f"[green]{result.processed}[/green]")
    table.add_row("Paused", f"[yellow]{result.paused}[/yellow]")
    table.add_row("Completed", f"[green]{result.completed}[/green]")
    table.add_row("Disabled", str(result.disabled))
    table.add_row("Skipped", f"[dim]{result.skipped}[/dim]")
    table.add_row("Errors", f"[red]{len(result.errors)}[/red]" if result.errors else "0")
    table.add_row("Duration", format_duration(result.duration_seconds))

    console.print(table)

    if result.has_errors:
        display_error_summary([f"{error['user_id']}: {error['error']}" for error in result.errors])
