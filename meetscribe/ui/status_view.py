"""Rich rendering of transcription session status."""

from typing import Optional
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.session import PauseReason, SessionStatusReport
from ..services.cost import format_cost


def _format_time(value) -> str:
    return value.strftime("%H:%M:%S") if value else "-"


def build_status_table(report: SessionStatusReport, title: str = "🎙️ Transcription Session") -> Table:
    """Table of session counters and cost figures."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    if not report.is_running:
        state = Text("⏹️ Stopped", style="bold yellow")
    elif report.is_paused:
        state = Text(f"⏸️ Paused ({report.pause_reason.value})", style="bold red")
    else:
        state = Text("🔴 Transcribing", style="bold green")

    table.add_row("State", state)
    table.add_row("Started", _format_time(report.start_time))
    table.add_row("Last Transcript", _format_time(report.last_transcript_time))
    table.add_row("Chunks Processed", str(report.chunks_processed))
    table.add_row("Silent Chunks Skipped", str(report.silent_chunks_skipped))
    table.add_row("Consecutive Silent", str(report.consecutive_silent_chunks))
    table.add_row("Errors", str(report.errors))
    table.add_row("Estimated Cost", format_cost(report.estimated_cost))
    table.add_row("Cost Saved", format_cost(report.cost_saved))
    if report.transcript_path:
        table.add_row("Transcript", report.transcript_path)
    return table


def build_status_panel(report: SessionStatusReport) -> Panel:
    """Status table, with the pause warning on top while paused."""
    parts = []
    if report.is_paused and report.warning:
        style = "red" if report.pause_reason is PauseReason.MANUAL else "yellow"
        parts.append(Panel(Text(report.warning), title="⚠️ PAUSED", border_style=style))
    parts.append(build_status_table(report))
    return Panel(Group(*parts), border_style="bright_blue")


def print_status(report: SessionStatusReport, console: Optional[Console] = None) -> None:
    (console or Console()).print(build_status_panel(report))
