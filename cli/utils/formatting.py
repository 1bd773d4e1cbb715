"""Rich Formatting Utilities for Beautiful CLI Output"""

import json
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

STATUS_STYLES = {
    "queued": "yellow",
    "processing": "cyan",
    "done": "green",
    "failed": "red",
}


def print_success(message: str):
    """Print success message with green styling"""
    console.print(f"[green]✓ {message}[/green]")


def print_error(message: str):
    """Print error message with red styling"""
    console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str):
    """Print warning message with yellow styling"""
    console.print(f"[yellow]⚠ {message}[/yellow]")


def print_info(message: str):
    """Print info message with blue styling"""
    console.print(f"[blue]ℹ {message}[/blue]")


def create_jobs_table(jobs: list[dict[str, Any]]) -> Table:
    """Create a formatted table for jobs list"""
    table = Table(title="Jobs", box=box.ROUNDED)

    table.add_column("ID", justify="left", style="cyan", no_wrap=True)
    table.add_column("Type", justify="left", style="magenta")
    table.add_column("Status", justify="center")
    table.add_column("Attempts", justify="center", style="yellow")
    table.add_column("Run At", justify="left", style="white")
    table.add_column("Last Error", justify="left", style="dim")

    for job in jobs:
        status = job.get("status", "")
        style = STATUS_STYLES.get(status, "white")
        table.add_row(
            str(job.get("id", ""))[:8],  # Short ID
            job.get("type", ""),
            f"[{style}]{status}[/{style}]",
            f"{job.get('attempts', 0)}/{job.get('max_attempts', 0)}",
            job.get("run_at") or "—",
            _truncate(job.get("last_error") or "—", 40),
        )

    return table


def create_stats_panel(stats: dict[str, Any]) -> Panel:
    """Create formatted panel for queue statistics"""
    by_status = stats.get("by_status", {})
    lines = [
        "📊 [bold blue]Queue Statistics[/bold blue]",
        "",
        f"• Total Jobs: [blue]{stats.get('total_jobs', 0)}[/blue]",
        f"• Queue Depth: [cyan]{stats.get('queue_depth', 0)}[/cyan]",
        f"• Expired Leases: [yellow]{stats.get('expired_leases', 0)}[/yellow]",
        f"• Failed (last hour): [red]{stats.get('failed_last_hour', 0)}[/red]",
        "",
        "[bold]By Status[/bold]",
    ]
    for status, count in sorted(by_status.items()):
        style = STATUS_STYLES.get(status, "white")
        lines.append(f"• [{style}]{status}[/{style}]: {count}")

    by_type = stats.get("by_type", {})
    if by_type:
        lines.extend(["", "[bold]By Type[/bold]"])
        for job_type, count in sorted(by_type.items()):
            lines.append(f"• [magenta]{job_type}[/magenta]: {count}")

    return Panel("\n".join(lines), title="Job Stats", border_style="green")


def display_job(job: dict[str, Any]):
    """Display a single job with its payload"""
    status = job.get("status", "")
    style = STATUS_STYLES.get(status, "white")

    console.print(
        Panel(
            f"• ID: [cyan]{job.get('id', '')}[/cyan]\n"
            f"• Type: [magenta]{job.get('type', '')}[/magenta]\n"
            f"• Status: [{style}]{status}[/{style}]\n"
            f"• Attempts: [yellow]{job.get('attempts', 0)}/{job.get('max_attempts', 0)}[/yellow]\n"
            f"• Run At: {job.get('run_at') or '—'}\n"
            f"• Locked By: {job.get('locked_by') or '—'}\n"
            f"• Locked Until: {job.get('locked_until') or '—'}\n"
            f"• Created: [dim]{job.get('created_at', '')}[/dim]\n"
            f"• Updated: [dim]{job.get('updated_at', '')}[/dim]",
            title="Job",
            border_style=style,
        )
    )
    console.print(
        Panel(
            json.dumps(job.get("payload"), indent=2, sort_keys=True),
            title="Payload",
            border_style="blue",
        )
    )
    if job.get("last_error"):
        console.print(Panel(job["last_error"], title="Last Error", border_style="red"))


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text
