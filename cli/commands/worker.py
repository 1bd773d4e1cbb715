"""Worker Commands - Run the background job worker"""

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel

from backend.config.settings import Settings
from backend.v1.infra.jobs.worker import run_worker

from ..utils.formatting import print_error, print_info

console = Console()
app = typer.Typer(name="worker", help="Background job worker commands")


@app.command("run")
def run(
    once: bool = typer.Option(
        False, "--once", help="Claim and process at most one job, then exit"
    ),
    worker_id: str | None = typer.Option(
        None, "--worker-id", help="Override JOBS_WORKER_ID"
    ),
    poll_interval_ms: int | None = typer.Option(
        None, "--poll-interval-ms", min=10, help="Override JOBS_POLL_INTERVAL_MS"
    ),
):
    """⚙️ Run the job worker until interrupted"""
    overrides = {}
    if worker_id:
        overrides["jobs_worker_id"] = worker_id
    if poll_interval_ms:
        overrides["jobs_poll_interval_ms"] = poll_interval_ms

    try:
        settings = Settings(**overrides)
    except ValueError as e:
        print_error(f"Invalid settings: {e}")
        raise typer.Exit(1) from None

    if not once:
        console.print(
            Panel(
                f"• Worker ID: [cyan]{settings.jobs_worker_id}[/cyan]\n"
                f"• Poll Interval: [yellow]{settings.jobs_poll_interval_ms}ms[/yellow]\n"
                f"• Lock TTL: [yellow]{settings.jobs_lock_ttl_s}s[/yellow]\n"
                f"• Environment: [blue]{settings.environment}[/blue]",
                title="Job Worker",
                border_style="green",
            )
        )
        print_info("Press Ctrl+C to stop")

    asyncio.run(run_worker(settings, once=once))
