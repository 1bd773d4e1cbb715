"""Jobs Commands - Enqueue and inspect background jobs"""

import json

import typer
from rich.console import Console
from rich.panel import Panel

from ..client.base import SaaSCoreError
from ..client.endpoints import SaaSCoreClient
from ..utils.config_manager import config
from ..utils.formatting import (
    create_jobs_table,
    create_stats_panel,
    display_job,
    print_error,
    print_info,
    print_success,
)

console = Console()
app = typer.Typer(name="jobs", help="Background job queue commands")


@app.command("enqueue")
def enqueue_job(
    job_type: str = typer.Argument(..., help="Job type (e.g., 'send_email')"),
    payload: str = typer.Option("{}", "--payload", "-p", help="JSON payload"),
    run_at: str | None = typer.Option(
        None, "--run-at", help="ISO-8601 time before which the job is not claimed"
    ),
    max_attempts: int | None = typer.Option(
        None, "--max-attempts", "-m", min=1, help="Attempt ceiling"
    ),
):
    """📥 Enqueue a new job"""
    try:
        body = json.loads(payload)
    except json.JSONDecodeError as e:
        print_error(f"Payload is not valid JSON: {e}")
        raise typer.Exit(1) from None

    base_url = config.get("api.base_url")

    try:
        with SaaSCoreClient(base_url) as client:
            result = client.enqueue_job(
                job_type, body, run_at=run_at, max_attempts=max_attempts
            )
    except SaaSCoreError as e:
        print_error(f"Failed to enqueue job: {e}")
        raise typer.Exit(1) from None

    print_success(f"Enqueued {job_type} job {result.get('job_id')}")


@app.command("list")
def list_jobs(
    status: list[str] | None = typer.Option(
        None, "--status", "-s", help="Filter by status (repeatable)"
    ),
    job_type: str | None = typer.Option(None, "--type", "-t", help="Filter by type"),
    limit: int | None = typer.Option(
        None, "--limit", "-l", help="Number of jobs to show"
    ),
    offset: int = typer.Option(0, "--offset", "-o", help="Skip first N jobs"),
):
    """📋 List jobs"""
    base_url = config.get("api.base_url")
    limit = limit or int(config.get("display.jobs_per_page", 20))

    try:
        with SaaSCoreClient(base_url) as client:
            print_info(
                f"Fetching jobs (limit: {limit}, status: {', '.join(status or []) or 'all'}, "
                f"type: {job_type or 'all'})"
            )
            data = client.list_jobs(
                status=status, job_type=job_type, limit=limit, offset=offset
            )
    except SaaSCoreError as e:
        print_error(f"Failed to list jobs: {e}")
        raise typer.Exit(1) from None

    jobs = data.get("jobs", [])
    total = data.get("total", len(jobs))

    if not jobs:
        console.print(
            Panel(
                "📭 [yellow]No jobs found![/yellow]",
                title="Empty Results",
                border_style="yellow",
            )
        )
        return

    console.print(create_jobs_table(jobs))
    console.print(f"\n📊 Showing [cyan]{len(jobs)}[/cyan] of [yellow]{total}[/yellow] jobs")

    if offset + limit < total:
        console.print(f"💡 Use [cyan]--offset {offset + limit}[/cyan] to see more")


@app.command("show")
def show_job(
    job_id: str = typer.Argument(..., help="Job ID to show"),
):
    """🔍 Show a single job"""
    base_url = config.get("api.base_url")

    try:
        with SaaSCoreClient(base_url) as client:
            job = client.get_job(job_id)
    except SaaSCoreError as e:
        print_error(f"Failed to get job: {e}")
        raise typer.Exit(1) from None

    display_job(job)


@app.command("stats")
def job_stats():
    """📊 Show queue statistics"""
    base_url = config.get("api.base_url")

    try:
        with SaaSCoreClient(base_url) as client:
            stats = client.job_stats()
    except SaaSCoreError as e:
        print_error(f"Failed to get job stats: {e}")
        raise typer.Exit(1) from None

    console.print(create_stats_panel(stats))
