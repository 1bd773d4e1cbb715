"""SaaS Core CLI - Main Entry Point"""

import typer
from rich.console import Console
from rich.panel import Panel

from .client.base import SaaSCoreError
from .client.endpoints import SaaSCoreClient
from .commands import config, email, jobs, migrate, worker
from .utils.config_manager import config as config_manager
from .utils.formatting import print_error, print_info

console = Console()

app = typer.Typer(
    name="saas-core",
    help="⚙️ SaaS Core - background job queue CLI",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.add_typer(jobs.app, name="jobs")
app.add_typer(email.app, name="email")
app.add_typer(worker.app, name="worker")
app.add_typer(migrate.app, name="migrate")
app.add_typer(config.app, name="config")


@app.command()
def status():
    """📊 Check API status and queue health"""
    base_url = config_manager.get("api.base_url")
    print_info(f"Checking connection to: {base_url}")

    try:
        with SaaSCoreClient(base_url) as client:
            health = client.health_check()
    except SaaSCoreError as e:
        print_error(f"Failed to connect: {e}")
        console.print(
            Panel(
                f"🚫 [red]Connection Failed[/red]\n\n"
                f"Make sure the SaaS Core API is running at:\n"
                f"[blue]{base_url}[/blue]\n\n"
                f"You can update the API URL with:\n"
                f"[cyan]saas-core config set api.base_url <url>[/cyan]",
                title="Connection Error",
                border_style="red",
            )
        )
        raise typer.Exit(1) from None

    database = health.get("database") or {}
    queue = health.get("queue") or {}
    healthy = bool(health.get("ok"))
    db_state = (
        "[green]connected[/green]"
        if database.get("connected")
        else f"[red]down[/red] ({database.get('error', 'unknown')})"
    )

    console.print(
        Panel(
            f"{'🚀 [green]Healthy[/green]' if healthy else '⚠️ [red]Degraded[/red]'}\n\n"
            f"• Version: [cyan]{health.get('version', 'unknown')}[/cyan]\n"
            f"• Environment: [yellow]{health.get('environment', 'unknown')}[/yellow]\n"
            f"• Database: {db_state}\n"
            f"• Queue Depth: [cyan]{queue.get('queue_depth', 0)}[/cyan]\n"
            f"• Processing: [cyan]{queue.get('processing', 0)}[/cyan]\n"
            f"• Expired Leases: [yellow]{queue.get('expired_leases', 0)}[/yellow]\n"
            f"• Failed: [red]{queue.get('failed', 0)}[/red]\n"
            f"• API URL: [blue]{base_url}[/blue]",
            title="System Status",
            border_style="green" if healthy else "red",
        )
    )

    if not healthy:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
