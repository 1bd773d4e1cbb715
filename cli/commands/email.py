"""Email Commands - Queue transactional emails"""

import typer

from ..client.base import SaaSCoreError
from ..client.endpoints import SaaSCoreClient
from ..utils.config_manager import config
from ..utils.formatting import print_error, print_success

app = typer.Typer(name="email", help="Transactional email commands")


def _report(kind: str, email: str, call) -> None:
    base_url = config.get("api.base_url")
    try:
        with SaaSCoreClient(base_url) as client:
            result = call(client)
    except SaaSCoreError as e:
        print_error(f"Failed to queue {kind} email: {e}")
        raise typer.Exit(1) from None

    print_success(f"Queued {kind} email to {email} as job {result.get('job_id')}")


@app.command("welcome")
def send_welcome(
    email: str = typer.Argument(..., help="Recipient address"),
):
    """👋 Queue a welcome email"""
    _report("welcome", email, lambda client: client.send_welcome_email(email))


@app.command("invite")
def send_invite(
    email: str = typer.Argument(..., help="Recipient address"),
    accept_url: str = typer.Argument(..., help="Link that accepts the invite"),
    org_name: str | None = typer.Option(None, "--org", help="Inviting organization"),
):
    """✉️ Queue an organization invite email"""
    _report(
        "invite",
        email,
        lambda client: client.send_invite_email(email, accept_url, org_name=org_name),
    )
