"""Migration Commands - Alembic schema management"""

from pathlib import Path

import typer
from alembic import command
from alembic.config import Config
from alembic.util.exc import CommandError
from rich.console import Console

from ..utils.formatting import print_error, print_success

console = Console()
app = typer.Typer(name="migrate", help="Database migration commands")

DatabaseUrlOption = typer.Option(
    None, "--database-url", help="Override DATABASE_URL for this command"
)
ConfigFileOption = typer.Option(
    Path("alembic.ini"), "--config", "-c", help="Path to alembic.ini"
)


def _alembic_config(config_file: Path, database_url: str | None) -> Config:
    if not config_file.exists():
        print_error(f"Alembic config not found: {config_file}")
        raise typer.Exit(1)

    cfg = Config(str(config_file))
    if database_url:
        # ConfigParser interpolation treats % specially
        cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


@app.command("up")
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
    database_url: str | None = DatabaseUrlOption,
    config_file: Path = ConfigFileOption,
):
    """⬆️ Apply migrations up to a revision"""
    cfg = _alembic_config(config_file, database_url)
    try:
        command.upgrade(cfg, revision)
    except CommandError as e:
        print_error(f"Upgrade failed: {e}")
        raise typer.Exit(1) from None
    print_success(f"Upgraded to {revision}")


@app.command("down")
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    database_url: str | None = DatabaseUrlOption,
    config_file: Path = ConfigFileOption,
):
    """⬇️ Revert migrations down to a revision"""
    cfg = _alembic_config(config_file, database_url)
    try:
        command.downgrade(cfg, revision)
    except CommandError as e:
        print_error(f"Downgrade failed: {e}")
        raise typer.Exit(1) from None
    print_success(f"Downgraded to {revision}")


@app.command("status")
def status(
    database_url: str | None = DatabaseUrlOption,
    config_file: Path = ConfigFileOption,
):
    """📜 Show migration history"""
    cfg = _alembic_config(config_file, database_url)
    command.history(cfg, indicate_current=True)


@app.command("current")
def current(
    database_url: str | None = DatabaseUrlOption,
    config_file: Path = ConfigFileOption,
):
    """📍 Show the current database revision"""
    cfg = _alembic_config(config_file, database_url)
    command.current(cfg, verbose=True)
