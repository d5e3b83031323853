"""Database schema commands."""

import typer

from src.storefront.core.services.database import DbManageService

from .utils import console, get_db_service

db_app = typer.Typer(help="🗄️  Database commands")


@db_app.command("init")
def init_db() -> None:
    """Create all tables that do not exist yet."""
    db = get_db_service()
    DbManageService(db.engine).create_all()
    console.print(f"[green]✅ Tables created in {db.engine.url.render_as_string()}[/green]")


@db_app.command("reset")
def reset_db(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Drop and recreate every table. All data is lost."""
    if not yes and not typer.confirm("This deletes all data. Continue?"):
        console.print("[yellow]Aborted[/yellow]")
        raise typer.Exit(code=1)

    db = get_db_service()
    manager = DbManageService(db.engine)
    manager.drop_all()
    manager.create_all()
    console.print("[green]✅ Database reset[/green]")
