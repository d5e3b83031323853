"""User management commands."""

import typer
from rich.table import Table
from sqlmodel import select

from src.storefront.core.errors import StorefrontError
from src.storefront.core.models import Role
from src.storefront.core.services.user_service import UserService
from src.storefront.entities.core.user import UserTable
from src.storefront.runtime.context import get_config

from .utils import console, get_db_service

users_app = typer.Typer(help="👤 Manage user accounts")


@users_app.command("add")
def add_user(
    username: str = typer.Argument(..., help="Display name"),
    email: str = typer.Option(..., "--email", "-e", help="Login email"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    role: Role = typer.Option(Role.CUSTOMER, "--role", "-r", help="Account role"),
    admin_id: str | None = typer.Option(
        None, "--admin-id", help="Staff identifier, required for admins"
    ),
) -> None:
    """Create a user with a bcrypt-hashed password."""
    db = get_db_service()
    with db.session_scope() as session:
        try:
            user = UserService(session, get_config().security).register(
                username=username,
                email=email,
                password=password,
                role=role.value,
                admin_id=admin_id,
            )
        except StorefrontError as e:
            console.print(f"[red]❌ {e.message}[/red]")
            raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Created {user.role.value} '{user.username}' with id {user.id}[/green]")


@users_app.command("list")
def list_users(
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum number of users to show"),
) -> None:
    """List registered users."""
    db = get_db_service()
    with db.session_scope() as session:
        rows = session.exec(select(UserTable).order_by(UserTable.id).limit(limit)).all()

        if not rows:
            console.print("[yellow]No users found[/yellow]")
            return

        table = Table(title="Users")
        table.add_column("ID", style="cyan")
        table.add_column("Username", style="green")
        table.add_column("Email", style="blue")
        table.add_column("Role", style="magenta")
        table.add_column("Admin ID", style="yellow")
        for row in rows:
            table.add_row(str(row.id), row.username, row.email, row.role, row.admin_id or "")

    console.print(table)
    console.print(f"\n[green]Found {len(rows)} users[/green]")
