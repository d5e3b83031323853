import pytest
from typer.testing import CliRunner

from src.storefront.cli import app
from src.storefront.core.services import DbSessionService
from src.storefront.entities.core.user import UserRepository

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(monkeypatch, test_config, engine):
    service = DbSessionService(test_config, engine=engine)
    monkeypatch.setattr("src.storefront.cli.db_commands.get_db_service", lambda: service)
    monkeypatch.setattr("src.storefront.cli.user_commands.get_db_service", lambda: service)
    monkeypatch.setattr(
        "src.storefront.cli.user_commands.get_config", lambda: test_config
    )
    return service


def test_db_init():
    result = runner.invoke(app, ["db", "init"])

    assert result.exit_code == 0
    assert "Tables created" in result.output


def test_db_reset_needs_confirmation():
    result = runner.invoke(app, ["db", "reset"], input="n\n")

    assert result.exit_code == 1


def test_db_reset_with_yes(customer_user, session):
    result = runner.invoke(app, ["db", "reset", "--yes"])

    assert result.exit_code == 0
    session.expire_all()
    assert UserRepository(session).get_by_email(customer_user.email) is None


def test_add_admin_user(session):
    result = runner.invoke(
        app,
        [
            "users", "add", "root",
            "--email", "root@example.com",
            "--password", "pw-123456",
            "--role", "admin",
            "--admin-id", "ADM-7",
        ],
    )

    assert result.exit_code == 0, result.output
    user = UserRepository(session).get_by_email("root@example.com")
    assert user.admin_id == "ADM-7"


def test_add_admin_without_admin_id_fails():
    result = runner.invoke(
        app,
        ["users", "add", "root", "--email", "root@example.com", "--password", "pw", "--role", "admin"],
    )

    assert result.exit_code == 1
    assert "Admin ID is required" in result.output


def test_list_users(customer_user, admin_user):
    result = runner.invoke(app, ["users", "list"])

    assert result.exit_code == 0
    assert "alice@example.com" in result.output
    assert "Found 2 users" in result.output
