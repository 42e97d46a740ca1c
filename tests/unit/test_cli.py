"""Unit tests for the ticketboard CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from ticketboard import __version__, get_version
from ticketboard.cli import main
from ticketboard.client import LocalStore


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str | None]:
    """Local-only environment with a temporary cache."""
    return {
        "TICKETBOARD_API_URL": "",
        "TICKETBOARD_CACHE_DIR": str(tmp_path / "cache"),
        "DATABASE_URL": None,
        "POSTGRES_URL": None,
        "PRISMA_DATABASE_URL": None,
    }


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _create(runner: CliRunner, env: dict[str, str | None], *args: str) -> str:
    result = runner.invoke(main, ["tickets", "create", *args], env=env)
    assert result.exit_code == 0, result.output
    return result.output.strip().rsplit(" ", 1)[-1]


@pytest.mark.unit
class TestTicketCommands:
    """Tests for the tickets group."""

    def test_create_and_list(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        _create(runner, env, "--title", "Fix login", "--description", "Broken", "--label", "auth")

        result = runner.invoke(main, ["tickets", "list"], env=env)

        assert result.exit_code == 0
        assert "To Do (1/1)" in result.output
        assert "Fix login" in result.output
        assert "Done (0/1)" in result.output

    def test_create_rejects_blank_title(
        self, runner: CliRunner, env: dict[str, str | None], tmp_path: Path
    ) -> None:
        result = runner.invoke(
            main, ["tickets", "create", "--title", " ", "--description", "D"], env=env
        )

        assert result.exit_code == 1
        assert "Title is required" in result.output
        assert LocalStore(tmp_path / "cache").load_tickets() == []

    def test_move_and_show(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        ticket_id = _create(runner, env, "--title", "Dark mode", "--description", "Toggle")

        moved = runner.invoke(main, ["tickets", "move", ticket_id, "In Review"], env=env)
        shown = runner.invoke(main, ["tickets", "show", ticket_id], env=env)

        assert moved.exit_code == 0
        assert "Moved ticket" in moved.output
        assert "In Review" in shown.output
        assert "version 2" in shown.output

    def test_move_to_same_column(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        ticket_id = _create(runner, env, "--title", "T", "--description", "D")

        result = runner.invoke(main, ["tickets", "move", ticket_id, "To Do"], env=env)

        assert result.exit_code == 0
        assert "already in To Do" in result.output

    def test_list_with_filters(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        _create(runner, env, "--title", "Alpha", "--description", "D", "--priority", "High")
        _create(runner, env, "--title", "Beta", "--description", "D")

        result = runner.invoke(main, ["tickets", "list", "--priority", "High"], env=env)

        assert "Alpha" in result.output
        assert "Beta" not in result.output
        assert "To Do (1/2)" in result.output

    def test_delete(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        ticket_id = _create(runner, env, "--title", "T", "--description", "D")

        deleted = runner.invoke(main, ["tickets", "delete", ticket_id, "--yes"], env=env)
        shown = runner.invoke(main, ["tickets", "show", ticket_id], env=env)

        assert deleted.exit_code == 0
        assert shown.exit_code == 1

    def test_attach_and_detach(
        self, runner: CliRunner, env: dict[str, str | None], tmp_path: Path
    ) -> None:
        ticket_id = _create(runner, env, "--title", "T", "--description", "D")
        source = tmp_path / "trace.log"
        source.write_text("x" * 2048)

        attached = runner.invoke(main, ["tickets", "attach", ticket_id, str(source)], env=env)
        shown = runner.invoke(main, ["tickets", "show", ticket_id], env=env)

        assert attached.exit_code == 0
        assert "trace.log (2 KB)" in shown.output

        [ticket] = LocalStore(tmp_path / "cache").load_tickets()
        attachment_id = ticket.attachments[0].id
        detached = runner.invoke(main, ["tickets", "detach", ticket_id, attachment_id], env=env)

        assert detached.exit_code == 0
        assert LocalStore(tmp_path / "cache").load_tickets()[0].attachments == []


@pytest.mark.unit
class TestVersion:
    """Tests for --version."""

    def test_version_option(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
        assert get_version() == __version__


@pytest.mark.unit
class TestUserCommands:
    """Tests for the users group."""

    def test_list_default_users(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        result = runner.invoke(main, ["users", "list"], env=env)

        assert result.exit_code == 0
        assert "John Doe <john@example.com>" in result.output


@pytest.mark.unit
class TestDatabaseCommands:
    """Tests for the db group."""

    def test_status_without_database(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        result = runner.invoke(main, ["db", "status"], env=env)

        assert result.exit_code == 1
        assert "DATABASE_URL: not set" in result.output

    def test_setup_and_status(
        self, runner: CliRunner, env: dict[str, str | None], tmp_path: Path
    ) -> None:
        env["DATABASE_URL"] = f"sqlite:///{tmp_path / 'tickets.db'}"

        setup = runner.invoke(main, ["db", "setup"], env=env)
        status = runner.invoke(main, ["db", "status"], env=env)

        assert setup.exit_code == 0, setup.output
        assert "Tickets created: 3" in setup.output
        assert status.exit_code == 0
        assert "Database connected (4 users)" in status.output

    def test_invalid_config(self, runner: CliRunner, env: dict[str, str | None]) -> None:
        env["TICKETBOARD_API_TIMEOUT"] = "never"

        result = runner.invoke(main, ["users", "list"], env=env)

        assert result.exit_code == 1
        assert "Configuration error" in result.output
