"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work against a
throwaway database.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import pytest
from sqlalchemy.orm import sessionmaker
from typer.testing import CliRunner

from progress_core.cli.main import app
from progress_core.db import database
from progress_core.db.database import count_rows
from progress_core.db.models import UserStats

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(engine, monkeypatch):
    """Point the CLI at the in-memory test database."""
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "SessionLocal", sessionmaker(bind=engine, autocommit=False, autoflush=False))
    return engine


class TestCLIHelp:
    """Test that help text displays correctly."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "grant" in result.output
        assert "notebook" in result.output

    def test_notebook_help(self):
        result = runner.invoke(app, ["notebook", "--help"])
        assert result.exit_code == 0
        assert "review" in result.output


class TestProgressCommands:
    def test_db_init(self):
        result = runner.invoke(app, ["db", "init"])
        assert result.exit_code == 0
        assert "Database initialized" in result.output

    def test_levels(self):
        result = runner.invoke(app, ["levels"])
        assert result.exit_code == 0
        assert "Lenda" in result.output

    def test_grant_then_stats(self):
        result = runner.invoke(app, ["grant", "ana", "120", "Lista"])
        assert result.exit_code == 0
        assert "+120 XP" in result.output
        assert "Level up" in result.output

        result = runner.invoke(app, ["stats", "ana"])
        assert result.exit_code == 0
        assert "XP: 120" in result.output
        assert "Aprendiz" in result.output

    def test_stats_for_unknown_user_writes_nothing(self):
        result = runner.invoke(app, ["stats", "ghost"])
        assert result.exit_code == 0
        assert "No activity" in result.output

        with database.session_scope() as session:
            assert count_rows(session, UserStats) == 0

    def test_grant_zero_is_rejected(self):
        result = runner.invoke(app, ["grant", "ana", "0", "Nada"])
        assert result.exit_code == 1

    def test_duplicate_event_key(self):
        assert runner.invoke(app, ["grant", "ana", "10", "Quiz", "--event-key", "s1"]).exit_code == 0
        result = runner.invoke(app, ["grant", "ana", "10", "Quiz", "--event-key", "s1"])
        assert result.exit_code == 1
        assert "already granted" in result.output

    def test_goals(self):
        result = runner.invoke(app, ["goals", "ana"])
        assert result.exit_code == 0
        assert "0/50" in result.output

    def test_achievements(self):
        result = runner.invoke(app, ["achievements", "ana"])
        assert result.exit_code == 0
        assert "primeira_questao" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "progress-core" in result.output


class TestNotebookCommands:
    @pytest.fixture
    def with_entry(self):
        from progress_core.review.error_notebook import ErrorNotebook

        with database.session_scope() as session:
            ErrorNotebook(session).record_wrong_answer("ana", "q42", "B", origin="quiz")

    def test_list(self, with_entry):
        result = runner.invoke(app, ["notebook", "list", "ana"])
        assert result.exit_code == 0
        assert "q42" in result.output
        assert "1 pending" in result.output

    def test_review_and_filter(self, with_entry):
        assert runner.invoke(app, ["notebook", "review", "ana", "q42"]).exit_code == 0
        result = runner.invoke(app, ["notebook", "list", "ana", "--status", "pending"])
        assert "q42" not in result.output

    def test_remove_unknown_entry(self):
        result = runner.invoke(app, ["notebook", "remove", "ana", "nope"])
        assert result.exit_code == 1

    def test_unknown_filter(self):
        result = runner.invoke(app, ["notebook", "list", "ana", "--status", "archived"])
        assert result.exit_code == 1


class TestEstimateCommand:
    def test_diagnostic(self):
        tokens = ["easy:1"] * 12 + ["hard:0"] * 3
        result = runner.invoke(app, ["estimate", "--mode", "diagnostic", *tokens])
        assert result.exit_code == 0
        assert "800" in result.output
        assert "Avançado" in result.output

    def test_exam_penalty(self):
        result = runner.invoke(app, ["estimate", "easy:0", "easy:0", "hard:1", "hard:1"])
        assert result.exit_code == 0
        assert "penalty" in result.output

    def test_bad_token(self):
        result = runner.invoke(app, ["estimate", "easy:yes"])
        assert result.exit_code == 1


class TestLoggingSetup:
    def test_configure_logging_with_file_sink(self, tmp_path, monkeypatch):
        from loguru import logger

        from config import get_settings
        from progress_core.logging_setup import configure_logging

        log_file = tmp_path / "progress.log"
        monkeypatch.setattr(get_settings(), "log_file", str(log_file))

        configure_logging("INFO")
        logger.info("smoke log line")
        logger.remove()

        assert "smoke log line" in log_file.read_text(encoding="utf-8")
