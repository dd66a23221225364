"""
Unit Tests for the Developer CLI.

Invokes the click command in-process. The default store backend is the
in-memory store, so every invocation starts empty.
"""

import pytest
from click.testing import CliRunner

from cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestInfoAndConfig:
    """Tests for the info and config actions."""

    def test_info_shows_application_and_actions(self, runner):
        result = runner.invoke(main, ["--action", "info"])

        assert result.exit_code == 0
        assert "Notekeeper" in result.output
        assert "Store backend: memory" in result.output
        assert "watch" in result.output

    def test_config_shows_all_sections(self, runner):
        result = runner.invoke(main, ["--action", "config"])

        assert result.exit_code == 0
        assert "Application Settings" in result.output
        assert "Logging Settings" in result.output
        assert "Store Settings" in result.output
        assert "notes_collection: notes" in result.output


class TestNoteActions:
    """Tests for actions that go through NotesProvider."""

    def test_list_empty(self, runner):
        result = runner.invoke(main, ["--action", "list", "--owner", "user-1"])

        assert result.exit_code == 0
        assert "No notes." in result.output

    def test_add(self, runner):
        result = runner.invoke(main, ["-a", "add", "-o", "user-1", "-t", "Buy milk"])

        assert result.exit_code == 0
        assert "Note added." in result.output

    def test_delete_missing_succeeds(self, runner):
        result = runner.invoke(main, ["-a", "delete", "-o", "user-1", "-n", "missing"])

        assert result.exit_code == 0
        assert "Note deleted." in result.output

    def test_update_missing_fails(self, runner):
        result = runner.invoke(main, ["-a", "update", "-o", "user-1", "-n", "missing", "-t", "x"])

        assert result.exit_code == 1
        assert "Error: Document notes/missing not found" in result.output

    def test_watch_for_a_short_time(self, runner):
        result = runner.invoke(main, ["-a", "watch", "-o", "user-1", "--seconds", "0.05"])

        assert result.exit_code == 0
        assert "Watching notes for user-1" in result.output
        assert "--- 0 note(s) ---" in result.output


class TestUsageErrors:
    """Missing options are usage errors."""

    def test_missing_owner(self, runner):
        result = runner.invoke(main, ["--action", "list"])

        assert result.exit_code == 2
        assert "--owner is required" in result.output

    def test_missing_text_for_add(self, runner):
        result = runner.invoke(main, ["--action", "add", "--owner", "user-1"])

        assert result.exit_code == 2
        assert "--text is required" in result.output

    def test_unknown_action(self, runner):
        result = runner.invoke(main, ["--action", "explode"])
        assert result.exit_code == 2
