"""Test CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from boardmate.cli import boardmate
from boardmate.errors import EXIT_ERROR, EXIT_PARTIAL, EXIT_USAGE
from boardmate.store import JsonTaskStore, Task

ADD_RESPONSE = json.dumps(
    {"added": [{"title": "Ship release", "priority": "High"}], "summary": "Added one task."}
)


@pytest.fixture
def board(boardmate_env: Path) -> JsonTaskStore:
    """Task store in the configured data directory, seeded with one task."""
    store = JsonTaskStore(boardmate_env / "tasks.json")
    store.save([Task(id="task-1", title="Write report", priority="High")])
    return store


@pytest.fixture
def llm(mock_get_llm_client):
    """The client every command gets from the factory."""
    return mock_get_llm_client.return_value


class TestAsk:
    """One-shot commands."""

    def test_answer(self, runner, board, llm):
        llm.call.return_value = "You have **1** task."

        result = runner.invoke(boardmate, ["ask", "How many tasks?"])

        assert result.exit_code == 0
        assert "You have **1** task." in result.output

    def test_decline_keeps_board(self, runner, board, llm):
        """Test a previewed proposal is not applied when the user declines."""
        llm.call.return_value = ADD_RESPONSE

        result = runner.invoke(boardmate, ["ask", "Add ship release"], input="n\n")

        assert result.exit_code == EXIT_PARTIAL
        assert "Added one task." in result.output
        assert "+ Ship release [High]" in result.output
        assert "Apply these changes?" in result.output
        assert "Not applied" in result.output
        assert [t.title for t in board.snapshot()] == ["Write report"]

    def test_no_input_keeps_board(self, runner, board, llm):
        llm.call.return_value = ADD_RESPONSE

        result = runner.invoke(boardmate, ["ask", "Add ship release"])

        assert result.exit_code != 0
        assert [t.title for t in board.snapshot()] == ["Write report"]

    def test_apply_on_confirm(self, runner, board, llm):
        llm.call.return_value = ADD_RESPONSE

        result = runner.invoke(boardmate, ["ask", "Add ship release"], input="y\n")

        assert result.exit_code == 0
        assert "Changes applied" in result.output
        assert [t.title for t in board.snapshot()] == ["Write report", "Ship release"]

    def test_request_failure(self, runner, board, monkeypatch):
        """Test a missing API key is reported and exits non-zero."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        result = runner.invoke(boardmate, ["ask", "hello"])

        assert result.exit_code == EXIT_ERROR
        assert "API Key is missing" in result.output


class TestTasks:
    """Task listing."""

    def test_table(self, runner, board):
        result = runner.invoke(boardmate, ["tasks"])

        assert result.exit_code == 0
        assert "task-1" in result.output
        assert "Write report" in result.output

    def test_json(self, runner, board):
        result = runner.invoke(boardmate, ["tasks", "--json"])

        data = json.loads(result.output)
        assert data[0]["id"] == "task-1"
        assert data[0]["priority"] == "High"

    def test_empty(self, runner, boardmate_env):
        result = runner.invoke(boardmate, ["tasks"])

        assert "No tasks found" in result.output

    def test_corrupt_store(self, runner, boardmate_env):
        boardmate_env.mkdir(parents=True)
        (boardmate_env / "tasks.json").write_text("{oops")

        result = runner.invoke(boardmate, ["tasks"])

        assert result.exit_code == EXIT_ERROR
        assert "Failed to load tasks" in result.output


class TestSupplementalCommands:
    """summary, breakdown and parse."""

    def test_summary(self, runner, board, llm):
        llm.call.return_value = "### Board\n**1** task"

        result = runner.invoke(boardmate, ["summary"])

        assert result.exit_code == 0
        assert "**1** task" in result.output

    def test_breakdown(self, runner, board, llm):
        llm.call.return_value = '[{"title": "Outline"}, {"title": "Draft"}]'

        result = runner.invoke(boardmate, ["breakdown", "Write report"])

        assert result.exit_code == 0
        assert "- Outline" in result.output
        assert "- Draft" in result.output

    def test_parse_and_add(self, runner, board, llm):
        llm.call.return_value = '{"title": "Fix login bug", "priority": "Critical"}'

        result = runner.invoke(boardmate, ["parse", "fix login bug asap", "--add"], input="y\n")

        assert result.exit_code == 0
        assert '"title": "Fix login bug"' in result.output
        assert "Added: Fix login bug" in result.output
        added = board.snapshot()[-1]
        assert added.title == "Fix login bug"
        assert added.priority == "Critical"

    def test_parse_add_declined(self, runner, board, llm):
        """Test the parsed task is only added after confirmation."""
        llm.call.return_value = '{"title": "Fix login bug"}'

        result = runner.invoke(boardmate, ["parse", "fix login bug", "--add"], input="n\n")

        assert result.exit_code == EXIT_PARTIAL
        assert "Not added" in result.output
        assert [t.title for t in board.snapshot()] == ["Write report"]

    def test_parse_without_add_does_not_prompt(self, runner, board, llm):
        llm.call.return_value = '{"title": "Fix login bug"}'

        result = runner.invoke(boardmate, ["parse", "fix login bug"])

        assert result.exit_code == 0
        assert "Add this task" not in result.output
        assert len(board.snapshot()) == 1

    def test_parse_nothing(self, runner, board, llm):
        llm.call.return_value = "I have no idea."

        result = runner.invoke(boardmate, ["parse", "???"])

        assert result.exit_code == EXIT_ERROR
        assert "Could not parse" in result.output


class TestAnalyze:
    """Action versus becoming check."""

    def test_flag_on_confirm(self, runner, board, llm):
        llm.call.return_value = '{"isBecoming": true, "warning": "Ambition is not a step."}'

        result = runner.invoke(boardmate, ["analyze", "task-1"], input="y\n")

        assert result.exit_code == 0
        assert "Becoming: Write report" in result.output
        assert "Ambition is not a step." in result.output
        assert "Flagged: Write report" in result.output
        task = board.snapshot()[0]
        assert task.is_becoming
        assert task.becoming_warning == "Ambition is not a step."

    def test_flag_declined(self, runner, board, llm):
        """Test nothing is written unless the user confirms."""
        llm.call.return_value = '{"isBecoming": true, "warning": "Ambition."}'

        result = runner.invoke(boardmate, ["analyze", "task-1"], input="n\n")

        assert result.exit_code == 0
        assert "Not flagged" in result.output
        assert not board.snapshot()[0].is_becoming

    def test_action(self, runner, board, llm):
        llm.call.return_value = '{"isBecoming": false, "warning": ""}'

        result = runner.invoke(boardmate, ["analyze", "task-1"])

        assert result.exit_code == 0
        assert "Action: Write report" in result.output
        assert "Flag this task" not in result.output

    def test_unknown_task(self, runner, board, llm):
        result = runner.invoke(boardmate, ["analyze", "task-9"])

        assert result.exit_code == EXIT_USAGE
        assert "No task with id task-9" in result.output
        llm.call.assert_not_called()


def test_debug_env_enables_verbose_logging(runner, boardmate_env, monkeypatch):
    monkeypatch.setenv("BOARDMATE_DEBUG", "1")

    with patch("boardmate.cli.setup_logging") as setup:
        runner.invoke(boardmate, ["tasks"])

    setup.assert_called_once_with(verbose=True)


class TestChat:
    """Interactive REPL."""

    def test_confirm_flow(self, runner, board, llm):
        """Test a proposal is applied on /confirm."""
        llm.call.return_value = ADD_RESPONSE

        result = runner.invoke(boardmate, ["chat"], input="Add ship release\n/confirm\n/exit\n")

        assert result.exit_code == 0
        assert "task companion" in result.output
        assert "/confirm 3  /cancel 3" in result.output
        assert "Changes applied" in result.output
        assert [t.title for t in board.snapshot()] == ["Write report", "Ship release"]

    def test_cancel_flow(self, runner, board, llm):
        llm.call.return_value = ADD_RESPONSE

        result = runner.invoke(boardmate, ["chat"], input="Add ship release\n/cancel\n/exit\n")

        assert "Action cancelled." in result.output
        assert [t.title for t in board.snapshot()] == ["Write report"]

    def test_slash_commands(self, runner, board, llm):
        result = runner.invoke(
            boardmate, ["chat"], input="/help\n/suggest\n/tasks\n/confirm\n/nope\n/exit\n"
        )

        assert result.exit_code == 0
        assert "/suggest [n]" in result.output
        assert "Analyze my workload" in result.output
        assert "Write report" in result.output
        assert "No pending proposal" in result.output
        assert "Unknown command: /nope" in result.output
        llm.call.assert_not_called()

    def test_end_of_input(self, runner, board):
        result = runner.invoke(boardmate, ["chat"], input="")

        assert "Exiting..." in result.output
