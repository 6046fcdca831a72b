"""Test fixtures and utilities."""

from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock, patch

import click.testing
import pytest

from boardmate.assistant.mutation import MutationRequestService
from boardmate.llm.client import LLMClient
from boardmate.store import JsonTaskStore, Task


@pytest.fixture
def runner() -> click.testing.CliRunner:
    """Click CliRunner for testing CLI commands."""
    return click.testing.CliRunner()


@pytest.fixture
def boardmate_env(tmp_path: Path, monkeypatch) -> Path:
    """Point configuration at a temporary data directory."""
    data_dir = tmp_path / ".boardmate"
    monkeypatch.setenv("BOARDMATE_DIR", str(data_dir))
    for name in (
        "BOARDMATE_LLM_PROVIDER",
        "BOARDMATE_LLM_MODEL",
        "BOARDMATE_LLM_FAST_MODEL",
        "BOARDMATE_LLM_TIMEOUT",
        "BOARDMATE_LLM_MAX_TOKENS",
        "BOARDMATE_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    return data_dir


@pytest.fixture
def mock_llm() -> MagicMock:
    """LLM client whose responses are set per test via `call.return_value`."""
    client = MagicMock(spec=LLMClient)
    client.call.return_value = ""
    return client


@pytest.fixture
def service(mock_llm: MagicMock) -> MutationRequestService:
    """Mutation request service backed by the mock client."""
    return MutationRequestService(llm_client=mock_llm)


@pytest.fixture
def sample_tasks() -> list[Task]:
    return [
        Task(id="task-1", title="Write report", status="In Progress", priority="High"),
        Task(id="task-2", title="Book flights", status="To Do", priority="Medium"),
        Task(id="task-3", title="Old chore", status="Done", priority="Low"),
    ]


@pytest.fixture
def task_store(tmp_path: Path, sample_tasks: list[Task]) -> JsonTaskStore:
    """JSON task store seeded with sample tasks."""
    store = JsonTaskStore(tmp_path / "tasks.json")
    store.save(sample_tasks)
    return store


@pytest.fixture
def mock_get_llm_client() -> Generator[MagicMock, None, None]:
    """
    Patch client creation at the single point the service uses.

    Yields:
        The patched factory; its return_value is a MagicMock(spec=LLMClient)
    """
    with patch("boardmate.assistant.mutation.get_llm_client") as factory:
        factory.return_value = MagicMock(spec=LLMClient)
        yield factory


