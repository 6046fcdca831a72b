"""Task model and task store."""

import asyncio
import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from boardmate.assistant.diff import TaskDiff, TaskFields
from boardmate.errors import StoreError

STATUSES = ("To Do", "In Progress", "Review", "Blocker", "Hold", "Won't Complete", "Done")
PRIORITIES = ("Critical", "High", "Medium", "Low")
DEFAULT_STATUS = "To Do"
DEFAULT_PRIORITY = "Medium"

logger = logging.getLogger(__name__)


def generate_task_id() -> str:
    """
    Generate a unique task ID.

    Returns:
        Task ID in format "task-<8-char-uuid>"
    """
    return f"task-{uuid4().hex[:8]}"


def generate_subtask_id() -> str:
    """Generate a unique subtask ID ("sub-<8-char-uuid>")."""
    return f"sub-{uuid4().hex[:8]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Subtask:
    """Checklist item inside a task."""

    id: str
    title: str
    is_completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "isCompleted": self.is_completed}

    @classmethod
    def from_value(cls, value: Any) -> Optional["Subtask"]:
        """Build a subtask from a dict or a bare title; None if it has no title."""
        if isinstance(value, str):
            value = {"title": value}
        if not isinstance(value, dict):
            return None
        title = value.get("title")
        if not isinstance(title, str) or not title.strip():
            return None
        subtask_id = value.get("id")
        return cls(
            id=subtask_id if isinstance(subtask_id, str) and subtask_id else generate_subtask_id(),
            title=title.strip(),
            is_completed=bool(value.get("isCompleted", False)),
        )


@dataclass
class Task:
    """A task on the board."""

    id: str
    title: str
    description: str = ""
    status: str = DEFAULT_STATUS
    priority: str = DEFAULT_PRIORITY
    due_date: str = ""
    tags: list[str] = field(default_factory=list)
    time_estimate: Optional[float] = None
    goal_id: Optional[str] = None
    subtasks: list[Subtask] = field(default_factory=list)
    is_becoming: bool = False
    becoming_warning: str = ""
    created_date: str = ""
    last_modified: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the board's camelCase field names."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "dueDate": self.due_date,
            "tags": list(self.tags),
            "timeEstimate": self.time_estimate,
            "goalId": self.goal_id,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "isBecoming": self.is_becoming,
            "becomingWarning": self.becoming_warning,
            "createdDate": self.created_date,
            "lastModified": self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        task = cls(id=str(data["id"]), title=str(data.get("title", "")))
        task.created_date = str(data.get("createdDate", ""))
        task.last_modified = str(data.get("lastModified", ""))
        apply_fields(task, data)
        return task


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _coerce_tags(value: Any) -> Optional[list[str]]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return None
    return [str(t).strip() for t in value if str(t).strip()]


def _coerce_estimate(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _coerce_flag(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _coerce_subtasks(value: Any) -> Optional[list[Subtask]]:
    if not isinstance(value, list):
        return None
    return [s for s in (Subtask.from_value(v) for v in value) if s is not None]


# wire name -> (attribute, coercion)
_FIELDS = {
    "title": ("title", _coerce_text),
    "description": ("description", _coerce_text),
    "status": ("status", _coerce_text),
    "priority": ("priority", _coerce_text),
    "dueDate": ("due_date", _coerce_text),
    "tags": ("tags", _coerce_tags),
    "timeEstimate": ("time_estimate", _coerce_estimate),
    "goalId": ("goal_id", _coerce_text),
    "subtasks": ("subtasks", _coerce_subtasks),
    "isBecoming": ("is_becoming", _coerce_flag),
    "becomingWarning": ("becoming_warning", _coerce_text),
}


def apply_fields(task: Task, fields: TaskFields) -> list[str]:
    """
    Copy the known, present fields of a descriptor onto a task.

    Unknown keys and values that cannot be coerced are skipped; `id` is
    never changed.

    Args:
        task: Task to patch (mutated)
        fields: Descriptor in wire (camelCase) form

    Returns:
        Wire names of the fields that were applied
    """
    applied = []
    for wire_name, (attr, coerce) in _FIELDS.items():
        if wire_name not in fields:
            continue
        value = coerce(fields[wire_name])
        if value is None:
            continue
        if attr == "title" and not value.strip():
            continue
        setattr(task, attr, value)
        applied.append(wire_name)
    return applied


def new_task_from_fields(fields: TaskFields) -> Task:
    """
    Create a task from an `added` descriptor, generating its identifier.

    Args:
        fields: Descriptor with a non-empty title

    Returns:
        New Task with defaults for missing fields
    """
    now = _now()
    task = Task(
        id=generate_task_id(),
        title="",
        due_date=date.today().isoformat(),
        created_date=now,
        last_modified=now,
    )
    apply_fields(task, fields)
    task.title = task.title.strip()
    return task


def apply_diff_to_tasks(tasks: list[Task], diff: TaskDiff) -> list[Task]:
    """
    Apply a diff to a task list without touching the input.

    Unknown ids in `updated` and `deleted_ids` are ignored with a warning.

    Args:
        tasks: Current tasks
        diff: Sanitized diff

    Returns:
        New task list
    """
    result = copy.deepcopy(tasks)
    by_id = {t.id: t for t in result}

    for fields in diff.updated:
        task_id = str(fields["id"]).strip()
        task = by_id.get(task_id)
        if task is None:
            logger.warning(f"Ignoring update for unknown task {task_id}")
            continue
        applied = apply_fields(task, fields)
        task.last_modified = _now()
        logger.debug(f"Updated {task_id}: {', '.join(applied) or '(no fields)'}")

    deleted = set()
    for task_id in diff.deleted_ids:
        if task_id.strip() not in by_id:
            logger.warning(f"Ignoring delete for unknown task {task_id}")
            continue
        deleted.add(task_id.strip())
    result = [t for t in result if t.id not in deleted]

    for fields in diff.added:
        task = new_task_from_fields(fields)
        result.append(task)
        logger.debug(f"Added {task.id}: {task.title}")

    return result


class TaskStore(ABC):
    """Owner of live tasks; applies sanitized diffs as one operation."""

    @abstractmethod
    def snapshot(self) -> list[Task]:
        """Return a copy of the current tasks."""
        pass

    @abstractmethod
    async def apply_diff(self, diff: TaskDiff) -> None:
        """
        Apply a diff as a whole.

        Raises:
            StoreError: If the diff could not be applied; no change is kept
        """
        pass


class JsonTaskStore(TaskStore):
    """Task store persisted as a JSON list in a single file."""

    def __init__(self, path: Path) -> None:
        """Initialize store.

        Args:
            path: JSON file path (created on first write)
        """
        self.path = path

    def load(self) -> list[Task]:
        """
        Load tasks from disk.

        Returns:
            Task list (empty if the file does not exist)

        Raises:
            StoreError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            return []

        try:
            content = self.path.read_text(encoding="utf-8")
            data = json.loads(content) if content.strip() else []
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to load tasks from {self.path}: {e}")

        if not isinstance(data, list):
            raise StoreError(f"Invalid task file {self.path}: expected a JSON list")

        tasks = []
        for entry in data:
            if not isinstance(entry, dict) or not entry.get("id"):
                logger.warning(f"Skipping malformed task entry in {self.path}")
                continue
            tasks.append(Task.from_dict(entry))
        return tasks

    def save(self, tasks: list[Task]) -> None:
        """
        Write tasks to disk atomically (temp file + replace).

        Raises:
            StoreError: If the file cannot be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text(
                json.dumps([t.to_dict() for t in tasks], indent=2),
                encoding="utf-8",
            )
            temp_path.replace(self.path)
            logger.debug(f"Saved {len(tasks)} tasks to {self.path}")
        except OSError as e:
            raise StoreError(f"Failed to save tasks to {self.path}: {e}")

    def snapshot(self) -> list[Task]:
        return self.load()

    def _apply(self, diff: TaskDiff) -> None:
        # Blocking: load, patch and save in one pass
        self.save(apply_diff_to_tasks(self.load(), diff))

    async def apply_diff(self, diff: TaskDiff) -> None:
        await asyncio.to_thread(self._apply, diff)
        logger.info(
            f"Applied diff: +{len(diff.added)} ~{len(diff.updated)} -{len(diff.deleted_ids)}"
        )
