"""System instructions, response schemas and prompt assembly."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from boardmate.store import PRIORITIES, STATUSES, Task

logger = logging.getLogger(__name__)

# Fields of a task the model sees; everything else stays local
SNAPSHOT_FIELDS = (
    "id",
    "title",
    "description",
    "status",
    "priority",
    "dueDate",
    "tags",
    "timeEstimate",
)

_TASK_FIELD_PROPERTIES: dict[str, Any] = {
    "title": {"type": "string"},
    "description": {"type": "string"},
    "status": {"type": "string", "enum": list(STATUSES)},
    "priority": {"type": "string", "enum": list(PRIORITIES)},
    "dueDate": {"type": "string", "description": "ISO 8601 date YYYY-MM-DD"},
    "tags": {"type": "array", "items": {"type": "string"}},
    "timeEstimate": {"type": "number", "description": "Estimated hours"},
    "goalId": {"type": "string"},
}

# Advisory only: output is always re-validated by the sanitizer
TASK_DIFF_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "added": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    **_TASK_FIELD_PROPERTIES,
                    "subtasks": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "title": {"type": "string"},
                                "isCompleted": {"type": "boolean"},
                            },
                            "required": ["title", "isCompleted"],
                        },
                    },
                },
                "required": ["title", "status", "priority"],
            },
        },
        "updated": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string", "description": "The EXACT id of the task to update."},
                    **_TASK_FIELD_PROPERTIES,
                    "isBecoming": {"type": "boolean"},
                    "becomingWarning": {"type": "string"},
                },
                "required": ["id"],
            },
        },
        "deletedIds": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of task ids to delete.",
        },
        "summary": {
            "type": "string",
            "description": "A rich markdown response. Use bold for emphasis, headers for "
            "structure, and bullet points.",
        },
    },
}

SUBTASK_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {"title": {"type": "string"}},
        "required": ["title"],
    },
}

PARSED_TASK_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        **_TASK_FIELD_PROPERTIES,
        "title": {"type": "string", "description": "Corrected and clear title."},
        "description": {"type": "string", "description": "Rich description inferred from input."},
        "subtasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"title": {"type": "string"}, "isCompleted": {"type": "boolean"}},
            },
            "description": "3-5 actionable subtasks.",
        },
    },
    "required": ["title", "status", "priority", "description", "subtasks", "dueDate"],
}

ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "isBecoming": {
            "type": "boolean",
            "description": "True if the task is about becoming (ambition, self-image, future "
            "status) rather than a functional action.",
        },
        "warning": {
            "type": "string",
            "description": "A short, direct warning about why this framing is a trap.",
        },
    },
    "required": ["isBecoming", "warning"],
}

MANAGE_SYSTEM_PROMPT = f"""You are an executive productivity assistant and the operator of the
user's task board.

## Conversation

- Use the `summary` field for all communication with the user.
- Format it as markdown: **bold** for key insights, task titles and totals;
  `###` headers to structure analysis; bullet points for lists.
- Be concise but dense. When analyzing time, calculate totals
  (e.g. "Total estimate: **14.5 hours**").

## Board changes

- Modify the board ONLY when the user explicitly asks for it.
- Add: populate `added` with new tasks (title, status, priority at minimum).
- Update: populate `updated` with the exact `id` of an existing task and only
  the fields that change.
- Delete: populate `deletedIds` ONLY if deletion was explicitly requested.
- Never invent ids. Use ids from the task context only.
- A question about the board is answered in `summary` with no changes.
- If an existing task is about becoming (ambition or self-image, e.g. "Be a
  better leader") rather than a concrete action, you may flag it in `updated`
  with `isBecoming: true` and a short `becomingWarning`.

Valid statuses: {", ".join(STATUSES)}.
Valid priorities: {", ".join(PRIORITIES)}.

## Output

Always return a single JSON object:
{{"added": [...], "updated": [...], "deletedIds": [...], "summary": "..."}}
"""

SUMMARY_SYSTEM_PROMPT = (
    "Summarize the board state in markdown. Be concise, motivating, and use bold for key tasks."
)

BREAKDOWN_SYSTEM_PROMPT = (
    "Break down a task title into 3-5 subtasks. Return a JSON array of objects with 'title'."
)

PARSE_SYSTEM_PROMPT = f"""You turn dictated or hastily typed task descriptions into
structured tasks. The input may contain typos or be fragmented.

1. Reconstruct: fix grammar and typos ("skedule for tmrw" -> "Schedule for tomorrow").
2. Fill in missing details:
   - Missing description: write a short professional one.
   - Missing priority: infer it ("broken", "now", "urgent" mean Critical or High).
   - Missing subtasks: propose 3-5 logical steps.
   - Missing date: next Friday for general tasks, today for urgent ones.
3. Map to available goals when one fits, using its id as `goalId`.

Valid statuses: {", ".join(STATUSES)}.
Valid priorities: {", ".join(PRIORITIES)}.

Return a single JSON object."""

ANALYSIS_SYSTEM_PROMPT = """You tell apart "becoming" from "action" in a task.

Becoming (isBecoming: true):
- Ambition, self-improvement, projecting an ideal self ("Get fit", "Be richer").
- A gap between what is and what should be; abstract attributes.

Action (isBecoming: false):
- Functional, logistical, factual ("Run 5km", "Deposit check", "Buy groceries").
- Immediate physical steps.

For becoming, give a firm but thoughtful warning. For action, return
isBecoming: false and an empty warning."""


def now_iso() -> str:
    """Current UTC time as ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


def summarize_task(task: Task | dict[str, Any]) -> dict[str, Any]:
    """Reduce a task to the fields the model needs for reference."""
    data = task.to_dict() if isinstance(task, Task) else task
    return {name: data.get(name) for name in SNAPSHOT_FIELDS if name in data}


def summarize_tasks(tasks: Iterable[Task | dict[str, Any]]) -> list[dict[str, Any]]:
    """Reduce a task list to its prompt snapshot."""
    return [summarize_task(t) for t in tasks]


def build_manage_prompt(
    command: str,
    snapshot: list[dict[str, Any]],
    now: Optional[str] = None,
) -> str:
    """
    Build the user-turn prompt for a board command.

    Args:
        command: Literal user command
        snapshot: Reduced task snapshot (see summarize_tasks)
        now: ISO-8601 timestamp (defaults to the current time)

    Returns:
        Prompt string
    """
    return (
        f"Current Date: {now or now_iso()}\n\n"
        f"User Input: {json.dumps(command, ensure_ascii=False)}\n\n"
        f"Current Tasks Context:\n{json.dumps(snapshot, indent=2, ensure_ascii=False)}"
    )


def build_summary_prompt(snapshot: list[dict[str, Any]]) -> str:
    return (
        "Here is the current list of tasks:\n"
        f"{json.dumps(snapshot, indent=2, ensure_ascii=False)}"
    )


def build_breakdown_prompt(title: str) -> str:
    return f"Task to break down: {json.dumps(title, ensure_ascii=False)}"


def build_analysis_prompt(title: str, description: str = "") -> str:
    return (
        "Analyze this task:\n"
        f"Title: {json.dumps(title, ensure_ascii=False)}\n"
        f"Description: {json.dumps(description or '', ensure_ascii=False)}"
    )


def build_parse_prompt(
    transcript: str,
    goals: Iterable[dict[str, Any]] = (),
    now: Optional[str] = None,
) -> str:
    """
    Build the prompt that turns free text into a task descriptor.

    Args:
        transcript: Dictated or typed description
        goals: Available goals ({id, title, description}) to map onto
        now: ISO-8601 timestamp (defaults to the current time)

    Returns:
        Prompt string
    """
    prompt = (
        f"Current Date: {now or now_iso()}\n\n"
        f"Transcript: {json.dumps(transcript, ensure_ascii=False)}"
    )
    goal_context = [
        {"id": g.get("id"), "title": g.get("title"), "description": g.get("description")}
        for g in goals
    ]
    if goal_context:
        prompt += (
            "\n\nAvailable Goals (use these ids):\n"
            f"{json.dumps(goal_context, indent=2, ensure_ascii=False)}"
        )
    return prompt
