"""Text renderer for conversation messages, proposals and task lists."""

import sys
from typing import Any, Iterable, Mapping, Optional

import click

from boardmate.assistant.conversation import Message, MessageRole, MessageType
from boardmate.assistant.proposal import Proposal, ProposalState
from boardmate.store import Task

DESCRIPTION_PREVIEW = 80
SUBTASK_PREVIEW = 3

_ROLE_LABELS = {
    MessageRole.USER: "you",
    MessageRole.AI: "ai",
    MessageRole.SYSTEM: "system",
}

_STATE_LINES = {
    ProposalState.CONFIRMED: "Changes applied",
    ProposalState.CANCELLED: "Cancelled",
    ProposalState.SUPERSEDED: "Superseded by a newer proposal",
}


def should_color() -> bool:
    """Check if color output should be used."""
    return sys.stdout.isatty()


def echo_success(message: str) -> None:
    """Print success message (green)."""
    if should_color():
        click.secho(message, fg="green")
    else:
        click.echo(message)


def echo_error(message: str) -> None:
    """Print error message (red)."""
    if should_color():
        click.secho(message, fg="red", err=True)
    else:
        click.echo(message, err=True)


def _truncate(text: str, limit: int) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _render_task_card(fields: Mapping[str, Any], prefix: str) -> list[str]:
    title = fields.get("title") or "Untitled"
    details = [
        str(fields[key])
        for key in ("priority", "status")
        if isinstance(fields.get(key), str) and fields[key]
    ]
    estimate = fields.get("timeEstimate")
    if isinstance(estimate, (int, float)) and not isinstance(estimate, bool):
        details.append(f"{estimate:g}h")

    line = f"  {prefix} {title}"
    if details:
        line += f" [{', '.join(details)}]"
    lines = [line]

    description = fields.get("description")
    if isinstance(description, str) and description.strip():
        lines.append(f"      {_truncate(description, DESCRIPTION_PREVIEW)}")

    subtasks = fields.get("subtasks")
    if isinstance(subtasks, list) and subtasks:
        for subtask in subtasks[:SUBTASK_PREVIEW]:
            sub_title = subtask.get("title") if isinstance(subtask, dict) else subtask
            lines.append(f"      - {sub_title}")
        if len(subtasks) > SUBTASK_PREVIEW:
            lines.append(f"      +{len(subtasks) - SUBTASK_PREVIEW} more...")
    return lines


def render_proposal(
    proposal: Proposal,
    message_id: Optional[int] = None,
    titles: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Render a proposal preview.

    Args:
        proposal: Proposal to render
        message_id: Id of the carrying message, used in the action hint
        titles: Known task titles by id, used to label updates and deletions

    Returns:
        Formatted preview string
    """
    titles = titles or {}
    diff = proposal.diff
    lines: list[str] = []

    if diff.added:
        lines.append(f"ADDING ({len(diff.added)}):")
        for fields in diff.added:
            lines.extend(_render_task_card(fields, "+"))

    if diff.updated:
        lines.append(f"UPDATING ({len(diff.updated)}):")
        for fields in diff.updated:
            task_id = str(fields.get("id"))
            card = dict(fields)
            card.setdefault("title", titles.get(task_id, task_id))
            lines.extend(_render_task_card(card, "~"))
            changed = sorted(k for k in fields if k != "id")
            lines.append(f"      ({task_id}: {', '.join(changed) or 'no fields'})")

    if diff.deleted_ids:
        lines.append(f"DELETING ({len(diff.deleted_ids)}):")
        for task_id in diff.deleted_ids:
            title = titles.get(task_id)
            lines.append(f"  - {title} ({task_id})" if title else f"  - {task_id}")

    if proposal.state in _STATE_LINES:
        lines.append(_STATE_LINES[proposal.state])
    elif message_id is not None:
        lines.append(f"/confirm {message_id}  /cancel {message_id}")

    return "\n".join(lines)


def render_message(message: Message, titles: Optional[Mapping[str, str]] = None) -> str:
    """Render one conversation message for the terminal."""
    label = _ROLE_LABELS[message.role]
    text = f"[{message.id}] {label}: {message.content}"
    if message.type == MessageType.PROPOSAL and message.proposal is not None:
        text += "\n" + render_proposal(message.proposal, message.id, titles)
        if message.processing:
            text += "\nApplying..."
    return text


def render_conversation(
    messages: Iterable[Message],
    titles: Optional[Mapping[str, str]] = None,
) -> str:
    return "\n\n".join(render_message(m, titles) for m in messages)


def render_task_table(tasks: list[Task]) -> str:
    """
    Render tasks as tabular table.

    Columns: ID, STATUS, PRIORITY, DUE, TITLE

    Args:
        tasks: List of Task objects

    Returns:
        Formatted table string
    """
    if not tasks:
        return "No tasks found"

    headers = ["ID", "STATUS", "PRIORITY", "DUE", "TITLE"]
    rows = [[t.id, t.status, t.priority, t.due_date, t.title] for t in tasks]

    col_widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    separator = "  "
    lines = []

    header_line = separator.join(f"{headers[i]:<{col_widths[i]}}" for i in range(len(headers)))
    lines.append(header_line.rstrip())

    separator_line = separator.join("-" * col_widths[i] for i in range(len(headers)))
    lines.append(separator_line)

    for row in rows:
        row_line = separator.join(f"{str(row[i]):<{col_widths[i]}}" for i in range(len(row)))
        lines.append(row_line.rstrip())

    return "\n".join(lines)
