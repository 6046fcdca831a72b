"""TaskDiff: the unit of proposed task mutation."""

import copy
from dataclasses import dataclass
from typing import Any, Iterable

FALLBACK_SUMMARY = "I processed that, but no changes were needed."
PROPOSAL_SUMMARY = "I've prepared the following changes:"

TaskFields = dict[str, Any]


def _freeze_entries(entries: Iterable[TaskFields]) -> tuple[TaskFields, ...]:
    return tuple(copy.deepcopy(dict(entry)) for entry in entries)


@dataclass(frozen=True)
class TaskDiff:
    """
    Structured set of task additions, partial updates and deletions.

    Attributes:
        added: New-task descriptors; each carries a non-empty `title`
        updated: Partial-task descriptors; each carries a non-empty `id`
        deleted_ids: Unique, non-empty task identifiers to remove
        summary: Markdown text describing the action or answering the user

    Entries are deep-copied on construction, so neither the model output they
    came from nor the live task store can alter a diff once it exists.
    """

    added: tuple[TaskFields, ...] = ()
    updated: tuple[TaskFields, ...] = ()
    deleted_ids: tuple[str, ...] = ()
    summary: str = FALLBACK_SUMMARY

    def __post_init__(self) -> None:
        object.__setattr__(self, "added", _freeze_entries(self.added))
        object.__setattr__(self, "updated", _freeze_entries(self.updated))
        object.__setattr__(self, "deleted_ids", tuple(self.deleted_ids))

    @property
    def has_actions(self) -> bool:
        """True when the diff would mutate the task store."""
        return bool(self.added or self.updated or self.deleted_ids)

    @property
    def action_count(self) -> int:
        """Total number of proposed mutations."""
        return len(self.added) + len(self.updated) + len(self.deleted_ids)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape used in prompts and JSON output."""
        return {
            "added": copy.deepcopy(list(self.added)),
            "updated": copy.deepcopy(list(self.updated)),
            "deletedIds": list(self.deleted_ids),
            "summary": self.summary,
        }


def has_actions(diff: TaskDiff) -> bool:
    """
    Gate between a proposal and a plain conversational answer.

    Args:
        diff: Sanitized diff

    Returns:
        True if any of added/updated/deleted_ids is non-empty
    """
    return diff.has_actions
