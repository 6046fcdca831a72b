"""Turn loosely-typed model output into a safe TaskDiff."""

import logging
from typing import Any

from boardmate.assistant.diff import FALLBACK_SUMMARY, PROPOSAL_SUMMARY, TaskDiff, TaskFields

logger = logging.getLogger(__name__)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _as_list(raw: dict[str, Any], key: str) -> list[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.debug(f"Dropping '{key}': expected a list, got {type(value).__name__}")
        return []
    return value


def _keep_entries(entries: list[Any], required: str, key: str) -> list[TaskFields]:
    kept = [e for e in entries if isinstance(e, dict) and _non_empty_str(e.get(required))]
    dropped = len(entries) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} '{key}' entries without '{required}'")
    return kept


def sanitize_added(raw: dict[str, Any]) -> list[TaskFields]:
    """Keep `added` entries that are objects with a non-empty title."""
    return _keep_entries(_as_list(raw, "added"), "title", "added")


def sanitize_updated(raw: dict[str, Any]) -> list[TaskFields]:
    """Keep `updated` entries that are objects with a non-empty id."""
    return _keep_entries(_as_list(raw, "updated"), "id", "updated")


def sanitize_deleted_ids(raw: dict[str, Any]) -> list[str]:
    """
    Keep non-empty string ids, first occurrence only.

    Ids are kept verbatim (not stripped) so they match what was shown.
    """
    entries = _as_list(raw, "deletedIds")
    seen: set[str] = set()
    kept = []
    for entry in entries:
        if not _non_empty_str(entry) or entry in seen:
            continue
        seen.add(entry)
        kept.append(entry)
    dropped = len(entries) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} empty or duplicate deletedIds")
    return kept


def _scalar_text(raw: Any) -> str:
    # A bare JSON string or number is the answer itself
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        return ""
    return str(raw)


def choose_summary(raw_summary: Any, remainder: str, fallback: str = FALLBACK_SUMMARY) -> str:
    """
    Pick the user-visible summary.

    Order: the model's `summary` field, then the leftover prose, then a
    generic acknowledgement.
    """
    if _non_empty_str(raw_summary):
        return str(raw_summary).strip()
    if remainder and remainder.strip():
        return remainder.strip()
    return fallback


def sanitize(raw: Any, remainder: str = "") -> TaskDiff:
    """
    Build a strict TaskDiff from extracted model output.

    Each field is sanitized independently and per entry: one malformed entry
    never drops its siblings or the other fields. Never raises.

    Args:
        raw: Parsed JSON (any shape) or None
        remainder: Prose left over after extraction

    Returns:
        TaskDiff; a conversational one (no actions) when raw is not an object
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.debug(f"Model returned {type(raw).__name__}, treating as conversation")
        return TaskDiff(summary=choose_summary(None, remainder.strip() or _scalar_text(raw)))

    added = sanitize_added(raw)
    updated = sanitize_updated(raw)
    deleted_ids = sanitize_deleted_ids(raw)
    fallback = PROPOSAL_SUMMARY if (added or updated or deleted_ids) else FALLBACK_SUMMARY

    return TaskDiff(
        added=tuple(added),
        updated=tuple(updated),
        deleted_ids=tuple(deleted_ids),
        summary=choose_summary(raw.get("summary"), remainder, fallback),
    )
