"""Boardmate assistant - model output to confirmed task mutations."""

from boardmate.assistant.diff import TaskDiff
from boardmate.assistant.extractor import extract
from boardmate.assistant.sanitizer import sanitize

__all__ = ["TaskDiff", "extract", "sanitize"]
