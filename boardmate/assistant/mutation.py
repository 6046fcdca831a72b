"""Mutation request service: command + task snapshot -> sanitized TaskDiff."""

import asyncio
import logging
from typing import Any, Iterable, Optional

import httpx
from anthropic import APIConnectionError

from boardmate.assistant.diff import TaskDiff, TaskFields
from boardmate.assistant.extractor import extract
from boardmate.assistant.prompts import (
    ANALYSIS_SCHEMA,
    ANALYSIS_SYSTEM_PROMPT,
    BREAKDOWN_SYSTEM_PROMPT,
    MANAGE_SYSTEM_PROMPT,
    PARSE_SYSTEM_PROMPT,
    PARSED_TASK_SCHEMA,
    SUBTASK_SCHEMA,
    SUMMARY_SYSTEM_PROMPT,
    TASK_DIFF_SCHEMA,
    build_analysis_prompt,
    build_breakdown_prompt,
    build_manage_prompt,
    build_parse_prompt,
    build_summary_prompt,
    summarize_tasks,
)
from boardmate.assistant.sanitizer import sanitize, sanitize_added
from boardmate.config import Config
from boardmate.errors import BoardmateError, RequestFailedError
from boardmate.llm.client import LLMClient
from boardmate.llm.factory import get_llm_client
from boardmate.store import Task, generate_subtask_id

logger = logging.getLogger(__name__)

_LIMIT_PATTERNS = (
    "rate limit",
    "ratelimitexceeded",
    "resource_exhausted",
    "quota exceeded",
    "insufficient_quota",
    "too many requests",
)

EMPTY_SUMMARY = "There is nothing to summarize yet."


def _status_code(exc: Exception) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def describe_failure(exc: Exception) -> tuple[str, bool]:
    """
    Map a provider/transport exception to a human-readable reason.

    Response bodies are never interpreted beyond a status code and a few
    well-known rate-limit phrases.

    Args:
        exc: Exception raised while creating or calling the LLM client

    Returns:
        (message, retryable)
    """
    if isinstance(exc, BoardmateError):
        return exc.message, False

    status = _status_code(exc)
    text = str(exc).lower()

    if status in (401, 403):
        return "The API key was rejected. Check that it is valid.", False
    if status == 404:
        return "Model not found. Please check your API key or use a valid model.", False
    if status == 429 or any(pattern in text for pattern in _LIMIT_PATTERNS):
        return "Rate limit or quota exceeded. Please wait and try again.", True
    if status is not None and status >= 500:
        return f"The AI provider is unavailable right now (HTTP {status}).", True
    if isinstance(exc, httpx.TimeoutException):
        return "The AI request timed out.", True
    if isinstance(exc, (httpx.RequestError, APIConnectionError)):
        return "Network error: could not reach the AI provider.", True

    return str(exc) or "Failed to communicate with AI.", False


class MutationRequestService:
    """
    Sends board commands to the model and returns sanitized diffs.

    The declared response schema is only a request to the model: every
    response goes through extract() and sanitize() regardless.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        fast_client: Optional[LLMClient] = None,
        config: Optional[Config] = None,
        api_key: Optional[str] = None,
    ) -> None:
        """Initialize service.

        Clients not passed in are created from `config` on first use, so a
        missing API key surfaces as a failed request rather than at startup.

        Args:
            llm_client: Client for board commands and task parsing
            fast_client: Client for summaries and breakdowns (defaults to the
                configured fast model, or llm_client without a config)
            config: Boardmate configuration (required if no client is given)
            api_key: Explicit API key overriding the environment
        """
        if llm_client is None and config is None:
            raise ValueError("MutationRequestService needs an LLM client or a config")

        self.llm_client = llm_client
        self.fast_client = fast_client
        self.config = config
        self.api_key = api_key
        self.timeout = config.llm.timeout if config else 120
        self.max_tokens = config.llm.max_tokens if config else 4096

    def _get_client(self, fast: bool) -> LLMClient:
        if fast and self.fast_client is not None:
            return self.fast_client
        if self.config is None:
            assert self.llm_client is not None
            return self.llm_client

        if fast:
            self.fast_client = get_llm_client(self.config, fast=True, api_key=self.api_key)
            return self.fast_client
        if self.llm_client is None:
            self.llm_client = get_llm_client(self.config, api_key=self.api_key)
        return self.llm_client

    async def _call(
        self,
        prompt: str,
        system_prompt: str,
        response_schema: Optional[dict[str, Any]] = None,
        fast: bool = False,
    ) -> str:
        """
        Call the model off the event loop.

        Raises:
            RequestFailedError: On any client creation or transport failure
        """
        logger.debug(f"Sending prompt ({len(prompt)} chars, fast={fast})")
        try:
            client = self._get_client(fast)
            response = await asyncio.to_thread(
                client.call,
                prompt,
                system_prompt=system_prompt,
                response_schema=response_schema,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except Exception as e:
            message, retryable = describe_failure(e)
            logger.error(f"AI request failed: {e}")
            raise RequestFailedError(message, cause=e, retryable=retryable) from e

        text = (response or "").strip()
        logger.debug(f"Received response ({len(text)} chars)")
        return text

    async def request_mutation(
        self,
        command: str,
        snapshot: Iterable[Task | dict[str, Any]],
    ) -> TaskDiff:
        """
        Ask the model how to handle a board command.

        Args:
            command: Literal user command
            snapshot: Current tasks (full records are reduced before sending)

        Returns:
            Sanitized TaskDiff (conversational when the model proposed nothing usable)

        Raises:
            RequestFailedError: If the model could not be reached
        """
        prompt = build_manage_prompt(command, summarize_tasks(snapshot))
        text = await self._call(prompt, MANAGE_SYSTEM_PROMPT, TASK_DIFF_SCHEMA)

        extraction = extract(text)
        diff = sanitize(extraction.json, extraction.remainder)
        logger.info(
            f"Command produced {diff.action_count} actions "
            f"(extraction: {extraction.strategy or 'none'})"
        )
        return diff

    async def generate_summary(self, snapshot: Iterable[Task | dict[str, Any]]) -> str:
        """
        Summarize the board in markdown.

        Raises:
            RequestFailedError: If the model could not be reached
        """
        prompt = build_summary_prompt(summarize_tasks(snapshot))
        text = await self._call(prompt, SUMMARY_SYSTEM_PROMPT, fast=True)
        return text or EMPTY_SUMMARY

    async def break_down_task(self, title: str) -> list[dict[str, Any]]:
        """
        Propose subtasks for a task title.

        Accepts a top-level array or an object carrying `steps`/`subtasks`.
        Items without a title are dropped.

        Returns:
            Subtask dicts ({id, title, isCompleted=False})

        Raises:
            RequestFailedError: If the model could not be reached
        """
        text = await self._call(
            build_breakdown_prompt(title), BREAKDOWN_SYSTEM_PROMPT, SUBTASK_SCHEMA, fast=True
        )
        raw = extract(text).json
        if isinstance(raw, dict):
            raw = raw.get("steps") or raw.get("subtasks") or []
        if not isinstance(raw, list):
            logger.debug("Breakdown response held no list of steps")
            return []

        steps = []
        for item in raw:
            step_title = item.get("title") if isinstance(item, dict) else item
            if isinstance(step_title, str) and step_title.strip():
                steps.append(
                    {"id": generate_subtask_id(), "title": step_title.strip(), "isCompleted": False}
                )
        return steps

    async def parse_task(
        self,
        transcript: str,
        goals: Iterable[dict[str, Any]] = (),
    ) -> Optional[TaskFields]:
        """
        Reconstruct a task descriptor from dictated or free text.

        Returns:
            Task descriptor with a non-empty title, or None

        Raises:
            RequestFailedError: If the model could not be reached
        """
        text = await self._call(
            build_parse_prompt(transcript, goals), PARSE_SYSTEM_PROMPT, PARSED_TASK_SCHEMA
        )
        kept = sanitize_added({"added": [extract(text).json]})
        return kept[0] if kept else None

    async def analyze_task(self, task: Task | dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Check whether a task is a concrete action or an ambition to become.

        Args:
            task: Task (only title and description are sent)

        Returns:
            {"isBecoming": bool, "warning": str}, or None if the response
            held no JSON object

        Raises:
            RequestFailedError: If the model could not be reached
        """
        data = task.to_dict() if isinstance(task, Task) else task
        prompt = build_analysis_prompt(str(data.get("title", "")), data.get("description") or "")
        text = await self._call(prompt, ANALYSIS_SYSTEM_PROMPT, ANALYSIS_SCHEMA, fast=True)

        raw = extract(text).json
        if not isinstance(raw, dict):
            logger.debug("Analysis response held no object")
            return None

        is_becoming = raw.get("isBecoming") is True
        warning = raw.get("warning")
        return {
            "isBecoming": is_becoming,
            "warning": warning.strip() if is_becoming and isinstance(warning, str) else "",
        }
