"""Anthropic provider implementation."""

import json
import logging
from typing import Any, Optional

from anthropic import Anthropic, AnthropicError

from boardmate.llm.client import LLMClient

logger = logging.getLogger(__name__)


class AnthropicClient(LLMClient):
    """Anthropic API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5",
    ):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Model name to use
        """
        self.client = Anthropic(api_key=api_key)  # type: ignore[misc]
        self.model = model

    def call(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        response_schema: Optional[dict[str, Any]] = None,
        max_tokens: int = 4096,
        timeout: int = 300,
    ) -> str:
        """Call Anthropic Messages API.

        The Messages API has no JSON mode, so a requested schema is appended
        to the system prompt as an instruction.

        Args:
            prompt: User prompt
            system_prompt: System message
            response_schema: Advisory JSON schema
            max_tokens: Max response tokens
            timeout: Call timeout in seconds

        Returns:
            LLM response
        """
        messages = [{"role": "user", "content": prompt}]

        kwargs: dict[str, object] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "timeout": timeout,
        }

        system = system_prompt or ""
        if response_schema:
            system += (
                "\n\nRespond with a single JSON object matching this schema:\n"
                + json.dumps(response_schema, indent=2)
            )
        if system:
            kwargs["system"] = system.strip()

        try:
            response = self.client.messages.create(**kwargs)

            content_blocks = response.content
            text_parts = [block.text for block in content_blocks if hasattr(block, "text")]

            return "\n\n".join(text_parts)
        except AnthropicError as e:
            logger.error(f"Anthropic API error: {e}")
            raise
