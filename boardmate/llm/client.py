"""LLM client abstraction for provider-agnostic LLM calls."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class LLMClient(ABC):
    """Provider-agnostic LLM client interface."""

    @abstractmethod
    def call(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        response_schema: Optional[dict[str, Any]] = None,
        max_tokens: int = 4096,
        timeout: int = 300,
    ) -> str:
        """
        Call LLM and return its text output.

        Args:
            prompt: User prompt
            system_prompt: System message
            response_schema: JSON schema the model is asked to honor. Advisory:
                callers must still validate whatever text comes back.
            max_tokens: Max response tokens
            timeout: Call timeout in seconds

        Returns:
            Raw LLM response text
        """
        pass
