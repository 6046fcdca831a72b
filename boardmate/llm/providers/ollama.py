"""Ollama provider implementation."""

import logging
from typing import Any, Optional

import httpx

from boardmate.llm.client import LLMClient

logger = logging.getLogger(__name__)


class OllamaClient(LLMClient):
    """Ollama local client."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1",
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            model: Model name to use
        """
        self.base_url = base_url
        self.model = model

    def call(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        response_schema: Optional[dict[str, Any]] = None,
        max_tokens: int = 4096,
        timeout: int = 300,
    ) -> str:
        """Call Ollama generate API.

        Args:
            prompt: User prompt
            system_prompt: System message
            response_schema: Passed as Ollama's structured `format`
            max_tokens: Mapped to `num_predict`
            timeout: Call timeout in seconds

        Returns:
            LLM response
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"num_predict": max_tokens},
        }

        if system_prompt:
            payload["system"] = system_prompt

        if response_schema:
            payload["format"] = response_schema

        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    f"{self.base_url}/api/generate",
                    json=payload,
                )
                response.raise_for_status()

                data = response.json()
                response_str = data.get("response", "")
                return str(response_str)

        except httpx.HTTPStatusError as e:
            logger.error(f"Ollama API error: {e.response.status_code} - {e.response.text}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Ollama request error: {e}")
            raise
