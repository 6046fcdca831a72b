"""Google Gemini provider implementation."""

import logging
from typing import Any, Optional

import httpx

from boardmate.llm.client import LLMClient

logger = logging.getLogger(__name__)


def to_gemini_schema(schema: Any) -> Any:
    """
    Convert a JSON schema to the OpenAPI subset Gemini expects.

    Gemini spells types in upper case ("OBJECT", "ARRAY", ...) and rejects
    keywords outside its subset, such as `additionalProperties`.

    Args:
        schema: JSON schema (dict, list or scalar)

    Returns:
        Converted schema
    """
    if isinstance(schema, list):
        return [to_gemini_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "additionalProperties":
            continue
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: to_gemini_schema(prop) for name, prop in value.items()}
        else:
            converted[key] = to_gemini_schema(value)
    return converted


class GeminiClient(LLMClient):
    """Gemini API client (Generative Language REST API)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
    ):
        """Initialize Gemini client.

        Args:
            api_key: Google AI Studio API key
            model: Model name to use
            base_url: API base URL
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

    def call(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        response_schema: Optional[dict[str, Any]] = None,
        max_tokens: int = 4096,
        timeout: int = 300,
    ) -> str:
        """Call Gemini generateContent.

        Args:
            prompt: User prompt
            system_prompt: System instruction
            response_schema: Enables JSON mode with this response schema
            max_tokens: Max output tokens
            timeout: Call timeout in seconds

        Returns:
            Concatenated text parts of the first candidate
        """
        generation_config: dict[str, Any] = {"maxOutputTokens": max_tokens}
        if response_schema:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = to_gemini_schema(response_schema)

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    f"{self.base_url}/models/{self.model}:generateContent",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()

                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini API error: {e.response.status_code} - {e.response.text}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Gemini request error: {e}")
            raise

        candidates = data.get("candidates") or []
        if not candidates:
            # Blocked prompts come back with promptFeedback and no candidates
            logger.warning(f"Gemini returned no candidates: {data.get('promptFeedback')}")
            return ""

        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)
