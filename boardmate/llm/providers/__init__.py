"""LLM provider implementations."""

from boardmate.llm.providers.anthropic import AnthropicClient
from boardmate.llm.providers.gemini import GeminiClient
from boardmate.llm.providers.ollama import OllamaClient
from boardmate.llm.providers.openrouter import OpenRouterClient

__all__ = [
    "AnthropicClient",
    "GeminiClient",
    "OpenRouterClient",
    "OllamaClient",
]
