"""Factory for creating LLM clients."""

import logging
import os

from boardmate.config import Config
from boardmate.errors import ConfigError
from boardmate.llm.client import LLMClient
from boardmate.llm.providers.anthropic import AnthropicClient
from boardmate.llm.providers.gemini import GeminiClient
from boardmate.llm.providers.ollama import OllamaClient
from boardmate.llm.providers.openrouter import OpenRouterClient

logger = logging.getLogger(__name__)


def _require_api_key(config: Config, api_key: str | None) -> str:
    key = api_key or os.getenv(config.llm.api_key_env)
    if not key or key == "undefined":
        raise ConfigError(
            f"API Key is missing. Set {config.llm.api_key_env} environment variable."
        )
    return key


def get_llm_client(
    config: Config,
    fast: bool = False,
    api_key: str | None = None,
) -> LLMClient:
    """
    Factory to get LLM client based on config.

    Args:
        config: Boardmate configuration
        fast: Use the configured fast model (summaries, breakdowns)
        api_key: Explicit key; overrides the environment variable

    Returns:
        LLM client instance

    Raises:
        ConfigError: If provider is unknown or its API key is missing
    """
    provider = config.llm.provider
    model = config.llm.fast_model if fast else config.llm.model

    logger.debug(f"Creating LLM client: provider={provider}, model={model}")

    if provider == "gemini":
        return GeminiClient(api_key=_require_api_key(config, api_key), model=model)

    elif provider == "anthropic":
        return AnthropicClient(api_key=_require_api_key(config, api_key), model=model)

    elif provider == "openrouter":
        return OpenRouterClient(api_key=_require_api_key(config, api_key), model=model)

    elif provider == "ollama":
        # Ollama doesn't need API key
        base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
        return OllamaClient(base_url=base_url, model=model)

    else:
        raise ConfigError(f"Unknown LLM provider: {provider}")
