"""Configuration loader."""

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from boardmate.errors import ConfigError

DEFAULT_DIR_NAME = ".boardmate"
DEFAULT_PROVIDER = "gemini"
VALID_PROVIDERS = ("gemini", "anthropic", "openrouter", "ollama")

# Per-provider defaults: (smart model, fast model, api key env var)
PROVIDER_DEFAULTS: dict[str, tuple[str, str, str]] = {
    "gemini": ("gemini-2.5-pro", "gemini-2.5-flash", "GEMINI_API_KEY"),
    "anthropic": ("claude-sonnet-4-5", "claude-haiku-4-5", "ANTHROPIC_API_KEY"),
    "openrouter": (
        "anthropic/claude-sonnet-4.5",
        "google/gemini-2.5-flash",
        "OPENROUTER_API_KEY",
    ),
    "ollama": ("llama3.1", "llama3.1", ""),
}

logger = logging.getLogger(__name__)


@dataclass
class DebugConfig:
    """Debug configuration."""

    enabled: bool = False

    @classmethod
    def from_env(cls) -> "DebugConfig":
        """Load debug config from environment variable."""
        debug_env = os.environ.get("BOARDMATE_DEBUG", "").lower()
        enabled = debug_env in ("1", "true", "yes")
        return cls(enabled=enabled)


@dataclass
class LLMConfig:
    """LLM provider configuration."""

    provider: str = DEFAULT_PROVIDER
    model: str = PROVIDER_DEFAULTS[DEFAULT_PROVIDER][0]
    fast_model: str = PROVIDER_DEFAULTS[DEFAULT_PROVIDER][1]
    api_key_env: str = PROVIDER_DEFAULTS[DEFAULT_PROVIDER][2]
    timeout: int = 120
    max_tokens: int = 4096

    @classmethod
    def for_provider(cls, provider: str) -> "LLMConfig":
        """Build an LLMConfig carrying the defaults of `provider`."""
        if provider not in PROVIDER_DEFAULTS:
            raise ConfigError(
                f"Unknown LLM provider: {provider}. Must be one of: {', '.join(VALID_PROVIDERS)}"
            )
        model, fast_model, api_key_env = PROVIDER_DEFAULTS[provider]
        return cls(
            provider=provider,
            model=model,
            fast_model=fast_model,
            api_key_env=api_key_env,
        )


@dataclass
class Config:
    """Boardmate configuration."""

    data_dir: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    tasks_path: Path = field(init=False)

    def __post_init__(self) -> None:
        """Compute derived paths."""
        self.tasks_path = self.data_dir / "tasks.json"


def _parse_config_file(config_path: Path) -> dict[str, str]:
    """
    Parse INI-style config file.

    Returns:
        Dict of config values (flattened: DEFAULT keys upper-cased,
        other sections as section.key)
    """
    if not config_path.exists():
        return {}

    parser = configparser.ConfigParser()
    parser.read(config_path)

    config = {}

    for key, value in parser["DEFAULT"].items():
        config[key.upper()] = value

    for section in parser.sections():
        for key, value in parser[section].items():
            if key in parser["DEFAULT"]:
                continue
            config[f"{section}.{key}"] = value

    return config


def _parse_int(raw: str | None, name: str, default: int) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value, using default: {default}")
        return default
    if value < 1:
        logger.warning(f"{name} must be >=1, using default: {default}")
        return default
    return value


def get_config() -> Config:
    """
    Get current configuration.

    Resolves from:
    1. Built-in defaults (per provider)
    2. Config file (<data dir>/config, INI format)
    3. Environment variables

    Returns:
        Config object with resolved paths and LLM settings

    Raises:
        ConfigError: If the configured provider is unknown
    """
    data_dir = Path(os.environ.get("BOARDMATE_DIR", Path.home() / DEFAULT_DIR_NAME))

    file_config = _parse_config_file(data_dir / "config")

    provider = (
        os.environ.get("BOARDMATE_LLM_PROVIDER")
        or file_config.get("LLM_PROVIDER")
        or file_config.get("llm.provider")
        or DEFAULT_PROVIDER
    ).lower()
    llm_config = LLMConfig.for_provider(provider)

    llm_model = (
        os.environ.get("BOARDMATE_LLM_MODEL")
        or file_config.get("LLM_MODEL")
        or file_config.get("llm.model")
    )
    if llm_model:
        llm_config.model = llm_model

    llm_fast_model = (
        os.environ.get("BOARDMATE_LLM_FAST_MODEL")
        or file_config.get("LLM_FAST_MODEL")
        or file_config.get("llm.fast_model")
    )
    if llm_fast_model:
        llm_config.fast_model = llm_fast_model

    llm_api_key_env = file_config.get("LLM_API_KEY_ENV") or file_config.get("llm.api_key_env")
    if llm_api_key_env:
        llm_config.api_key_env = llm_api_key_env

    llm_config.timeout = _parse_int(
        os.environ.get("BOARDMATE_LLM_TIMEOUT")
        or file_config.get("LLM_TIMEOUT")
        or file_config.get("llm.timeout"),
        "LLM_TIMEOUT",
        llm_config.timeout,
    )
    llm_config.max_tokens = _parse_int(
        os.environ.get("BOARDMATE_LLM_MAX_TOKENS")
        or file_config.get("LLM_MAX_TOKENS")
        or file_config.get("llm.max_tokens"),
        "LLM_MAX_TOKENS",
        llm_config.max_tokens,
    )

    logger.debug(f"Data dir: {data_dir}")
    logger.debug(f"LLM provider: {llm_config.provider}, model: {llm_config.model}")

    return Config(data_dir=data_dir, llm=llm_config)
