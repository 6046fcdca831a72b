"""Multi-provider LLM client abstraction for Boardmate."""

from boardmate.llm.client import LLMClient
from boardmate.llm.factory import get_llm_client

__all__ = [
    "LLMClient",
    "get_llm_client",
]
