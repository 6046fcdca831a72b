"""Best-effort JSON extraction from model output."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class ExtractionResult:
    """
    Outcome of extracting JSON from a model response.

    Attributes:
        json: Parsed value, or None if no JSON could be located
        remainder: Response text with the recognized JSON span removed
            (the full text when nothing was parsed)
        strategy: Name of the strategy that matched (None on failure)
    """

    json: Any
    remainder: str
    strategy: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.strategy is not None


Strategy = Callable[[str], Optional[ExtractionResult]]


def _try_parse(candidate: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(candidate)
    except json.JSONDecodeError:
        return False, None


def extract_fenced_block(text: str) -> Optional[ExtractionResult]:
    """Parse the first ``` / ```json fenced block."""
    match = FENCED_BLOCK_RE.search(text)
    if not match:
        return None

    ok, value = _try_parse(match.group(1))
    if not ok:
        logger.debug("Fenced block found but did not parse as JSON")
        return None

    remainder = (text[: match.start()] + text[match.end() :]).strip()
    return ExtractionResult(json=value, remainder=remainder, strategy="fenced")


def extract_brace_span(text: str) -> Optional[ExtractionResult]:
    """Parse the span from the first '{' to the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None

    ok, value = _try_parse(text[start : end + 1])
    if not ok:
        logger.debug("Brace span found but did not parse as JSON")
        return None

    remainder = (text[:start] + text[end + 1 :]).strip()
    return ExtractionResult(json=value, remainder=remainder, strategy="brace")


def extract_whole_text(text: str) -> Optional[ExtractionResult]:
    """Parse the entire text (top-level arrays and scalars included)."""
    ok, value = _try_parse(text)
    if not ok:
        return None
    return ExtractionResult(json=value, remainder="", strategy="whole")


# Fenced first: stray braces in surrounding prose must not win
STRATEGIES: tuple[Strategy, ...] = (
    extract_fenced_block,
    extract_brace_span,
    extract_whole_text,
)


def extract(text: str, strategies: tuple[Strategy, ...] = STRATEGIES) -> ExtractionResult:
    """
    Locate and parse a JSON payload in model output.

    Strategies run in order and the first success wins. Never raises: when
    nothing parses, returns json=None with the text unchanged as remainder.

    Args:
        text: Raw response text
        strategies: Ordered extraction strategies

    Returns:
        ExtractionResult
    """
    if not text or not text.strip():
        return ExtractionResult(json=None, remainder=text or "")

    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            logger.debug(f"Extracted JSON via {result.strategy} strategy")
            return result

    logger.debug(f"No JSON found in response ({len(text)} chars)")
    return ExtractionResult(json=None, remainder=text)
