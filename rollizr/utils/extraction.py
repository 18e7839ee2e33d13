"""Recover structured data from free-form generation text.

The upstream model is asked for JSON but is not guaranteed to produce it, so
extraction is an ordered list of strategies, each of type
``str -> Optional[dict]``. The first strategy that yields a JSON object wins:

1. the whole text parsed as JSON;
2. the interior of the first fenced block tagged ``json``;
3. the span from the first ``{`` to the last ``}``.

When every strategy fails the text is wrapped in
:class:`~rollizr.schemas.models.UnstructuredOutput` unchanged. Extraction
never raises.

Step 3 is greedy on purpose so that preamble and postamble commentary around
one large object is tolerated; text holding several separate objects will
usually fail that step and fall back to raw text.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..schemas.models import StructuredOutput, UnstructuredOutput

logger = logging.getLogger(__name__)

Strategy = Callable[[str], Optional[Dict[str, Any]]]

_FENCED_JSON = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def parse_whole(text: str) -> Optional[Dict[str, Any]]:
    return _loads_object(text.strip())


def parse_fenced_block(text: str) -> Optional[Dict[str, Any]]:
    match = _FENCED_JSON.search(text)
    if not match:
        return None
    return _loads_object(match.group(1))


def parse_brace_span(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _loads_object(text[start : end + 1])


DEFAULT_STRATEGIES: List[Strategy] = [parse_whole, parse_fenced_block, parse_brace_span]


def extract_structured(
    text: str,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> Union[StructuredOutput, UnstructuredOutput]:
    """Run ``strategies`` in order and wrap the first hit.

    Parameters
    ----------
    text: str
        Raw response text from the generation service.
    strategies: Sequence[Strategy]
        Extraction functions tried in order.

    Returns
    -------
    Union[StructuredOutput, UnstructuredOutput]
        The recovered object, or the original text when nothing parsed.
    """
    for strategy in strategies:
        data = strategy(text)
        if data is not None:
            return StructuredOutput(data=data)
    logger.debug("No JSON object recovered from %d chars of response text", len(text))
    return UnstructuredOutput(raw_text=text)
