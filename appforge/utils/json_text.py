"""Best-effort recovery of a JSON object from free model text.

The backend only promises text, so structured output is found by slicing
from the first ``{`` to the last ``}`` and parsing that span. Anything that
does not decode to an object falls back to a caller-supplied shape.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

OUTERMOST_BRACES_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the object spanning the outermost braces of ``text``, or None."""
    if not isinstance(text, str):
        return None
    match = OUTERMOST_BRACES_RE.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        logger.debug("Brace span of %d chars is not valid JSON", len(match.group(0)))
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def best_effort_decode(
    text: str,
    fallback: Callable[[str], Dict[str, Any]],
) -> Dict[str, Any]:
    """Parsed object from ``text`` or ``fallback(text)``; never raises on bad input."""
    parsed = extract_json_object(text)
    if parsed is not None:
        return parsed
    return fallback(text if isinstance(text, str) else "")
