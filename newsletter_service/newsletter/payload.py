"""Tolerant parsing of AI model responses into plain dictionaries."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```(?:json|JSON)?")
OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def parse_payload(raw: Any) -> Dict[str, Any]:
    """Turn an AI response (object or possibly fenced JSON string) into a dict.

    Never raises: anything that does not decode to a JSON object yields ``{}``
    so callers always receive a mapping they can probe.
    """

    if not raw:
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if not isinstance(raw, str):
        logger.debug("Unsupported payload type %s, using empty payload", type(raw).__name__)
        return {}

    cleaned = FENCE_RE.sub("", raw).strip()
    decoded = _loads(cleaned)
    if decoded is None:
        match = OBJECT_RE.search(cleaned)
        if match:
            decoded = _loads(match.group(0))
    if not isinstance(decoded, dict):
        logger.debug("AI payload is not a JSON object", extra={"payload_length": len(raw)})
        return {}
    return decoded


def _loads(text: str) -> Optional[Any]:
    if not text:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
