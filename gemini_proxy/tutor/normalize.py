from __future__ import annotations

import json
import logging
import re
from typing import Any

from gemini_proxy.core.errors import NormalizationError

logger = logging.getLogger(__name__)

# Order matters: the tagged marker must be removed before the bare one.
_FENCE_MARKERS = re.compile(r"```json|```", re.IGNORECASE)


def strip_fences(text: str) -> str:
    """Remove every markdown fence marker from ``text``.

    This is token removal, not markdown parsing: any number of fences,
    tagged or not, may appear anywhere in the reply.
    """

    # Repeat until stable so removal cannot splice new markers together.
    while True:
        stripped = _FENCE_MARKERS.sub("", text).strip()
        if stripped == text:
            return stripped
        text = stripped


def normalize_chat(text: str) -> dict[str, str]:
    return {"reply": text}


def normalize_bundle(text: str) -> Any:
    try:
        return json.loads(strip_fences(text), parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        logger.warning("Bundle reply is not valid JSON: %s", exc)
        raise NormalizationError(
            message="The model reply was not valid JSON.",
            details=f"JSON parse error: {exc}",
        ) from exc


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON, even though the json module accepts them.
    raise ValueError(f"{name} is not a valid JSON value")
