"""Turn untrusted classifier output into a :class:`ModerationVerdict`.

Two steps live here: pulling a JSON object out of free-form model text
(:func:`extract_json_object`) and coercing that object field by field into
the canonical verdict (:func:`normalize`).  Nothing about the upstream shape
is trusted; absent or mistyped fields get explicit defaults.
"""

from __future__ import annotations

import json
import math
import numbers
from typing import Any, Optional

from tonemeter.moderation.models import DEFAULT_TONE_SCORE, ModerationVerdict, NormalizationError

_FALSE_STRINGS = {"", "false", "0", "no", "null", "none"}

# Keys some models use instead of the documented one.
_INTOXICATION_KEYS = ("isIntoxicationSuspected", "isDrunk", "intoxicationSuspected")


def _balanced_object(text: str, start: int) -> Optional[str]:
    """Return the ``{...}`` substring opening at *start*, or ``None``."""
    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_object(text: str) -> Optional[Any]:
    """Parse *text* as JSON, or the first balanced ``{...}`` inside it.

    Returns ``None`` when neither attempt yields valid JSON.
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        pass

    start = text.find("{")
    while start >= 0:
        candidate = _balanced_object(text, start)
        if candidate is not None:
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                pass
        start = text.find("{", start + 1)
    return None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return DEFAULT_TONE_SCORE
    if math.isnan(value):
        return DEFAULT_TONE_SCORE
    if math.isinf(value):
        return 100 if value > 0 else 0
    return max(0, min(100, int(round(value))))


def normalize(raw: Any) -> ModerationVerdict:
    """Coerce a parsed classifier response into a verdict.

    Raises :class:`NormalizationError` when *raw* is not a JSON object; the
    caller is expected to fall back to the heuristic analyzer.
    """
    if not isinstance(raw, dict):
        raise NormalizationError(
            f"classifier response is not an object: {type(raw).__name__}"
        )

    issues_raw = raw.get("issues")
    if isinstance(issues_raw, (list, tuple)):
        issues = tuple(str(i) for i in issues_raw if i is not None)
    else:
        issues = ()

    suggestion = raw.get("suggestion")
    suggestion = "" if suggestion is None else str(suggestion)

    intoxication = False
    for key in _INTOXICATION_KEYS:
        if key in raw:
            intoxication = _coerce_bool(raw[key])
            break

    return ModerationVerdict(
        has_issues=_coerce_bool(raw.get("hasIssues", False)),
        issues=issues,
        suggestion=suggestion,
        is_intoxication_suspected=intoxication,
        tone_score=_coerce_score(raw.get("toneScore")),
    )
