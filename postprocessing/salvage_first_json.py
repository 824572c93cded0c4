# --- Salvage logic: extract first balanced JSON object if wrapper text present ---
import json
from typing import Any, Dict, Optional


def extract_first_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span in ``text``, or None.

    Scans from the first '{', tracking nesting depth and whether the scanner is
    inside a string literal, so braces inside quoted text are not counted.
    Backslash escapes inside strings are honoured (``\\"`` does not close the
    string, ``\\\\`` does not escape the following quote).
    """
    if not isinstance(text, str):
        return None
    start = text.find('{')
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def salvage_first_json(text: str) -> Optional[Dict[str, Any]]:
    """Parse the first balanced JSON object found in a noisy model response.

    Code fences, preambles and trailing commentary around the object are
    ignored. Returns None when no object is found, when it is not valid JSON,
    or when it decodes to something other than a dict.
    """
    candidate = extract_first_json_object(text)
    if candidate is None:
        return None
    try:
        obj = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return obj if isinstance(obj, dict) else None
