"""
Locate and parse the JSON object inside free-form model output.

Models wrap their JSON in prose or markdown fences. The outermost span
(first ``{`` to last ``}``) is tried first; when that does not parse
(e.g. two objects, or trailing prose with braces) the balanced
top-level objects are tried from last to first.
"""

import json
from typing import Any, Dict, List

from .errors import JSONExtractionError


def strip_fences(s: str) -> str:
    """Strip markdown code fences from text"""
    s = s.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else s
        if s.rstrip().endswith("```"):
            s = s.rsplit("```", 1)[0]
    return s.strip()


def outermost_object_span(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return ""
    return text[start:end + 1]


def balanced_objects(raw: str) -> List[str]:
    """Top-level brace-balanced spans, string-literal aware."""
    objs = []
    start = -1
    depth = 0
    in_str = False
    esc = False
    for i, ch in enumerate(raw):
        if in_str:
            if esc:
                esc = False
            elif ch == '\\':
                esc = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            if depth > 0:
                in_str = True
            continue
        if ch == '{':
            if depth == 0:
                start = i
            depth += 1
        elif ch == '}' and depth > 0:
            depth -= 1
            if depth == 0 and start != -1:
                objs.append(raw[start:i + 1])
                start = -1
    return objs


def extract_json_object(text: Any) -> Dict[str, Any]:
    """
    Return the JSON object embedded in ``text``.

    Raises:
        JSONExtractionError: no object-shaped span, or none of them parses
    """
    if not isinstance(text, str) or not text:
        raise JSONExtractionError("No valid JSON found in model response")

    raw = strip_fences(text)
    span = outermost_object_span(raw)
    if not span:
        raise JSONExtractionError("No valid JSON found in model response")

    try:
        obj = json.loads(span)
        if isinstance(obj, dict):
            return obj
    except json.JSONDecodeError:
        pass

    for cand in reversed(balanced_objects(raw)):
        try:
            obj = json.loads(cand)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            return obj
    raise JSONExtractionError("Model response contained no parsable JSON object")
