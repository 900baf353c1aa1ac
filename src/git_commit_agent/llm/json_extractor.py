"""
Best-effort extraction of a JSON object from free-form model output.

Models asked for "only JSON" still wrap their answer in prose or code
fences. :func:`extract_json` locates the most likely object and
returns it as compact single-line JSON. It is a heuristic, not a
parser: when the text holds several sibling objects the greedy span
from the first ``{`` to the last ``}`` is not valid JSON, and the
function falls back to the fenced block or to the raw text. Callers
must always validate the result.
"""

from __future__ import annotations

import json


FENCE_MARKER = "```json"
FENCE = "```"


def _compact(value: object) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _greedy_object(text: str):
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    try:
        return json.loads(text[start : end + 1])
    except ValueError:
        return None


def _fenced_block(text: str):
    start = text.find(FENCE_MARKER)
    if start == -1:
        return None
    # Skip the rest of the opening fence line.
    body_start = text.find("\n", start)
    if body_start == -1:
        return ""
    body_start += 1
    end = text.find(FENCE, body_start)
    if end == -1:
        end = len(text)
    return text[body_start:end].strip()


def extract_json(raw_text: str) -> str:
    """Return the best JSON object candidate found in ``raw_text``.

    1. The span between the first ``{`` and the last ``}``, if it parses,
       returned in compact form.
    2. Otherwise the body of the first "```json" fenced block.
    3. Otherwise ``raw_text`` unchanged.

    Examples
    --------
    >>> extract_json('Sure! {"summary": "Add test file"} Hope it helps.')
    '{"summary":"Add test file"}'
    >>> extract_json("")
    ''
    """
    if not raw_text:
        return raw_text

    candidate = _greedy_object(raw_text)
    if candidate is not None:
        return _compact(candidate)

    fenced = _fenced_block(raw_text)
    if fenced is not None:
        return fenced

    return raw_text
