"""
Delta Calculator

Summarizes how the text a user actually posted differs from the rewrite
they were offered. This is a cheap heuristic over common editing
shapes (appending, truncating, unchanged), not an edit distance:

  actual == suggested              -> ""
  actual extends suggested         -> the appended tail
  actual is a prefix of suggested  -> "[REMOVED: <dropped tail>]"
  otherwise                        -> actual with suggested removed
"""

from __future__ import annotations

import re

from deescalator.scorer import ensure_text

_LEADING_JOINERS = re.compile(r"^[.,;:!?\s]+")


def delta(actual: str, suggested: str) -> str:
    ensure_text(actual, "actual")
    ensure_text(suggested, "suggested")
    if not actual or not suggested:
        return ""

    actual = actual.strip()
    suggested = suggested.strip()

    if actual == suggested:
        return ""

    if actual.startswith(suggested):
        return _LEADING_JOINERS.sub("", actual[len(suggested):])

    if suggested.startswith(actual):
        return f"[REMOVED: {suggested[len(actual):].strip()}]"

    return actual.replace(suggested, "").strip()
