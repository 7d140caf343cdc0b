"""
app/parsing/header_sanitizer.py

Make raw header rows usable as row-object keys.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


def sanitize_headers(headers: Sequence[Any]) -> list[str]:
    """
    Return trimmed, non-empty, unique headers in the original order.

    Blank headers become `Column_<position>`. Repeats get `_1`, `_2`, ...
    checked against names already assigned, so generated suffixes cannot
    collide with a later literal header.
    """

    sanitized: list[str] = []
    assigned: set[str] = set()
    for position, raw in enumerate(headers, start=1):
        name = "" if raw is None else str(raw).strip()
        if not name:
            name = f"Column_{position}"

        candidate = name
        suffix = 1
        while candidate in assigned:
            candidate = f"{name}_{suffix}"
            suffix += 1

        assigned.add(candidate)
        sanitized.append(candidate)
    return sanitized
