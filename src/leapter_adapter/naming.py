"""Tool identifiers exposed to language models."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Set


DEFAULT_TOOL_NAME = "leapter_tool"
MAX_TOOL_NAME_LENGTH = 64

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9_-]")


def sanitize_tool_name(name: str) -> str:
    """Map ``name`` onto ``^[a-z0-9_-]{1,64}$``."""
    sanitized = _WHITESPACE.sub("_", name.lower())
    sanitized = _DISALLOWED.sub("", sanitized)[:MAX_TOOL_NAME_LENGTH]
    return sanitized or DEFAULT_TOOL_NAME


def deduplicate_tool_names(names: Iterable[str], reserved: Iterable[str] = ()) -> List[str]:
    """Suffix repeated names with ``_1``, ``_2``... in encounter order.

    Names in ``reserved`` are never handed out. The base is shortened so the
    suffixed name still fits in :data:`MAX_TOOL_NAME_LENGTH`.
    """
    taken: Set[str] = set(reserved)
    counts: Dict[str, int] = {}
    result: List[str] = []

    for name in names:
        candidate = name
        count = counts.get(name, 0)
        while candidate in taken:
            count += 1
            suffix = f"_{count}"
            candidate = f"{name[:MAX_TOOL_NAME_LENGTH - len(suffix)]}{suffix}"
        counts[name] = count
        taken.add(candidate)
        result.append(candidate)

    return result
