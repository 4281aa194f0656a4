"""Routing of free-form tool calls to one blueprint operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

from .errors import RouterAmbiguityError
from .naming import sanitize_tool_name

logger = logging.getLogger(__name__)


# Keys the host or the tool wrapper injects into tool-call input. They are
# never blueprint parameters.
RESERVED_INPUT_KEYS: FrozenSet[str] = frozenset(
    {
        "action",
        "blueprint",
        "parameters",
        "tool",
        "toolCallId",
        "sessionId",
        "chatInput",
    }
)
ACTION_KEYS: Tuple[str, ...] = ("blueprint", "action")


@dataclass(frozen=True)
class RouteCandidate:
    name: str
    display_name: str
    keys: FrozenSet[str]


def split_arguments(arguments: Mapping[str, Any]) -> Tuple[Optional[str], Dict[str, Any]]:
    """Separate the requested action name from the blueprint parameters."""
    action: Optional[str] = None
    for key in ACTION_KEYS:
        value = arguments.get(key)
        if isinstance(value, str) and value:
            action = value
            break

    nested = arguments.get("parameters")
    if isinstance(nested, Mapping):
        return action, dict(nested)
    return action, {
        key: value for key, value in arguments.items() if key not in RESERVED_INPUT_KEYS
    }


def score_candidate(input_keys: FrozenSet[str], candidate_keys: FrozenSet[str]) -> float:
    if not candidate_keys:
        return 0.0
    overlap = len(input_keys & candidate_keys)
    return overlap + overlap / len(candidate_keys)


def select_candidate(
    candidates: Sequence[RouteCandidate],
    input_keys: FrozenSet[str],
    action: Optional[str] = None,
) -> RouteCandidate:
    if action:
        wanted = sanitize_tool_name(action)
        for candidate in candidates:
            if candidate.name == wanted:
                return candidate
        for candidate in candidates:
            if sanitize_tool_name(candidate.display_name) == wanted:
                return candidate

    if len(candidates) == 1:
        return candidates[0]

    best: Optional[RouteCandidate] = None
    best_score = 0.0
    for candidate in candidates:
        score = score_candidate(input_keys, candidate.keys)
        if score > best_score:
            best, best_score = candidate, score

    if best is not None:
        logger.info("Routed tool call to %s (score %.2f)", best.name, best_score)
        return best

    names = [candidate.name for candidate in candidates]
    if action:
        message = f'Blueprint "{action}" not found. Available: {", ".join(names)}'
    else:
        message = f"Could not determine which blueprint to run. Available: {', '.join(names)}"
    raise RouterAmbiguityError(message, names)
