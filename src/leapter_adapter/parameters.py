"""Gathering request bodies from form values, JSON text or tool arguments."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Union

from .errors import MalformedJsonError
from .projector import FIELD_ID_PREFIX


def try_parse_json(value: Any) -> Any:
    """Parse strings that look like a JSON array or object; keep anything else as is."""
    if not isinstance(value, str):
        return value

    trimmed = value.strip()
    if (trimmed.startswith("[") and trimmed.endswith("]")) or (
        trimmed.startswith("{") and trimmed.endswith("}")
    ):
        try:
            return json.loads(trimmed)
        except ValueError:
            return value
    return value


def gather_visual_parameters(values: Mapping[str, Any]) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    for key, value in values.items():
        if not key.startswith(FIELD_ID_PREFIX):
            continue
        body[key[len(FIELD_ID_PREFIX):]] = try_parse_json(value)
    return body


def gather_json_parameters(raw: Union[str, Mapping[str, Any], None]) -> Dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise MalformedJsonError(f"Parameters (JSON) is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MalformedJsonError("Parameters (JSON) must be a JSON object")
    return parsed
