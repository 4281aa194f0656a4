"""Internal models for projects, blueprints and execution results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple, Type

from pydantic import BaseModel


DEFAULT_SERVER = "https://lab.leapter.com"


class HttpMethod(str, Enum):
    """HTTP methods the adapter will dispatch. Blueprint runs are POST only."""

    POST = "post"


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    OPTIONS = "options"


class InputMode(str, Enum):
    VISUAL = "visual"
    JSON = "json"


@dataclass(frozen=True)
class LeapterCredentials:
    api_key: str
    server: str = DEFAULT_SERVER

    def __repr__(self) -> str:
        return f"LeapterCredentials(api_key='***', server={self.server!r})"


@dataclass(frozen=True)
class ProjectDescriptor:
    project_id: str
    name: str
    spec_url: str
    editor_base_url: str


@dataclass(frozen=True)
class OperationDescriptor:
    path: str
    operation_url: str
    editor_base_url: str
    name: str
    description: str = ""
    operation_id: Optional[str] = None
    method: HttpMethod = HttpMethod.POST


@dataclass(frozen=True)
class FieldOption:
    name: str
    value: Any


@dataclass(frozen=True)
class FieldDescriptor:
    id: str
    display_name: str
    required: bool
    type: FieldType
    options: Tuple[FieldOption, ...] = ()
    default_value: Optional[str] = None
    display: bool = True
    default_match: bool = False
    can_be_used_to_match: bool = False


@dataclass(frozen=True)
class SelectorOption:
    """A dropdown entry whose value is an encoded compound selector."""

    name: str
    value: str
    description: Optional[str] = None


@dataclass(frozen=True)
class ExecutionContext:
    execution_id: str = ""
    continue_on_fail: bool = False


@dataclass
class ItemResult:
    item_index: int
    json: Dict[str, Any] = field(default_factory=dict)
    is_error: bool = False


@dataclass(frozen=True)
class BlueprintTool:
    """A blueprint exposed to a tool-calling model."""

    name: str
    description: str
    operation: OperationDescriptor
    input_model: Type[BaseModel]
    keys: FrozenSet[str] = frozenset()
