"""OpenAPI document models and blueprint operation discovery."""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from .errors import InvalidSpecError, MissingServerError
from .models import HttpMethod, OperationDescriptor


logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
MODEL_PATH_PATTERN = re.compile(r"/models/([^/]+)/runs")


class SchemaType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class SchemaNode(BaseModel):
    """A JSON Schema node. A node with ``ref`` set must be resolved before use."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Optional[SchemaType] = None
    enum: Optional[List[Any]] = None
    properties: Optional[Dict[str, SchemaNode]] = None
    required: List[str] = Field(default_factory=list)
    items: Optional[SchemaNode] = None
    description: Optional[str] = None
    ref: Optional[str] = Field(default=None, alias="$ref")

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value in SchemaType._value2member_map_:
            return value
        return None

    @field_validator("required", mode="before")
    @classmethod
    def _required_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []


class MediaType(BaseModel):
    model_config = ConfigDict(extra="allow")

    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")


class RequestBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    required: bool = False
    description: Optional[str] = None
    content: Dict[str, MediaType] = Field(default_factory=dict)


class Operation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    deprecated: bool = False
    request_body: Optional[RequestBody] = Field(default=None, alias="requestBody")

    def json_schema(self) -> Optional[SchemaNode]:
        if not self.request_body:
            return None
        media = self.request_body.content.get(JSON_CONTENT_TYPE)
        return media.schema_ if media else None


class PathItem(BaseModel):
    # Only POST is modelled; other methods on a path item are dropped.
    model_config = ConfigDict(extra="ignore")

    post: Optional[Operation] = None

    def operation(self, method: HttpMethod) -> Optional[Operation]:
        if method is HttpMethod.POST:
            return self.post
        return None


class Server(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str
    description: Optional[str] = None


class OpenAPIDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    openapi: str
    servers: List[Server] = Field(default_factory=list)
    paths: Dict[str, PathItem]

    _raw: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_raw(cls, data: Any) -> "OpenAPIDocument":
        if not isinstance(data, dict) or not data.get("openapi") or data.get("paths") is None:
            raise InvalidSpecError("Invalid OpenAPI specification")
        try:
            document = cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidSpecError(f"Invalid OpenAPI specification: {exc}") from exc
        if not document.servers:
            raise MissingServerError("OpenAPI spec must define at least one server URL")
        server_url = document.servers[0].url
        if not server_url.startswith(("http://", "https://")):
            raise MissingServerError(
                f'OpenAPI spec server URL must be absolute, got: "{server_url}". '
                "The spec.servers[0].url must include the protocol and host."
            )
        document._raw = data
        return document

    @property
    def raw(self) -> Dict[str, Any]:
        return self._raw

    @property
    def server_url(self) -> str:
        return self.servers[0].url.rstrip("/")

    def iter_operations(self, method: HttpMethod = HttpMethod.POST):
        """Yield ``(path, operation)`` for every non-deprecated operation of ``method``."""
        for path, path_item in self.paths.items():
            operation = path_item.operation(method)
            if operation is None or operation.deprecated:
                continue
            yield path, operation


def extract_model_id(path: str) -> Optional[str]:
    match = MODEL_PATH_PATTERN.search(path)
    return match.group(1) if match else None


def operation_display_name(path: str, operation: Operation) -> str:
    return (
        operation.summary
        or operation.operation_id
        or extract_model_id(path)
        or path.replace("/", "_")
    )


def extract_operations(
    document: OpenAPIDocument, editor_base_url: str
) -> List[OperationDescriptor]:
    operations: List[OperationDescriptor] = []
    server_url = document.server_url

    for path, operation in document.iter_operations():
        operations.append(
            OperationDescriptor(
                path=path,
                operation_url=f"{server_url}{path}",
                editor_base_url=editor_base_url,
                name=operation_display_name(path, operation),
                description=operation.description or "",
                operation_id=operation.operation_id,
            )
        )

    logger.debug("Discovered %s blueprint operations", len(operations))
    return operations


SchemaNode.model_rebuild()
