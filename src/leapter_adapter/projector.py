"""Projection of request-body schemas into form fields and tool input models."""

from __future__ import annotations

import keyword
import logging
import re
from typing import Any, Dict, FrozenSet, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.fields import FieldInfo

from .errors import ReferenceCycleError
from .models import FieldDescriptor, FieldOption, FieldType
from .openapi import OpenAPIDocument, Operation, SchemaNode, SchemaType
from .resolver import MAX_REFERENCE_DEPTH, resolve


logger = logging.getLogger(__name__)

FIELD_ID_PREFIX = "body."
STRING_ARRAY_PLACEHOLDER = '["value1", "value2"]'
NUMBER_ARRAY_PLACEHOLDER = "[1, 2, 3]"

# Integers are accepted as-is rather than coerced to float.
Number = Union[int, float]

FieldDefinitions = Dict[str, Tuple[Any, FieldInfo]]

_FIELD_TYPES: Dict[SchemaType, FieldType] = {
    SchemaType.STRING: FieldType.STRING,
    SchemaType.INTEGER: FieldType.NUMBER,
    SchemaType.NUMBER: FieldType.NUMBER,
    SchemaType.BOOLEAN: FieldType.BOOLEAN,
    SchemaType.OBJECT: FieldType.OBJECT,
    SchemaType.ARRAY: FieldType.ARRAY,
}


def map_field_type(schema_type: Optional[SchemaType]) -> FieldType:
    if schema_type is None:
        return FieldType.STRING
    return _FIELD_TYPES.get(schema_type, FieldType.STRING)


def request_body_schema(
    operation: Operation, document: OpenAPIDocument
) -> Optional[SchemaNode]:
    schema = operation.json_schema()
    if schema is None:
        return None
    return resolve(schema, document)


def project_fields(
    body_schema: Optional[SchemaNode], document: OpenAPIDocument
) -> List[FieldDescriptor]:
    """Build one form field per top-level body property, in document order."""
    if body_schema is None:
        return []
    resolved = resolve(body_schema, document)
    required = resolved.required
    fields: List[FieldDescriptor] = []

    for name, property_schema in (resolved.properties or {}).items():
        prop = resolve(property_schema, document)
        display_name = f"{name} - {prop.description}" if prop.description else name
        field_id = f"{FIELD_ID_PREFIX}{name}"
        is_required = name in required

        if prop.enum:
            fields.append(
                FieldDescriptor(
                    id=field_id,
                    display_name=display_name,
                    required=is_required,
                    type=FieldType.OPTIONS,
                    options=tuple(FieldOption(name=str(value), value=value) for value in prop.enum),
                )
            )
        elif prop.type is SchemaType.ARRAY:
            item_type = resolve(prop.items, document).type if prop.items else None
            placeholder = (
                STRING_ARRAY_PLACEHOLDER
                if item_type in (None, SchemaType.STRING)
                else NUMBER_ARRAY_PLACEHOLDER
            )
            fields.append(
                FieldDescriptor(
                    id=field_id,
                    display_name=f"{display_name} (JSON array)",
                    required=is_required,
                    type=FieldType.STRING,
                    default_value=placeholder,
                )
            )
        else:
            fields.append(
                FieldDescriptor(
                    id=field_id,
                    display_name=display_name,
                    required=is_required,
                    type=map_field_type(prop.type),
                )
            )

    return fields


def project_parameter_schema(
    operation: Operation, document: OpenAPIDocument, model_name: str = "Blueprint"
) -> FieldDefinitions:
    """Convert the JSON body schema of ``operation`` into pydantic field definitions."""
    schema = request_body_schema(operation, document)
    if schema is None:
        return {}
    return _object_fields(schema, document, model_name, depth=0)


def build_input_model(model_name: str, fields: FieldDefinitions) -> type[BaseModel]:
    # Fields carry the property name as alias; dump with by_alias=True.
    model_config = ConfigDict(extra="allow", populate_by_name=True, protected_namespaces=())
    return create_model(_model_name(model_name), __config__=model_config, **fields)


def schema_keys(operation: Operation, document: OpenAPIDocument) -> FrozenSet[str]:
    schema = request_body_schema(operation, document)
    if schema is None:
        return frozenset()
    return frozenset((schema.properties or {}).keys())


def _object_fields(
    schema: SchemaNode, document: OpenAPIDocument, model_name: str, depth: int
) -> FieldDefinitions:
    fields: FieldDefinitions = {}
    for name, property_schema in (schema.properties or {}).items():
        annotation, description = _annotation(
            property_schema, document, f"{model_name}_{name}", depth + 1
        )
        field_name = field_identifier(name, fields)
        if name in schema.required:
            fields[field_name] = (
                annotation,
                Field(..., alias=name, description=description),
            )
        else:
            fields[field_name] = (
                Optional[annotation],
                Field(None, alias=name, description=description),
            )
    return fields


def field_identifier(name: str, taken: Iterable[str] = ()) -> str:
    """Map a body property name onto a pydantic field name.

    Leading underscores, keywords and names that shadow ``BaseModel``
    attributes (``json``, ``schema``, ``model_config``) are not valid field
    names, so they are rewritten. The property name is kept as the alias.
    """
    identifier = re.sub(r"\W", "_", name).lstrip("_")
    if not identifier or identifier[0].isdigit():
        identifier = f"field_{identifier}"
    if keyword.iskeyword(identifier) or hasattr(BaseModel, identifier):
        identifier = f"{identifier}_"
    candidate = identifier
    suffix = 1
    while candidate in taken:
        candidate = f"{identifier}_{suffix}"
        suffix += 1
    return candidate


def _annotation(
    node: SchemaNode, document: OpenAPIDocument, model_name: str, depth: int
) -> Tuple[Any, Optional[str]]:
    if depth > MAX_REFERENCE_DEPTH:
        raise ReferenceCycleError(
            f"Schema nesting exceeds {MAX_REFERENCE_DEPTH} levels at {model_name}"
        )
    resolved = resolve(node, document)
    schema_type = resolved.type

    if schema_type in (SchemaType.INTEGER, SchemaType.NUMBER):
        annotation: Any = Number
    elif schema_type is SchemaType.BOOLEAN:
        annotation = bool
    elif schema_type is SchemaType.ARRAY:
        if resolved.items is not None:
            item_annotation, _ = _annotation(
                resolved.items, document, f"{model_name}_item", depth + 1
            )
        else:
            item_annotation = str
        annotation = List[item_annotation]
    elif schema_type is SchemaType.OBJECT:
        if resolved.properties:
            nested = _object_fields(resolved, document, model_name, depth)
            annotation = build_input_model(model_name, nested)
        else:
            annotation = Dict[str, Any]
    elif schema_type is SchemaType.STRING and resolved.enum:
        annotation = Literal[tuple(resolved.enum)]
    else:
        annotation = str

    return annotation, resolved.description


def _model_name(name: str) -> str:
    cleaned = re.sub(r"[^0-9a-zA-Z_]", "_", name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"M_{cleaned}"
    return cleaned
