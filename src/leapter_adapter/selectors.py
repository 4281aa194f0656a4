"""Compound selector values for project and blueprint dropdowns.

A selector packs every fact needed to run a blueprint into the option value the
user picks, so execution does not need a second discovery round-trip::

    project   := <id>::<specUrl>::<editorBaseUrl>::<name>
    operation := post::<path>::<operationUrl>::<editorBaseUrl>::<name>

The separator is not escaped. ``encode_selector`` refuses parts that contain it.
"""

from __future__ import annotations

from typing import List, Sequence

from .errors import SelectorError
from .models import HttpMethod, OperationDescriptor, ProjectDescriptor


SEPARATOR = "::"
DEFAULT_PROJECT_NAME = "leapter"


def encode_selector(parts: Sequence[str]) -> str:
    for part in parts:
        if SEPARATOR in part:
            raise SelectorError(
                f"Selector component {part!r} contains the reserved separator {SEPARATOR!r}"
            )
    return SEPARATOR.join(parts)


def decode_selector(value: str, size: int, minimum: int) -> List[str]:
    parts = value.split(SEPARATOR) if value else []
    if len(parts) < minimum or len(parts) > size:
        raise SelectorError(f'Invalid selector value: "{value}"')
    return parts + [""] * (size - len(parts))


def encode_project(project: ProjectDescriptor) -> str:
    return encode_selector(
        [project.project_id, project.spec_url, project.editor_base_url, project.name]
    )


def decode_project(value: str) -> ProjectDescriptor:
    if not value:
        raise SelectorError("No project selected. Please select a project first.")
    project_id, spec_url, editor_base_url, name = decode_selector(value, size=4, minimum=2)
    if not spec_url.startswith("http"):
        raise SelectorError(
            f'Invalid project value. Cannot parse spec URL from: "{value}"'
        )
    return ProjectDescriptor(
        project_id=project_id,
        name=name or DEFAULT_PROJECT_NAME,
        spec_url=spec_url,
        editor_base_url=editor_base_url,
    )


def encode_operation(operation: OperationDescriptor) -> str:
    return encode_selector(
        [
            operation.method.value,
            operation.path,
            operation.operation_url,
            operation.editor_base_url,
            operation.name,
        ]
    )


def decode_operation(value: str) -> OperationDescriptor:
    if not value:
        raise SelectorError("No blueprint selected. Please select a blueprint first.")
    method, path, operation_url, editor_base_url, name = decode_selector(
        value, size=5, minimum=3
    )
    if method.lower() != HttpMethod.POST.value:
        raise SelectorError(f'Unsupported HTTP method "{method}" in selector "{value}"')
    if not operation_url.startswith("http"):
        raise SelectorError(
            f'Invalid blueprint value. Cannot parse operation URL from: "{value}"'
        )
    return OperationDescriptor(
        path=path,
        operation_url=operation_url,
        editor_base_url=editor_base_url,
        name=name or path,
    )
