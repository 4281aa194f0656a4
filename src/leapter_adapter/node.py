"""The Leapter workflow node: form rendering and batch execution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .errors import LeapterError, SelectorError, UpstreamError
from .executors import BlueprintExecutor, run_batch
from .leapter_client import LeapterClient
from .models import (
    ExecutionContext,
    FieldDescriptor,
    InputMode,
    ItemResult,
    SelectorOption,
)
from .parameters import gather_json_parameters, gather_visual_parameters
from .projector import project_fields, request_body_schema
from .selectors import decode_operation, decode_project, encode_operation, encode_project

logger = logging.getLogger(__name__)


@dataclass
class NodeParameters:
    """Per-item node parameters as entered in the workflow editor."""

    operation: str
    input_mode: InputMode = InputMode.VISUAL
    values: Mapping[str, Any] = field(default_factory=dict)
    parameters_json: Union[str, Mapping[str, Any], None] = "{}"
    timeout_seconds: Optional[float] = None
    referer: Optional[str] = None


class LeapterNode:
    def __init__(self, client: LeapterClient) -> None:
        self.client = client
        self.executor = BlueprintExecutor(client)

    async def get_projects(self) -> List[SelectorOption]:
        options: List[SelectorOption] = []
        for project in await self.client.list_projects():
            try:
                value = encode_project(project)
            except SelectorError as exc:
                logger.warning("Skipping project %s: %s", project.project_id, exc.message)
                continue
            options.append(
                SelectorOption(
                    name=project.name,
                    value=value,
                    description=f"Project ID: {project.project_id}",
                )
            )
        return options

    async def get_operations(self, project_value: str) -> List[SelectorOption]:
        if not project_value:
            return []
        project = decode_project(project_value)
        operations = await self.client.list_operations(project)
        return [
            SelectorOption(
                name=operation.name,
                value=encode_operation(operation),
                description=operation.description or None,
            )
            for operation in operations
        ]

    async def get_operation_fields(
        self, project_value: str, operation_value: str
    ) -> List[FieldDescriptor]:
        if not project_value or not operation_value:
            return []
        project = decode_project(project_value)
        selected = decode_operation(operation_value)
        document = await self.client.fetch_spec(project.spec_url)

        path_item = document.paths.get(selected.path)
        if path_item is None:
            raise UpstreamError(f"Path {selected.path} not found in spec")
        operation = path_item.operation(selected.method)
        if operation is None:
            raise UpstreamError(
                f"Operation {selected.method.value} {selected.path} not found in spec"
            )
        return project_fields(request_body_schema(operation, document), document)

    async def execute(
        self,
        project_value: str,
        items: Sequence[NodeParameters],
        context: ExecutionContext,
    ) -> List[ItemResult]:
        # Validates the selection once for the whole batch.
        decode_project(project_value)

        async def handle(index: int, item: NodeParameters) -> Dict[str, Any]:
            operation = decode_operation(item.operation)
            if InputMode(item.input_mode) is InputMode.VISUAL:
                body = gather_visual_parameters(item.values)
            else:
                body = gather_json_parameters(item.parameters_json)
            return await self.executor.execute(
                operation,
                body,
                context,
                timeout=item.timeout_seconds,
                referer=item.referer,
            )

        try:
            return await run_batch(items, handle, context)
        except LeapterError as exc:
            logger.error("Blueprint execution failed at item %s: %s", exc.item_index, exc.message)
            raise
