"""Tool registry: a project's blueprints as tools for language models."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, create_model

from .errors import EmptyResultError
from .leapter_client import LeapterClient
from .models import BlueprintTool, OperationDescriptor, ProjectDescriptor
from .naming import deduplicate_tool_names, sanitize_tool_name
from .openapi import operation_display_name
from .projector import build_input_model, project_parameter_schema, schema_keys
from .router import RouteCandidate
from .selectors import SEPARATOR


logger = logging.getLogger(__name__)


class ToolRegistry:
    def __init__(self, client: LeapterClient) -> None:
        self.client = client

    async def find_project(self, project_id: Optional[str]) -> ProjectDescriptor:
        projects = await self.client.list_projects()
        if not project_id:
            return projects[0]
        for project in projects:
            if project.project_id == project_id:
                return project
        raise EmptyResultError(
            f"Project {project_id!r} not found. Available: "
            + ", ".join(project.project_id for project in projects)
        )

    async def load_tools(
        self,
        project: ProjectDescriptor,
        blueprint_filter: Iterable[str] = (),
    ) -> List[BlueprintTool]:
        document = await self.client.fetch_spec(project.spec_url)
        filter_paths = self._filter_paths(blueprint_filter)
        server_url = document.server_url

        entries = []
        for path, operation in document.iter_operations():
            if filter_paths and path not in filter_paths:
                continue
            display_name = operation_display_name(path, operation)
            entries.append((path, operation, display_name, sanitize_tool_name(display_name)))

        if not entries:
            raise EmptyResultError(
                "No blueprints found in the selected project. "
                "Ensure the project has published blueprints."
            )

        # The dispatcher tool shares the namespace with blueprint tools.
        unique_names = deduplicate_tool_names(
            (entry[3] for entry in entries), reserved=(dispatcher_tool_name(project),)
        )
        tools: List[BlueprintTool] = []
        for (path, operation, display_name, _), tool_name in zip(entries, unique_names):
            fields = project_parameter_schema(operation, document, model_name=tool_name)
            tools.append(
                BlueprintTool(
                    name=tool_name,
                    description=operation.description or operation.summary or display_name,
                    operation=OperationDescriptor(
                        path=path,
                        operation_url=f"{server_url}{path}",
                        editor_base_url=project.editor_base_url,
                        name=display_name,
                        description=operation.description or "",
                        operation_id=operation.operation_id,
                    ),
                    input_model=build_input_model(f"{tool_name}_input", fields),
                    keys=schema_keys(operation, document),
                )
            )
            logger.info("Loaded blueprint tool: %s", tool_name)

        return tools

    def _filter_paths(self, blueprint_filter: Iterable[str]) -> Set[str]:
        # Filter entries are operation selectors or bare paths.
        paths: Set[str] = set()
        for value in blueprint_filter:
            if SEPARATOR in value:
                parts = value.split(SEPARATOR)
                if len(parts) > 1 and parts[1]:
                    paths.add(parts[1])
            elif value:
                paths.add(value)
        return paths


def route_candidates(tools: Iterable[BlueprintTool]) -> List[RouteCandidate]:
    return [
        RouteCandidate(name=tool.name, display_name=tool.operation.name, keys=tool.keys)
        for tool in tools
    ]


def dispatcher_tool_name(project: ProjectDescriptor) -> str:
    return sanitize_tool_name(f"leapter_{project.name}")


def describe_tools(
    project: ProjectDescriptor, tools: List[BlueprintTool], description_prefix: str = ""
) -> str:
    lines = []
    for tool in tools:
        keys = [field.alias or name for name, field in tool.input_model.model_fields.items()]
        params = f"Parameters: {{ {', '.join(keys)} }}" if keys else "No parameters required"
        lines.append(f'- "{tool.name}": {tool.description}. {params}')

    sections = [
        f'Execute Leapter blueprints from the "{project.name}" project.',
        "",
        "Available blueprints:",
        "\n".join(lines),
        "",
        'Set "blueprint" to the blueprint name and "parameters" to its input values.',
    ]
    if description_prefix:
        sections.insert(0, description_prefix)
    return "\n".join(sections)


def build_dispatcher_model(tools: List[BlueprintTool]) -> type[BaseModel]:
    names = tuple(tool.name for tool in tools)
    fields: Dict[str, Any] = {
        "blueprint": (
            Literal[names],
            Field(..., description="The name of the blueprint to execute"),
        ),
        "parameters": (
            Optional[Dict[str, Any]],
            Field(None, description="Key-value parameters for the selected blueprint"),
        ),
    }
    return create_model("leapter_dispatch_input", __config__=ConfigDict(extra="allow"), **fields)
