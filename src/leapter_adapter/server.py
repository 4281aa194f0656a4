"""MCP server exposing a Leapter project's blueprints as tools."""

import logging
from typing import Any, Awaitable, Callable, Dict, List

from fastmcp import FastMCP

from .config import Settings
from .leapter_client import LeapterClient
from .models import BlueprintTool, ExecutionContext, ProjectDescriptor
from .service import ToolService
from .tool_registry import (
    ToolRegistry,
    build_dispatcher_model,
    describe_tools,
    dispatcher_tool_name,
)

logger = logging.getLogger(__name__)


async def build_server(settings: Settings) -> tuple[FastMCP, object | None]:
    client = LeapterClient(
        settings.credentials(),
        timeout_seconds=settings.leapter_timeout_seconds,
        verify_ssl=settings.leapter_verify_ssl,
    )
    registry = ToolRegistry(client)
    project = await registry.find_project(settings.leapter_project_id)
    tools = await registry.load_tools(project, settings.blueprint_filter())
    service = ToolService(client, tools, timeout_seconds=settings.leapter_timeout_seconds)

    instructions = describe_tools(project, tools, settings.leapter_tool_description_prefix)
    mcp = FastMCP(settings.service_name, instructions=instructions)
    app = _get_http_app(mcp, settings)
    _attach_auth(app, settings)
    _attach_healthcheck(app)

    for tool in tools:
        mcp.tool(name=tool.name, description=tool.description)(_tool_handler(service, tool))
        logger.info("Registered tool: %s", tool.name)

    dispatcher = _dispatch_handler(service, project, tools)
    mcp.tool(name=dispatcher.__name__, description=instructions)(dispatcher)
    logger.info("Registered dispatcher tool: %s", dispatcher.__name__)

    return mcp, app


def _tool_handler(
    service: ToolService, tool: BlueprintTool
) -> Callable[[Any], Awaitable[Dict[str, Any]]]:
    async def handler(payload: tool.input_model) -> Dict[str, Any]:
        return await service.execute_tool(
            tool, payload.model_dump(by_alias=True, exclude_unset=True)
        )

    handler.__name__ = tool.name
    return handler


def _dispatch_handler(
    service: ToolService, project: ProjectDescriptor, tools: List[BlueprintTool]
) -> Callable[[Any], Awaitable[Dict[str, Any]]]:
    dispatch_model = build_dispatcher_model(tools)

    async def handler(payload: dispatch_model) -> Dict[str, Any]:
        return await service.invoke(
            payload.model_dump(exclude_unset=True), ExecutionContext()
        )

    handler.__name__ = dispatcher_tool_name(project)
    return handler


def _attach_auth(app, settings: Settings) -> None:  # type: ignore[no-untyped-def]
    if not app:
        logger.warning("FastMCP app not available; auth middleware disabled")
        return

    @app.middleware("http")
    async def auth_middleware(request, call_next):  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS":
            return await call_next(request)
        if request.url.path.endswith("/health"):
            return await call_next(request)
        if not settings.adapter_auth_token:
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        token = auth_header.replace("Bearer", "").strip()
        if token == settings.adapter_auth_token:
            return await call_next(request)

        from starlette.responses import JSONResponse

        return JSONResponse({"error": "Unauthorized"}, status_code=401)


def _attach_healthcheck(app) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        from starlette.responses import JSONResponse

        return JSONResponse({"status": "ok"})

    app.add_route("/health", healthcheck, methods=["GET"])


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.adapter_transport.lower()
    if transport in {"http"}:
        return mcp.http_app(transport="http", stateless_http=True, json_response=True)
    if transport in {"streamable-http", "streamablehttp"}:
        return mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
    if transport in {"sse"}:
        return mcp.sse_app()
    return None
