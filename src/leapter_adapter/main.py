"""CLI entry point for the Leapter adapter."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from .config import Settings, get_settings
from .errors import LeapterError
from .leapter_client import LeapterClient
from .logging import configure_logging
from .selectors import SEPARATOR, decode_project
from .server import build_server


def _client(settings: Settings) -> LeapterClient:
    return LeapterClient(
        settings.credentials(),
        timeout_seconds=settings.leapter_timeout_seconds,
        verify_ssl=settings.leapter_verify_ssl,
    )


async def _serve(settings: Settings) -> int:
    mcp, app = await build_server(settings)
    transport = settings.adapter_transport.lower()

    if transport in {"http", "streamable-http", "streamablehttp", "sse"}:
        if not app:
            raise RuntimeError(f"HTTP app unavailable for transport={transport}")
        config = uvicorn.Config(app, host=settings.adapter_host, port=settings.adapter_port)
        server = uvicorn.Server(config)
        await server.serve()
        return 0
    await mcp.run_stdio_async()
    return 0


async def _validate(settings: Settings) -> int:
    valid = await _client(settings).validate_api_key()
    print("API key is valid" if valid else "API key is invalid")
    return 0 if valid else 1


async def _projects(settings: Settings) -> int:
    for project in await _client(settings).list_projects():
        print(f"{project.project_id}\t{project.name}\t{project.spec_url}")
    return 0


async def _blueprints(settings: Settings, project_value: str) -> int:
    client = _client(settings)
    if SEPARATOR in project_value:
        project = decode_project(project_value)
    else:
        matches = [p for p in await client.list_projects() if p.project_id == project_value]
        if not matches:
            print(f"Project {project_value!r} not found", file=sys.stderr)
            return 1
        project = matches[0]
    for operation in await client.list_operations(project):
        print(f"{operation.name}\t{operation.operation_url}")
    return 0


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run Leapter blueprints from workflows and MCP clients")
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "validate", "projects", "blueprints"],
    )
    parser.add_argument("--project", help="Project id or project selector (blueprints command)")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings.adapter_log_level)

    if args.command == "validate":
        return await _validate(settings)
    if args.command == "projects":
        return await _projects(settings)
    if args.command == "blueprints":
        project = args.project or settings.leapter_project_id
        if not project:
            print("--project or LEAPTER_PROJECT_ID is required", file=sys.stderr)
            return 2
        return await _blueprints(settings, project)
    return await _serve(settings)


def main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        code = asyncio.run(_run(args))
    except LeapterError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
