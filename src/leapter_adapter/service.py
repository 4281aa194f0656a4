"""Tool-call execution for the AI-tool variant."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import RouterAmbiguityError
from .executors import BlueprintExecutor, run_batch
from .leapter_client import LeapterClient
from .logging import redact_payload
from .models import BlueprintTool, ExecutionContext, ItemResult
from .router import select_candidate, split_arguments
from .tool_registry import route_candidates

logger = logging.getLogger(__name__)


class ToolService:
    """
    Executes blueprint tool calls.

    Two call shapes are supported:
    - direct: the caller already picked a tool and supplies its structured input
    - free-form: an argument bag, optionally naming the blueprint under
      ``blueprint``/``action``, routed by :func:`router.select_candidate`
    """

    def __init__(
        self,
        client: LeapterClient,
        tools: Sequence[BlueprintTool],
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.tools = list(tools)
        self.timeout_seconds = timeout_seconds
        self.executor = BlueprintExecutor(client)
        self._by_name = {tool.name: tool for tool in self.tools}

    async def execute_tool(
        self,
        tool: BlueprintTool,
        payload: Dict[str, Any],
        context: Optional[ExecutionContext] = None,
    ) -> Dict[str, Any]:
        logger.info("Executing tool=%s payload=%s", tool.name, redact_payload(payload))
        return await self.executor.execute(
            tool.operation,
            payload,
            context or ExecutionContext(),
            timeout=self.timeout_seconds,
        )

    def route(self, arguments: Mapping[str, Any]) -> tuple[BlueprintTool, Dict[str, Any]]:
        action, parameters = split_arguments(arguments)
        candidates = route_candidates(self.tools)
        if not candidates:
            raise RouterAmbiguityError("No blueprints available to route the call to", [])
        selected = select_candidate(candidates, frozenset(parameters), action)
        return self._by_name[selected.name], parameters

    async def invoke(
        self, arguments: Mapping[str, Any], context: Optional[ExecutionContext] = None
    ) -> Dict[str, Any]:
        tool, parameters = self.route(arguments)
        return await self.execute_tool(tool, parameters, context)

    async def execute_batch(
        self, items: Sequence[Mapping[str, Any]], context: ExecutionContext
    ) -> List[ItemResult]:
        async def handle(index: int, arguments: Mapping[str, Any]) -> Dict[str, Any]:
            return await self.invoke(arguments, context)

        return await run_batch(items, handle, context)
