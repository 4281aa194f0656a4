from __future__ import annotations

import json

import httpx
import pytest
from pydantic import ValidationError

from leapter_adapter.errors import EmptyResultError, RouterAmbiguityError
from leapter_adapter.models import ExecutionContext
from leapter_adapter.server import _tool_handler
from leapter_adapter.service import ToolService
from leapter_adapter.tool_registry import (
    ToolRegistry,
    build_dispatcher_model,
    describe_tools,
    dispatcher_tool_name,
)

from conftest import API_BASE, SPEC_URL


def _handler(raw_spec, calls):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == SPEC_URL:
            return httpx.Response(200, json=raw_spec)
        calls.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True}, headers={"x-run-id": "r1"})

    return handler


@pytest.mark.asyncio
async def test_load_tools(make_client, raw_spec, project):
    registry = ToolRegistry(make_client(_handler(raw_spec, [])))

    tools = await registry.load_tools(project)

    assert [tool.name for tool in tools] == ["summarizer", "weather"]
    summarizer, weather = tools
    assert summarizer.description == "Summarize a piece of text"
    assert summarizer.operation.operation_url == f"{API_BASE}/models/summarizer/runs"
    assert summarizer.keys == frozenset({"text", "max_words", "tags", "options"})
    assert weather.description == "Weather"
    with pytest.raises(ValidationError):
        weather.input_model.model_validate({"units": "metric"})


@pytest.mark.asyncio
async def test_load_tools_deduplicates_names(make_client, raw_spec, project):
    raw_spec["paths"]["/models/weather/runs"]["post"]["summary"] = "Summarizer"
    registry = ToolRegistry(make_client(_handler(raw_spec, [])))

    tools = await registry.load_tools(project)

    assert [tool.name for tool in tools] == ["summarizer", "summarizer_1"]


@pytest.mark.asyncio
async def test_load_tools_with_filter(make_client, raw_spec, project):
    registry = ToolRegistry(make_client(_handler(raw_spec, [])))
    selector = "post::/models/weather/runs::https://api.leapter.test/models/weather/runs::e::Weather"

    tools = await registry.load_tools(project, [selector])

    assert [tool.name for tool in tools] == ["weather"]


@pytest.mark.asyncio
async def test_load_tools_empty_project(make_client, raw_spec, project):
    registry = ToolRegistry(make_client(_handler(raw_spec, [])))
    with pytest.raises(EmptyResultError):
        await registry.load_tools(project, ["/models/unknown/runs"])


@pytest.mark.asyncio
async def test_free_form_call_routes_by_keys(make_client, raw_spec, project):
    calls = []
    client = make_client(_handler(raw_spec, calls))
    tools = await ToolRegistry(client).load_tools(project)
    service = ToolService(client, tools)

    result = await service.invoke({"city": "Paris", "sessionId": "s1"})

    assert calls == [(f"{API_BASE}/models/weather/runs", {"city": "Paris"})]
    assert result["_metadata"]["runId"] == "r1"


@pytest.mark.asyncio
async def test_named_call_uses_nested_parameters(make_client, raw_spec, project):
    calls = []
    client = make_client(_handler(raw_spec, calls))
    tools = await ToolRegistry(client).load_tools(project)
    service = ToolService(client, tools)

    await service.invoke({"blueprint": "summarizer", "parameters": {"text": "hi"}})

    assert calls == [(f"{API_BASE}/models/summarizer/runs", {"text": "hi"})]


@pytest.mark.asyncio
async def test_batch_records_routing_failures(make_client, raw_spec, project):
    calls = []
    client = make_client(_handler(raw_spec, calls))
    tools = await ToolRegistry(client).load_tools(project)
    service = ToolService(client, tools)

    results = await service.execute_batch(
        [{"city": "Oslo"}, {"unknown": 1}, {"text": "hello"}],
        ExecutionContext(continue_on_fail=True),
    )

    assert [result.is_error for result in results] == [False, True, False]
    assert "summarizer, weather" in results[1].json["error"]
    assert [url for url, _ in calls] == [
        f"{API_BASE}/models/weather/runs",
        f"{API_BASE}/models/summarizer/runs",
    ]


@pytest.mark.asyncio
async def test_routing_failure_without_continue(make_client, raw_spec, project):
    client = make_client(_handler(raw_spec, []))
    tools = await ToolRegistry(client).load_tools(project)
    service = ToolService(client, tools)

    with pytest.raises(RouterAmbiguityError):
        await service.execute_batch([{"unknown": 1}], ExecutionContext())


@pytest.mark.asyncio
async def test_tool_description_and_dispatcher(make_client, raw_spec, project):
    tools = await ToolRegistry(make_client(_handler(raw_spec, []))).load_tools(project)

    description = describe_tools(project, tools, "Use for demos.")
    assert description.splitlines()[0] == "Use for demos."
    assert '- "weather": Weather. Parameters: { city, units }' in description
    assert dispatcher_tool_name(project) == "leapter_demo"

    dispatch = build_dispatcher_model(tools)
    assert dispatch.model_validate({"blueprint": "weather"}).blueprint == "weather"
    with pytest.raises(ValidationError):
        dispatch.model_validate({"blueprint": "nope"})


@pytest.mark.asyncio
async def test_load_tools_keeps_suffixed_names_distinct(make_client, raw_spec, project):
    raw_spec["paths"]["/models/weather/runs"]["post"]["summary"] = "Summarizer"
    raw_spec["paths"]["/models/other/runs"] = {"post": {"summary": "summarizer_1"}}
    client = make_client(_handler(raw_spec, []))

    tools = await ToolRegistry(client).load_tools(project)

    names = [tool.name for tool in tools]
    assert names == ["summarizer", "summarizer_1", "summarizer_1_1"]
    assert len(ToolService(client, tools)._by_name) == 3


@pytest.mark.asyncio
async def test_blueprint_name_never_takes_dispatcher_name(make_client, raw_spec, project):
    raw_spec["paths"]["/models/weather/runs"]["post"]["summary"] = "Leapter Demo"
    tools = await ToolRegistry(make_client(_handler(raw_spec, []))).load_tools(project)

    assert dispatcher_tool_name(project) == "leapter_demo"
    assert [tool.name for tool in tools] == ["summarizer", "leapter_demo_1"]


@pytest.mark.asyncio
async def test_tool_handler_sends_original_property_names(make_client, raw_spec, project):
    weather = raw_spec["paths"]["/models/weather/runs"]["post"]
    weather["requestBody"]["content"]["application/json"]["schema"]["properties"]["_id"] = {
        "type": "string"
    }
    calls = []
    client = make_client(_handler(raw_spec, calls))
    tools = await ToolRegistry(client).load_tools(project)
    tool = tools[1]
    handler = _tool_handler(ToolService(client, tools), tool)

    await handler(tool.input_model.model_validate({"city": "Oslo", "_id": "w-1"}))

    assert calls == [(f"{API_BASE}/models/weather/runs", {"city": "Oslo", "_id": "w-1"})]
    description = describe_tools(project, tools)
    assert "Parameters: { city, units, _id }" in description


@pytest.mark.asyncio
async def test_load_tools_project_without_paths(make_client, raw_spec, project):
    raw_spec["paths"] = {}
    registry = ToolRegistry(make_client(_handler(raw_spec, [])))
    with pytest.raises(EmptyResultError):
        await registry.load_tools(project)
