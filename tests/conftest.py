from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List

import httpx
import pytest

from leapter_adapter.leapter_client import LeapterClient
from leapter_adapter.models import LeapterCredentials, ProjectDescriptor
from leapter_adapter.openapi import OpenAPIDocument


SERVER = "https://lab.leapter.test"
SPEC_URL = "https://lab.leapter.test/api/v1/projects/p1/openapi.json"
EDITOR_BASE_URL = "https://lab.leapter.test/editor/p1"
API_BASE = "https://api.leapter.test"

SAMPLE_SPEC: Dict[str, Any] = {
    "openapi": "3.0.1",
    "info": {"title": "Demo project", "version": "1.0.0"},
    "servers": [{"url": f"{API_BASE}/"}],
    "paths": {
        "/models/summarizer/runs": {
            "post": {
                "summary": "Summarizer",
                "description": "Summarize a piece of text",
                "operationId": "runSummarizer",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/SummarizerInput"}
                        }
                    },
                },
            },
            "get": {"summary": "List summarizer runs"},
        },
        "/models/weather/runs": {
            "post": {
                "summary": "Weather",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "required": ["city"],
                                "properties": {
                                    "city": {"type": "string", "description": "City name"},
                                    "units": {"type": "string", "enum": ["metric", "imperial"]},
                                },
                            }
                        }
                    }
                },
            }
        },
        "/models/legacy/runs": {
            "post": {"summary": "Legacy", "deprecated": True},
        },
        "/models/reports/runs": {
            "get": {"summary": "Reports"},
        },
    },
    "components": {
        "schemas": {
            "SummarizerInput": {
                "type": "object",
                "required": ["text"],
                "properties": {
                    "text": {"type": "string", "description": "The text to summarize"},
                    "max_words": {"type": "integer"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "options": {"$ref": "#/components/schemas/Options"},
                },
            },
            "Options": {
                "type": "object",
                "required": ["tone"],
                "properties": {
                    "tone": {"type": "string", "enum": ["formal", "casual"]},
                    "depth": {"type": "integer"},
                },
            },
        }
    },
}


@pytest.fixture
def raw_spec() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_SPEC)


@pytest.fixture
def document(raw_spec: Dict[str, Any]) -> OpenAPIDocument:
    return OpenAPIDocument.from_raw(raw_spec)


@pytest.fixture
def project() -> ProjectDescriptor:
    return ProjectDescriptor(
        project_id="p1",
        name="Demo",
        spec_url=SPEC_URL,
        editor_base_url=EDITOR_BASE_URL,
    )


@pytest.fixture
def credentials() -> LeapterCredentials:
    return LeapterCredentials(api_key="lpt_secret", server=SERVER)


@pytest.fixture
def requests_seen() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_client(
    credentials: LeapterCredentials, requests_seen: List[httpx.Request]
) -> Callable[[Callable[[httpx.Request], httpx.Response]], LeapterClient]:
    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> LeapterClient:
        def recording(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return LeapterClient(credentials, transport=httpx.MockTransport(recording))

    return factory
