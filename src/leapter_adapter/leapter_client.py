"""Leapter API client for project discovery, specs and blueprint runs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import AuthError, EmptyResultError, UpstreamError
from .logging import redact_headers
from .models import LeapterCredentials, OperationDescriptor, ProjectDescriptor
from .openapi import OpenAPIDocument, extract_operations

logger = logging.getLogger(__name__)

_AUTH_FAILURE_STATUSES = {401, 403}


class LeapterClient:
    def __init__(
        self,
        credentials: LeapterCredentials,
        timeout_seconds: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = credentials.server.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.verify_ssl = verify_ssl
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"X-API-Key": self.credentials.api_key}

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.timeout_seconds,
            verify=self.verify_ssl,
            transport=self.transport,
        )

    async def list_projects(self) -> List[ProjectDescriptor]:
        url = f"{self.base_url}/api/v1/n8n/projects"
        try:
            async with self._client() as client:
                response = await client.post(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to load projects: {exc}") from exc

        if response.status_code in _AUTH_FAILURE_STATUSES:
            raise AuthError("Invalid API key or no project access. Please check your credentials.")
        if response.status_code >= 400:
            raise UpstreamError(
                f"Failed to load projects: request failed with status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Failed to load projects: {exc}") from exc

        raw_projects = payload.get("projects") if isinstance(payload, dict) else None
        if not raw_projects:
            raise EmptyResultError(
                "No projects found. Ensure your API key has access to at least one project."
            )

        projects = [
            ProjectDescriptor(
                project_id=str(item.get("projectId", "")),
                name=item.get("projectName") or "",
                spec_url=item.get("specUrl") or "",
                editor_base_url=item.get("editorBaseUrl") or "",
            )
            for item in raw_projects
            if isinstance(item, dict)
        ]
        projects.sort(key=lambda project: project.name.casefold())
        logger.info("Discovered %s Leapter projects", len(projects))
        return projects

    async def fetch_spec(self, spec_url: str) -> OpenAPIDocument:
        try:
            async with self._client() as client:
                response = await client.get(spec_url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to load blueprints: {exc}") from exc

        if response.status_code in _AUTH_FAILURE_STATUSES:
            raise AuthError("Invalid API key. Please check your credentials.")
        if response.status_code >= 400:
            logger.warning("Failed to fetch OpenAPI spec: %s (%s)", spec_url, response.status_code)
            raise UpstreamError(
                f"Failed to load blueprints: request failed with status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Failed to load blueprints: {exc}") from exc
        return OpenAPIDocument.from_raw(data)

    async def list_operations(self, project: ProjectDescriptor) -> List[OperationDescriptor]:
        document = await self.fetch_spec(project.spec_url)
        operations = extract_operations(document, project.editor_base_url)
        operations.sort(key=lambda operation: operation.name.casefold())
        return operations

    async def validate_api_key(self) -> bool:
        url = f"{self.base_url}/api/api-keys/validate"
        try:
            async with self._client() as client:
                response = await client.post(
                    url, headers=self._headers(), json={"apiKey": self.credentials.api_key}
                )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to validate API key: {exc}") from exc

        if response.status_code in _AUTH_FAILURE_STATUSES:
            return False
        if response.status_code >= 400:
            raise UpstreamError(
                f"Failed to validate API key: request failed with status {response.status_code}"
            )
        return True

    async def post_operation(
        self,
        operation_url: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """POST ``body`` as JSON. HTTP error statuses are returned, not raised."""
        request_headers = {**(headers or {}), **self._headers()}
        logger.debug("POST %s headers=%s", operation_url, redact_headers(request_headers))
        try:
            async with self._client(timeout) as client:
                return await client.post(operation_url, headers=request_headers, json=body)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Blueprint execution failed: {exc}") from exc
