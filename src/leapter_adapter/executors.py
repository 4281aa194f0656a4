"""Blueprint execution: request building, response classification and batches."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

import httpx

from .errors import LeapterError, UpstreamHttpError
from .leapter_client import LeapterClient
from .logging import redact_payload
from .models import ExecutionContext, ItemResult, OperationDescriptor
from .openapi import extract_model_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

METADATA_KEY = "_metadata"
RUN_ID_HEADER = "x-run-id"
_ERROR_MESSAGE_KEYS = ("detail", "error", "message")


def build_editor_link(editor_base_url: str, path: str) -> str:
    model_id = extract_model_id(path)
    if model_id:
        return f"{editor_base_url}/{model_id}"
    return editor_base_url


def error_message(body: Dict[str, Any], status_code: int) -> str:
    for key in _ERROR_MESSAGE_KEYS:
        value = body.get(key)
        if value:
            return value if isinstance(value, str) else str(value)
    return f"Request failed with status {status_code}"


def classify_response(
    response: httpx.Response, operation: OperationDescriptor
) -> Dict[str, Any]:
    """Return the run payload with ``_metadata`` attached, or raise ``UpstreamHttpError``."""
    body = _decode_body(response)
    status_code = response.status_code

    if status_code >= 400:
        error_body = body if isinstance(body, dict) else {}
        raise UpstreamHttpError(error_message(error_body, status_code), status_code, error_body)

    result = body if isinstance(body, dict) else {"result": body}
    return {
        **result,
        METADATA_KEY: {
            "runId": response.headers.get(RUN_ID_HEADER),
            "editorLink": build_editor_link(operation.editor_base_url, operation.path),
        },
    }


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


class BlueprintExecutor:
    def __init__(self, client: LeapterClient) -> None:
        self.client = client

    async def execute(
        self,
        operation: OperationDescriptor,
        body: Dict[str, Any],
        context: ExecutionContext,
        timeout: Optional[float] = None,
        referer: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {
            "X-Correlation-Id": context.execution_id or "",
            "Content-Type": "application/json",
        }
        if referer:
            headers["X-Referer"] = referer

        logger.info(
            "Running blueprint=%s url=%s payload=%s",
            operation.name,
            operation.operation_url,
            redact_payload(body),
        )
        response = await self.client.post_operation(
            operation.operation_url, body, headers=headers, timeout=timeout
        )
        return classify_response(response, operation)


async def run_batch(
    items: Sequence[T],
    handler: Callable[[int, T], Awaitable[Dict[str, Any]]],
    context: ExecutionContext,
) -> List[ItemResult]:
    """Process ``items`` one after another.

    With ``continue_on_fail`` a failing item becomes an error record and the
    batch goes on; otherwise the first failure is re-raised with its
    ``item_index`` set and the remaining items are not processed.
    """
    results: List[ItemResult] = []
    for index, item in enumerate(items):
        try:
            payload = await handler(index, item)
        except LeapterError as exc:
            exc.item_index = index
            if not context.continue_on_fail:
                raise
            logger.warning("Item %s failed, continuing: %s", index, exc.message)
            results.append(ItemResult(item_index=index, json=exc.to_record(), is_error=True))
            continue
        results.append(ItemResult(item_index=index, json=payload))
    return results
