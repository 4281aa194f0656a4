"""``$ref`` resolution against a loaded OpenAPI document."""

from __future__ import annotations

from typing import Any, List

from .errors import DanglingReferenceError, ReferenceCycleError
from .openapi import OpenAPIDocument, SchemaNode


MAX_REFERENCE_DEPTH = 32


def resolve(node: SchemaNode, document: OpenAPIDocument) -> SchemaNode:
    """Return ``node`` itself when it has no ``$ref``, else the node it points to.

    Chained references are followed up to ``MAX_REFERENCE_DEPTH`` hops.
    """
    hops = 0
    while node.ref is not None:
        if hops >= MAX_REFERENCE_DEPTH:
            raise ReferenceCycleError(
                f"$ref chain exceeds {MAX_REFERENCE_DEPTH} hops at {node.ref!r}"
            )
        node = SchemaNode.model_validate(lookup_pointer(document.raw, node.ref))
        hops += 1
    return node


def lookup_pointer(root: Any, ref: str) -> Any:
    current = root
    for key in _pointer_keys(ref):
        if not isinstance(current, dict) or key not in current:
            raise DanglingReferenceError(ref, key)
        current = current[key]
    if not isinstance(current, dict):
        raise DanglingReferenceError(ref, ref)
    return current


def _pointer_keys(ref: str) -> List[str]:
    pointer = ref[2:] if ref.startswith("#/") else ref
    return [part.replace("~1", "/").replace("~0", "~") for part in pointer.split("/")]
