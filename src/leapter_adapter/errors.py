"""Error taxonomy for the Leapter adapter."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence


class LeapterError(Exception):
    """Base error. ``item_index`` is set when the error aborted a batch item."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.item_index: Optional[int] = None

    def to_record(self) -> Dict[str, Any]:
        return {"error": self.message}


class AuthError(LeapterError):
    pass


class UpstreamError(LeapterError):
    pass


class UpstreamHttpError(UpstreamError):
    def __init__(
        self, message: str, status_code: int, body: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}

    def to_record(self) -> Dict[str, Any]:
        return {**self.body, "error": self.message, "statusCode": self.status_code}


class InvalidSpecError(LeapterError):
    pass


class MissingServerError(InvalidSpecError):
    pass


class DanglingReferenceError(LeapterError):
    def __init__(self, ref: str, missing_key: str) -> None:
        super().__init__(f"Unresolvable $ref {ref!r}: key {missing_key!r} not found")
        self.ref = ref
        self.missing_key = missing_key


class ReferenceCycleError(LeapterError):
    pass


class EmptyResultError(LeapterError):
    pass


class RouterAmbiguityError(LeapterError):
    def __init__(self, message: str, candidates: Sequence[str]) -> None:
        super().__init__(message)
        self.candidates = list(candidates)


class MalformedJsonError(LeapterError):
    pass


class SelectorError(LeapterError):
    pass
