"""Request outcomes and the descriptor that produces them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from bookingdesk.state.http import ApiHttpError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ID_FIELDS = ("_id", "id")


class ResponseShapeError(ValueError):
    pass


@dataclass(frozen=True)
class Pending:
    pass


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    message: str


Outcome = Union[Pending, Succeeded[Any], Failed]
Settlement = Union[Succeeded[Any], Failed]


def extract_error_message(error: BaseException, fallback: str) -> str:
    """Server `message` field, then the exception's own text, then `fallback`."""
    if isinstance(error, ApiHttpError) and isinstance(error.body, dict):
        server_message = error.body.get("message")
        if isinstance(server_message, str) and server_message.strip():
            return server_message
    own_message = str(error).strip()
    if own_message:
        return own_message
    return fallback


def extract_list(body: Any) -> list[Any]:
    if isinstance(body, list):
        return list(body)
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return list(body["data"])
    return []


def extract_record(body: Any, paths: tuple[tuple[str, ...], ...]) -> dict[str, Any]:
    for path in paths:
        candidate = body
        for key in path:
            if not isinstance(candidate, dict):
                candidate = None
                break
            candidate = candidate.get(key)
        if isinstance(candidate, dict):
            return candidate
    tried = ", ".join(".".join(path) for path in paths)
    raise ResponseShapeError(f"Response did not contain a record (tried: {tried})")


def record_id(record: Any) -> str | None:
    if isinstance(record, dict):
        for field in ID_FIELDS:
            value = record.get(field)
            if value is not None:
                return str(value)
        return None
    if record is None:
        return None
    return str(record)


@dataclass(frozen=True)
class RequestDescriptor:
    """One named remote operation, settled at most once per trigger."""

    name: str
    fallback_message: str

    async def run(self, call: Callable[[], Awaitable[T]]) -> Settlement:
        try:
            value = await call()
        except Exception as exc:
            message = extract_error_message(exc, self.fallback_message)
            logger.warning(f"{self.name} failed: {message}")
            return Failed(message)
        logger.debug(f"{self.name} succeeded")
        return Succeeded(value)
