"""Async JSON transport for the booking API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

import httpx

from bookingdesk.state.config import ClientSettings

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class ApiHttpError(RuntimeError):
    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class JsonApi(Protocol):
    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Issue a GET and return the parsed JSON body."""

    async def post(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Issue a POST and return the parsed JSON body."""

    async def patch(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Issue a PATCH and return the parsed JSON body."""

    async def delete(self, path: str) -> Any:
        """Issue a DELETE and return the parsed JSON body."""


class ApiClient:
    """One attempt per call; non-2xx responses raise ApiHttpError."""

    def __init__(
        self,
        settings: ClientSettings,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.timeout_seconds,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return await self.request("POST", path, payload=payload)

    async def patch(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return await self.request("PATCH", path, payload=payload)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        headers: dict[str, str] = {}
        token = self._token_provider() if self._token_provider is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug(f"{method} {path}")
        response = await self._client.request(
            method,
            path,
            params=params,
            json=payload,
            headers=headers,
        )

        if response.is_success:
            if not response.content:
                return {}
            return response.json()

        message = response.text[:500]
        raise ApiHttpError(
            status_code=response.status_code,
            message=f"HTTP {response.status_code}: {message}",
            body=_parse_error_body(response),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def _parse_error_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
