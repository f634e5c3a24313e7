"""Selective persistence of the auth branch."""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from bookingdesk.state.models import AuthState, PersistedState, RootState
from bookingdesk.state.storage import StateStorage

logger = logging.getLogger(__name__)

DEFAULT_PERSIST_KEY = "root"


class PersistenceGate:
    """Sole writer to durable storage.

    Only the fields of `PersistedState` are serialized; every other branch is
    rebuilt from its initial shape on load. Inside a running event loop, changes
    made within one tick are coalesced and written on the loop's default
    executor, one write at a time, so storage I/O never blocks the loop. A
    change that lands while a write is in flight is written after it.
    """

    def __init__(self, storage: StateStorage, key: str = DEFAULT_PERSIST_KEY):
        self._storage = storage
        self._key = key
        self._pending_auth: AuthState | None = None
        self._write_scheduled = False
        self._in_flight: asyncio.Future[None] | None = None

    def rehydrate(self) -> AuthState | None:
        try:
            raw = self._storage.read(self._key)
        except Exception as exc:
            logger.debug(f"Could not read persisted state '{self._key}': {exc}")
            return None
        if raw is None:
            return None
        try:
            persisted = PersistedState.model_validate_json(raw)
        except ValidationError as exc:
            logger.debug(f"Ignoring unreadable persisted state '{self._key}': {exc.error_count()} error(s)")
            return None
        return persisted.auth

    def on_commit(self, previous: RootState, current: RootState) -> None:
        if current.auth is previous.auth:
            return
        self._pending_auth = current.auth
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        if self._in_flight is None and not self._write_scheduled:
            self._write_scheduled = True
            loop.call_soon(self._start_write, loop)

    def flush(self) -> None:
        """Write any pending auth branch on the calling thread."""
        payload = self._take_payload()
        if payload is not None:
            self._write(payload)

    async def drain(self) -> None:
        """Wait until every change committed so far has been written."""
        while self._write_scheduled or self._in_flight is not None:
            in_flight = self._in_flight
            if in_flight is not None and not in_flight.done():
                await asyncio.wait({in_flight})
            else:
                await asyncio.sleep(0)
        self.flush()

    def _start_write(self, loop: asyncio.AbstractEventLoop) -> None:
        self._write_scheduled = False
        payload = self._take_payload()
        if payload is None:
            return
        self._in_flight = loop.run_in_executor(None, self._write, payload)
        self._in_flight.add_done_callback(lambda _: self._finish_write(loop))

    def _finish_write(self, loop: asyncio.AbstractEventLoop) -> None:
        self._in_flight = None
        if self._pending_auth is not None:
            self._start_write(loop)

    def _take_payload(self) -> str | None:
        auth = self._pending_auth
        if auth is None:
            return None
        self._pending_auth = None
        return PersistedState(auth=auth).model_dump_json()

    def _write(self, payload: str) -> None:
        try:
            self._storage.write(self._key, payload)
        except Exception:
            logger.exception(f"Failed to persist state under '{self._key}'")
