"""Root container composing every state module behind one read/write surface."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from bookingdesk.state.auth import AuthModule
from bookingdesk.state.config import ClientSettings
from bookingdesk.state.dashboard import DashboardAggregator
from bookingdesk.state.engine import Action, ResetAction, apply_action
from bookingdesk.state.entities import (
    BOOKINGS,
    EMPLOYEES,
    PROPERTIES,
    PUBLIC_PROPERTIES,
    USERS,
    BookingsModule,
    EntityCollectionModule,
    PropertiesModule,
)
from bookingdesk.state.http import ApiClient, JsonApi
from bookingdesk.state.models import RootState
from bookingdesk.state.persistence import DEFAULT_PERSIST_KEY, PersistenceGate
from bookingdesk.state.state import build_initial_state
from bookingdesk.state.storage import InMemoryStateStorage, StateStorage, create_storage
from bookingdesk.state.wishlist import WishlistModule

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[RootState], None]


class StateContainer:
    """Explicitly constructed state tree; create one per session and `aclose()` it.

    All mutation goes through `dispatch`, which runs the root reducer, hands the
    change to the persistence gate and then notifies subscribers.
    """

    def __init__(
        self,
        api: JsonApi,
        storage: StateStorage | None = None,
        persist_key: str = DEFAULT_PERSIST_KEY,
        discard_stale_settlements: bool = False,
        close_api: bool = False,
    ) -> None:
        self._api = api
        self._close_api = close_api
        self._discard_stale = discard_stale_settlements
        self._gate = PersistenceGate(storage if storage is not None else InMemoryStateStorage(), key=persist_key)
        self._state = build_initial_state(self._gate.rehydrate())
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Future[Any]] = set()

        self.auth = AuthModule(self, api)
        self.users = EntityCollectionModule(self, api, USERS)
        self.employees = EntityCollectionModule(self, api, EMPLOYEES)
        self.properties = PropertiesModule(self, api, PROPERTIES)
        self.public_properties = EntityCollectionModule(self, api, PUBLIC_PROPERTIES)
        self.bookings = BookingsModule(self, api, BOOKINGS)
        self.wishlist = WishlistModule(self, api)
        self.dashboard = DashboardAggregator(self, api)

    def get_state(self) -> RootState:
        return self._state

    def dispatch(self, action: Action) -> RootState:
        previous = self._state
        current = apply_action(previous, action, discard_stale=self._discard_stale)
        if current is previous:
            return current
        self._state = current
        self._gate.on_commit(previous, current)
        self._notify(current)
        return current

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def trigger(self, operation: Awaitable[T]) -> asyncio.Future[T]:
        """Track the settlement of an operation and return without waiting for it.

        Module operations enter their pending state when called, so
        `trigger(container.users.fetch_all())` returns with `loading` already set.
        """
        task = asyncio.ensure_future(operation)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_until_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def reset(self) -> None:
        self.dispatch(ResetAction())

    async def flush(self) -> None:
        await self._gate.drain()

    async def aclose(self) -> None:
        await self.wait_until_idle()
        await self._gate.drain()
        self._listeners.clear()
        if self._close_api:
            close = getattr(self._api, "aclose", None)
            if close is not None:
                await close()

    def _notify(self, state: RootState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                listener_name = getattr(listener, "__name__", repr(listener))
                logger.exception(f"State listener '{listener_name}' failed")


def create_container(
    settings: ClientSettings,
    storage: StateStorage | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StateContainer:
    """Wire an ApiClient whose bearer token always comes from the auth branch."""
    container: StateContainer | None = None

    def current_token() -> str | None:
        if container is None:
            return None
        return container.get_state().auth.token

    api = ApiClient(settings, token_provider=current_token, transport=transport)
    container = StateContainer(
        api=api,
        storage=storage if storage is not None else create_storage(settings.database_url, settings.storage_path),
        persist_key=settings.persist_key,
        discard_stale_settlements=settings.discard_stale_settlements,
        close_api=True,
    )
    return container
