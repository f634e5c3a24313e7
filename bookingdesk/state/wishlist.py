"""Wishlist membership reconciled with the server."""

from __future__ import annotations

from typing import Any, Awaitable

from bookingdesk.state.engine import StateHandle, WishlistAction, WishlistOp
from bookingdesk.state.http import JsonApi
from bookingdesk.state.models import WishlistState
from bookingdesk.state.outcomes import Pending, RequestDescriptor, Settlement

FETCH_WISHLIST = RequestDescriptor(name="wishlist/fetch", fallback_message="Failed to fetch wishlist")
ADD_TO_WISHLIST = RequestDescriptor(name="wishlist/add", fallback_message="Failed to add to wishlist")
REMOVE_FROM_WISHLIST = RequestDescriptor(name="wishlist/remove", fallback_message="Failed to remove from wishlist")


class WishlistModule:
    """Confirm-then-apply: membership changes only after the server acknowledges.

    A failed add or remove leaves `items` exactly as it was, so nothing needs
    rolling back.
    """

    def __init__(self, handle: StateHandle, api: JsonApi):
        self._handle = handle
        self._api = api
        self._epoch = 0

    @property
    def state(self) -> WishlistState:
        return self._handle.get_state().wishlist

    def contains(self, property_id: str) -> bool:
        return str(property_id) in self.state.items

    def fetch(self) -> Awaitable[Settlement]:
        self._epoch += 1
        epoch = self._epoch
        self._handle.dispatch(WishlistAction(op=WishlistOp.FETCH, outcome=Pending(), epoch=epoch))
        return self._settle_fetch(epoch)

    async def _settle_fetch(self, epoch: int) -> Settlement:
        outcome = await FETCH_WISHLIST.run(self._fetch_entries)
        self._handle.dispatch(WishlistAction(op=WishlistOp.FETCH, outcome=outcome, epoch=epoch))
        return outcome

    async def add(self, property_id: str) -> Settlement:
        async def call() -> str:
            await self._api.post(f"/api/wishlist/{property_id}")
            return str(property_id)

        outcome = await ADD_TO_WISHLIST.run(call)
        self._handle.dispatch(WishlistAction(op=WishlistOp.ADD, outcome=outcome))
        return outcome

    async def remove(self, property_id: str) -> Settlement:
        async def call() -> str:
            await self._api.delete(f"/api/wishlist/{property_id}")
            return str(property_id)

        outcome = await REMOVE_FROM_WISHLIST.run(call)
        self._handle.dispatch(WishlistAction(op=WishlistOp.REMOVE, outcome=outcome))
        return outcome

    def clear_error(self) -> None:
        self._handle.dispatch(WishlistAction(op=WishlistOp.CLEAR_ERROR))

    async def _fetch_entries(self) -> list[Any]:
        body = await self._api.get("/api/wishlist")
        if isinstance(body, list):
            return body
        if isinstance(body, dict):
            for key in ("data", "wishlist", "items"):
                entries = body.get(key)
                if isinstance(entries, list):
                    return entries
        return []
