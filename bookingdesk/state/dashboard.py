"""Composite dashboard snapshot assembled from four collections."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from bookingdesk.state.engine import DashboardAction, DashboardOp, StateHandle
from bookingdesk.state.http import JsonApi
from bookingdesk.state.models import DashboardData, DashboardSection, DashboardState
from bookingdesk.state.outcomes import (
    Failed,
    Pending,
    RequestDescriptor,
    Settlement,
    Succeeded,
    extract_error_message,
    extract_list,
)
from bookingdesk.state.state import utc_now_iso

logger = logging.getLogger(__name__)

SECTION_PATHS: dict[DashboardSection, str] = {
    DashboardSection.USERS: "/api/users",
    DashboardSection.PROPERTIES: "/api/properties",
    DashboardSection.PUBLIC_PROPERTIES: "/api/publicProperties",
    DashboardSection.BOOKINGS: "/api/bookings",
}

FETCH_DASHBOARD = RequestDescriptor(name="dashboard/fetch", fallback_message="Failed to fetch dashboard data")


@dataclass(frozen=True)
class DashboardStats:
    total_users: int
    total_properties: int
    total_public_properties: int
    total_bookings: int
    pending_properties: int


def dashboard_stats(state: DashboardState) -> DashboardStats | None:
    data = state.data
    if data is None:
        return None
    return DashboardStats(
        total_users=len(data.users),
        total_properties=len(data.properties),
        total_public_properties=len(data.public_properties),
        total_bookings=len(data.bookings),
        pending_properties=sum(
            1 for item in data.properties if isinstance(item, dict) and item.get("status") == "pending"
        ),
    )


class DashboardAggregator:
    """Fetches users, properties, public properties and bookings concurrently.

    Public properties is the one soft sub-fetch: when it fails its slot is an
    empty list. A failure in any other sub-fetch fails the whole snapshot and
    leaves the previous `data` in place.
    """

    def __init__(self, handle: StateHandle, api: JsonApi, clock: Callable[[], str] = utc_now_iso):
        self._handle = handle
        self._api = api
        self._clock = clock
        self._epoch = 0

    @property
    def state(self) -> DashboardState:
        return self._handle.get_state().dashboard

    def stats(self) -> DashboardStats | None:
        return dashboard_stats(self.state)

    def fetch(self) -> Awaitable[Settlement]:
        """Mark the snapshot loading now; the returned awaitable settles it."""
        self._epoch += 1
        epoch = self._epoch
        self._handle.dispatch(DashboardAction(op=DashboardOp.FETCH, outcome=Pending(), epoch=epoch))
        return self._settle_fetch(epoch)

    async def _settle_fetch(self, epoch: int) -> Settlement:
        outcome = await FETCH_DASHBOARD.run(self._fetch_composite)
        fetched_at = self._clock() if isinstance(outcome, Succeeded) else None
        self._handle.dispatch(
            DashboardAction(op=DashboardOp.FETCH, outcome=outcome, epoch=epoch, fetched_at=fetched_at)
        )
        return outcome

    async def refresh_section(self, section: DashboardSection | str) -> Settlement:
        """Refetch one section; the aggregate's own loading and error are left alone."""
        section = DashboardSection(section)
        path = SECTION_PATHS[section]

        async def call() -> list[Any]:
            return extract_list(await self._api.get(path))

        descriptor = RequestDescriptor(
            name=f"dashboard/refresh/{section.value}",
            fallback_message=f"Failed to refresh {section.value}",
        )
        outcome = await descriptor.run(call)
        if isinstance(outcome, Failed):
            logger.error(f"Section refresh failed for {section.value}: {outcome.message}")
            return outcome
        self._handle.dispatch(
            DashboardAction(
                op=DashboardOp.REFRESH_SECTION,
                outcome=outcome,
                section=section,
                fetched_at=self._clock(),
            )
        )
        return outcome

    def clear_error(self) -> None:
        self._handle.dispatch(DashboardAction(op=DashboardOp.CLEAR_ERROR))

    def reset(self) -> None:
        self._handle.dispatch(DashboardAction(op=DashboardOp.RESET))

    async def _fetch_composite(self) -> DashboardData:
        users, properties, public_properties, bookings = await asyncio.gather(
            self._api.get(SECTION_PATHS[DashboardSection.USERS]),
            self._api.get(SECTION_PATHS[DashboardSection.PROPERTIES]),
            self._fetch_public_properties(),
            self._api.get(SECTION_PATHS[DashboardSection.BOOKINGS]),
            return_exceptions=True,
        )
        for result in (users, properties, public_properties, bookings):
            if isinstance(result, BaseException):
                raise result
        return DashboardData(
            users=extract_list(users),
            properties=extract_list(properties),
            public_properties=public_properties,
            bookings=extract_list(bookings),
        )

    async def _fetch_public_properties(self) -> list[Any]:
        try:
            body = await self._api.get(SECTION_PATHS[DashboardSection.PUBLIC_PROPERTIES])
        except Exception as exc:
            message = extract_error_message(exc, "Failed to fetch public properties")
            logger.warning(f"Public properties unavailable for dashboard, using empty list: {message}")
            return []
        return extract_list(body)
