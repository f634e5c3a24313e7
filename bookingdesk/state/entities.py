"""Entity collection modules mirroring server-owned lists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable

from bookingdesk.state.engine import CollectionAction, CollectionOp, StateHandle
from bookingdesk.state.http import JsonApi
from bookingdesk.state.models import Branch, EntityCollectionState, Record
from bookingdesk.state.outcomes import (
    ID_FIELDS,
    Outcome,
    Pending,
    RequestDescriptor,
    Settlement,
    extract_list,
    extract_record,
)


class UnsupportedOperationError(ValueError):
    pass


@dataclass(frozen=True)
class EntityActionDefinition:
    """A record-level command whose settlement replaces the record, like update."""

    name: str
    method: str
    path: str
    fallback_message: str


@dataclass(frozen=True)
class EntityDefinition:
    branch: Branch
    plural: str
    singular: str
    list_path: str
    member_path: str
    record_paths: tuple[tuple[str, ...], ...]
    list_params: tuple[tuple[str, str], ...] = ()
    create_path: str | None = None
    actions: tuple[EntityActionDefinition, ...] = ()

    def fallback(self, verb: str) -> str:
        noun = self.plural if verb == "fetch" else self.singular
        return f"Failed to {verb} {noun}"

    def action(self, name: str) -> EntityActionDefinition:
        for candidate in self.actions:
            if candidate.name == name:
                return candidate
        raise UnsupportedOperationError(f"{self.plural} do not support '{name}'")


USERS = EntityDefinition(
    branch=Branch.USERS,
    plural="users",
    singular="user",
    list_path="/api/users",
    member_path="/api/users/{id}",
    create_path="/api/users/signup",
    record_paths=(("user",), ("data", "user"), ("data",)),
)

EMPLOYEES = EntityDefinition(
    branch=Branch.EMPLOYEES,
    plural="employees",
    singular="employee",
    list_path="/api/users",
    list_params=(("role", "admin,superadmin"),),
    member_path="/api/users/{id}",
    create_path="/api/users/signup",
    record_paths=(("user",), ("data", "user"), ("data",)),
)

PROPERTIES = EntityDefinition(
    branch=Branch.PROPERTIES,
    plural="properties",
    singular="property",
    list_path="/api/properties",
    member_path="/api/properties/{id}",
    record_paths=(("data",), ("property",)),
    actions=(
        EntityActionDefinition(
            name="verify",
            method="PATCH",
            path="/api/properties/{id}/verify",
            fallback_message="Failed to verify property",
        ),
    ),
)

PUBLIC_PROPERTIES = EntityDefinition(
    branch=Branch.PUBLIC_PROPERTIES,
    plural="public properties",
    singular="public property",
    list_path="/api/public-properties",
    member_path="/api/public-properties/{id}",
    create_path="/api/public-properties",
    record_paths=(("data",), ("publicProperty",)),
)

BOOKINGS = EntityDefinition(
    branch=Branch.BOOKINGS,
    plural="bookings",
    singular="booking",
    list_path="/api/bookings",
    member_path="/api/bookings/{id}",
    record_paths=(("data",), ("booking",)),
    actions=(
        EntityActionDefinition(
            name="refund",
            method="POST",
            path="/api/bookings/{id}/refund",
            fallback_message="Failed to refund booking",
        ),
    ),
)


class EntityCollectionModule:
    """Owns one `{items, loading, error}` branch and the requests that drive it.

    Every operation returns its settlement instead of raising; failures are also
    recorded in the branch's `error`.
    """

    def __init__(self, handle: StateHandle, api: JsonApi, definition: EntityDefinition):
        self._handle = handle
        self._api = api
        self._definition = definition
        self._epoch = 0

    @property
    def state(self) -> EntityCollectionState:
        return self._handle.get_state().branch(self._definition.branch)

    def fetch_all(self) -> Awaitable[Settlement]:
        """Enter the loading state now; the returned awaitable settles the fetch."""
        self._epoch += 1
        epoch = self._epoch
        self._dispatch(CollectionOp.FETCH_ALL, Pending(), epoch=epoch)
        return self._settle_fetch(epoch)

    async def _settle_fetch(self, epoch: int) -> Settlement:
        descriptor = self._descriptor("fetchAll", self._definition.fallback("fetch"))
        outcome = await descriptor.run(self._fetch_items)
        self._dispatch(CollectionOp.FETCH_ALL, outcome, epoch=epoch)
        return outcome

    async def create(self, payload: Record) -> Settlement:
        create_path = self._definition.create_path
        if create_path is None:
            raise UnsupportedOperationError(f"{self._definition.plural} cannot be created")

        async def call() -> Record:
            body = await self._api.post(create_path, payload)
            return extract_record(body, self._definition.record_paths)

        descriptor = self._descriptor("create", self._definition.fallback("create"))
        outcome = await descriptor.run(call)
        self._dispatch(CollectionOp.CREATE, outcome)
        return outcome

    async def update(self, changes: Record) -> Settlement:
        """PATCH the record named by `changes["id"]` with the remaining fields."""
        entity_id = _entity_id_of(changes)
        body_fields = {key: value for key, value in changes.items() if key not in ID_FIELDS}

        async def call() -> Record:
            body = await self._api.patch(self._member_path(entity_id), body_fields)
            return extract_record(body, self._definition.record_paths)

        descriptor = self._descriptor("update", self._definition.fallback("update"))
        outcome = await descriptor.run(call)
        self._dispatch(CollectionOp.UPDATE, outcome)
        return outcome

    async def delete(self, entity_id: str) -> Settlement:
        async def call() -> str:
            await self._api.delete(self._member_path(entity_id))
            return entity_id

        descriptor = self._descriptor("delete", self._definition.fallback("delete"))
        outcome = await descriptor.run(call)
        self._dispatch(CollectionOp.DELETE, outcome)
        return outcome

    async def run_action(self, name: str, entity_id: str) -> Settlement:
        action = self._definition.action(name)
        path = action.path.format(id=entity_id)
        send = getattr(self._api, action.method.lower())

        async def call() -> Record:
            body = await send(path)
            return extract_record(body, self._definition.record_paths)

        outcome = await self._descriptor(name, action.fallback_message).run(call)
        self._dispatch(CollectionOp.UPDATE, outcome)
        return outcome

    async def _fetch_items(self) -> list[Any]:
        params = dict(self._definition.list_params) or None
        body = await self._api.get(self._definition.list_path, params=params)
        return extract_list(body)

    def _member_path(self, entity_id: str) -> str:
        return self._definition.member_path.format(id=entity_id)

    def _descriptor(self, operation: str, fallback_message: str) -> RequestDescriptor:
        return RequestDescriptor(name=f"{self._definition.branch.value}/{operation}", fallback_message=fallback_message)

    def _dispatch(self, op: CollectionOp, outcome: Outcome, epoch: int = 0) -> None:
        self._handle.dispatch(
            CollectionAction(branch=self._definition.branch, op=op, outcome=outcome, epoch=epoch)
        )


class PropertiesModule(EntityCollectionModule):
    async def verify(self, property_id: str) -> Settlement:
        return await self.run_action("verify", property_id)


class BookingsModule(EntityCollectionModule):
    async def refund(self, booking_id: str) -> Settlement:
        return await self.run_action("refund", booking_id)


def _entity_id_of(changes: Record) -> str:
    for field in ID_FIELDS:
        value = changes.get(field)
        if value is not None:
            return str(value)
    raise ValueError("Update requires an 'id' field")
