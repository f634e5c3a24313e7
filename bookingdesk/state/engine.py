"""Reducers turning request outcomes into the next state tree."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Protocol, Union

from bookingdesk.state.models import (
    BRANCH_FIELDS,
    COLLECTION_BRANCHES,
    AuthState,
    Branch,
    DashboardData,
    DashboardSection,
    DashboardState,
    EntityCollectionState,
    Record,
    RootState,
    WishlistState,
    WishlistStatus,
)
from bookingdesk.state.outcomes import Failed, Outcome, Pending, Succeeded, record_id
from bookingdesk.state.state import build_initial_state


class CollectionOp(str, Enum):
    FETCH_ALL = "fetch_all"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class WishlistOp(str, Enum):
    FETCH = "fetch"
    ADD = "add"
    REMOVE = "remove"
    CLEAR_ERROR = "clear_error"


class DashboardOp(str, Enum):
    FETCH = "fetch"
    REFRESH_SECTION = "refresh_section"
    CLEAR_ERROR = "clear_error"
    RESET = "reset"


class AuthOp(str, Enum):
    LOGIN = "login"
    REGISTER = "register"
    FETCH_USER = "fetch_user"
    UPDATE_PROFILE = "update_profile"
    LOGOUT = "logout"
    CLEAR_ERROR = "clear_error"


@dataclass(frozen=True)
class CollectionAction:
    branch: Branch
    op: CollectionOp
    outcome: Outcome
    epoch: int = 0


@dataclass(frozen=True)
class WishlistAction:
    op: WishlistOp
    outcome: Outcome | None = None
    epoch: int = 0


@dataclass(frozen=True)
class DashboardAction:
    op: DashboardOp
    outcome: Outcome | None = None
    section: DashboardSection | None = None
    epoch: int = 0
    fetched_at: str | None = None


@dataclass(frozen=True)
class AuthAction:
    op: AuthOp
    outcome: Outcome | None = None


@dataclass(frozen=True)
class ResetAction:
    pass


Action = Union[CollectionAction, WishlistAction, DashboardAction, AuthAction, ResetAction]


def apply_action(state: RootState, action: Action, discard_stale: bool = False) -> RootState:
    """Route an action to the reducer of the branch it belongs to.

    With `discard_stale` set, fetch settlements carrying an epoch older than the
    branch's latest issued epoch are dropped. Otherwise the last settlement wins.
    """
    if isinstance(action, ResetAction):
        return build_initial_state()
    if isinstance(action, CollectionAction):
        if action.branch not in COLLECTION_BRANCHES:
            raise ValueError(f"{action.branch.value} is not an entity collection branch")
        field_name = BRANCH_FIELDS[action.branch]
        current = getattr(state, field_name)
        updated = reduce_collection(current, action, discard_stale=discard_stale)
        return state if updated is current else replace(state, **{field_name: updated})
    if isinstance(action, WishlistAction):
        updated = reduce_wishlist(state.wishlist, action, discard_stale=discard_stale)
        return state if updated is state.wishlist else replace(state, wishlist=updated)
    if isinstance(action, DashboardAction):
        updated = reduce_dashboard(state.dashboard, action, discard_stale=discard_stale)
        return state if updated is state.dashboard else replace(state, dashboard=updated)
    if isinstance(action, AuthAction):
        updated = reduce_auth(state.auth, action)
        return state if updated is state.auth else replace(state, auth=updated)
    raise TypeError(f"Unhandled action: {action!r}")


def _is_stale(epoch: int, latest_epoch: int, discard_stale: bool) -> bool:
    return discard_stale and epoch < latest_epoch


def reduce_collection(
    state: EntityCollectionState,
    action: CollectionAction,
    discard_stale: bool = False,
) -> EntityCollectionState:
    outcome = action.outcome
    if action.op is CollectionOp.FETCH_ALL:
        if isinstance(outcome, Pending):
            return replace(
                state,
                loading=True,
                error=None,
                request_epoch=max(state.request_epoch, action.epoch),
            )
        if _is_stale(action.epoch, state.request_epoch, discard_stale):
            return state
        if isinstance(outcome, Succeeded):
            return replace(state, loading=False, items=list(outcome.value))
        if isinstance(outcome, Failed):
            return replace(state, loading=False, error=outcome.message)
        return state

    if isinstance(outcome, Failed):
        return replace(state, error=outcome.message)
    if not isinstance(outcome, Succeeded):
        return state

    if action.op is CollectionOp.CREATE:
        return replace(state, items=_upsert(state.items, outcome.value))
    if action.op is CollectionOp.UPDATE:
        return replace(state, items=_replace_one(state.items, outcome.value))
    if action.op is CollectionOp.DELETE:
        target = record_id(outcome.value)
        return replace(state, items=[item for item in state.items if record_id(item) != target])
    return state


def _replace_one(items: list[Record], record: Record) -> list[Record]:
    target = record_id(record)
    if target is None:
        return items
    next_items = list(items)
    for index, item in enumerate(next_items):
        if record_id(item) == target:
            next_items[index] = record
            break
    return next_items


def _upsert(items: list[Record], record: Record) -> list[Record]:
    target = record_id(record)
    if target is not None and any(record_id(item) == target for item in items):
        return _replace_one(items, record)
    return [*items, record]


def reduce_wishlist(
    state: WishlistState,
    action: WishlistAction,
    discard_stale: bool = False,
) -> WishlistState:
    outcome = action.outcome
    if action.op is WishlistOp.CLEAR_ERROR:
        return replace(state, error=None)

    if action.op is WishlistOp.FETCH:
        if isinstance(outcome, Pending):
            return replace(
                state,
                status=WishlistStatus.LOADING,
                error=None,
                request_epoch=max(state.request_epoch, action.epoch),
            )
        if _is_stale(action.epoch, state.request_epoch, discard_stale):
            return state
        if isinstance(outcome, Succeeded):
            identifiers = (record_id(entry) for entry in outcome.value)
            return replace(
                state,
                status=WishlistStatus.SUCCEEDED,
                items=frozenset(identifier for identifier in identifiers if identifier is not None),
            )
        if isinstance(outcome, Failed):
            return replace(state, status=WishlistStatus.FAILED, error=outcome.message)
        return state

    if isinstance(outcome, Failed):
        return replace(state, error=outcome.message)
    if not isinstance(outcome, Succeeded):
        return state

    identifier = str(outcome.value)
    if action.op is WishlistOp.ADD:
        if identifier in state.items:
            return state
        return replace(state, items=state.items | {identifier})
    if action.op is WishlistOp.REMOVE:
        if identifier not in state.items:
            return state
        return replace(state, items=state.items - {identifier})
    return state


def reduce_dashboard(
    state: DashboardState,
    action: DashboardAction,
    discard_stale: bool = False,
) -> DashboardState:
    outcome = action.outcome
    if action.op is DashboardOp.RESET:
        return DashboardState()
    if action.op is DashboardOp.CLEAR_ERROR:
        return replace(state, error=None)

    if action.op is DashboardOp.FETCH:
        if isinstance(outcome, Pending):
            return replace(
                state,
                loading=True,
                error=None,
                request_epoch=max(state.request_epoch, action.epoch),
            )
        if _is_stale(action.epoch, state.request_epoch, discard_stale):
            return state
        if isinstance(outcome, Succeeded):
            return replace(
                state,
                loading=False,
                error=None,
                data=outcome.value,
                last_fetched=action.fetched_at,
            )
        if isinstance(outcome, Failed):
            return replace(state, loading=False, error=outcome.message or "Something went wrong")
        return state

    if action.op is DashboardOp.REFRESH_SECTION:
        if not isinstance(outcome, Succeeded) or state.data is None or action.section is None:
            return state
        data: DashboardData = replace(state.data, **{action.section.field_name: list(outcome.value)})
        return replace(state, data=data, last_fetched=action.fetched_at)
    return state


def reduce_auth(state: AuthState, action: AuthAction) -> AuthState:
    outcome = action.outcome
    if action.op is AuthOp.CLEAR_ERROR:
        return state.model_copy(update={"error": None})
    if action.op is AuthOp.LOGOUT:
        return state.model_copy(
            update={
                "user": None,
                "token": None,
                "is_authenticated": False,
                "error": None,
                "loading": False,
            }
        )

    if action.op in (AuthOp.LOGIN, AuthOp.REGISTER):
        if isinstance(outcome, Pending):
            return state.model_copy(update={"loading": True, "error": None, "success": False})
        if isinstance(outcome, Succeeded):
            session: dict[str, Any] = outcome.value
            return state.model_copy(
                update={
                    "loading": False,
                    "user": session.get("user"),
                    "token": session.get("token"),
                    "is_authenticated": True,
                    "success": True,
                }
            )
        if isinstance(outcome, Failed):
            return state.model_copy(
                update={"loading": False, "error": outcome.message, "is_authenticated": False}
            )
        return state

    if action.op is AuthOp.FETCH_USER:
        if isinstance(outcome, Pending):
            return state.model_copy(update={"loading": True, "error": None})
        if isinstance(outcome, Succeeded):
            return state.model_copy(
                update={"loading": False, "user": outcome.value, "is_authenticated": True}
            )
        if isinstance(outcome, Failed):
            return state.model_copy(
                update={
                    "loading": False,
                    "error": outcome.message,
                    "is_authenticated": False,
                    "user": None,
                    "token": None,
                }
            )
        return state

    if action.op is AuthOp.UPDATE_PROFILE:
        if isinstance(outcome, Pending):
            return state.model_copy(update={"profile_update_loading": True, "error": None})
        if isinstance(outcome, Succeeded):
            return state.model_copy(update={"profile_update_loading": False, "user": outcome.value})
        if isinstance(outcome, Failed):
            return state.model_copy(update={"profile_update_loading": False, "error": outcome.message})
        return state
    return state


class StateHandle(Protocol):
    def get_state(self) -> RootState:
        """Return the current state tree."""

    def dispatch(self, action: Action) -> RootState:
        """Reduce `action` into the tree and notify subscribers."""
