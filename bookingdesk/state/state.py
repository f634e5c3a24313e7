"""Builders for the initial client state tree."""

from __future__ import annotations

from datetime import datetime, timezone

from bookingdesk.state.models import AuthState, RootState


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_initial_state(auth: AuthState | None = None) -> RootState:
    """Return a tree where every branch except `auth` has its initial shape.

    `auth` is the rehydrated branch when one is available. Flags that only make
    sense while a request is in flight are cleared.
    """
    if auth is None:
        return RootState()
    return RootState(auth=auth.model_copy(update={"loading": False, "profile_update_loading": False}))
