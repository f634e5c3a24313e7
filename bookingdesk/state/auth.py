"""Session branch: the only part of the tree that survives a restart."""

from __future__ import annotations

from typing import Any, Awaitable

from bookingdesk.state.engine import AuthAction, AuthOp, StateHandle
from bookingdesk.state.http import JsonApi
from bookingdesk.state.models import AuthState, Record
from bookingdesk.state.outcomes import Failed, Pending, RequestDescriptor, Settlement, Succeeded, extract_record

USER_PATHS = (("data", "user"), ("user",), ("data",))

LOGIN = RequestDescriptor(name="auth/login", fallback_message="Login failed")
REGISTER = RequestDescriptor(name="auth/register", fallback_message="Registration failed")
FETCH_USER = RequestDescriptor(name="auth/fetchUser", fallback_message="Failed to fetch user")
UPDATE_PROFILE = RequestDescriptor(name="auth/updateProfile", fallback_message="Update failed")


def _session_from(body: Any) -> dict[str, Any]:
    token = body.get("token") if isinstance(body, dict) else None
    return {"user": extract_record(body, USER_PATHS), "token": token}


class AuthModule:
    def __init__(self, handle: StateHandle, api: JsonApi):
        self._handle = handle
        self._api = api

    @property
    def state(self) -> AuthState:
        return self._handle.get_state().auth

    def login(self, credentials: Record) -> Awaitable[Settlement]:
        return self._start_session(AuthOp.LOGIN, LOGIN, "/api/users/login", credentials)

    def register(self, user_data: Record) -> Awaitable[Settlement]:
        return self._start_session(AuthOp.REGISTER, REGISTER, "/api/users/signup", user_data)

    def fetch_current_user(self) -> Awaitable[Settlement]:
        self._handle.dispatch(AuthAction(op=AuthOp.FETCH_USER, outcome=Pending()))
        return self._settle_fetch_user()

    async def _settle_fetch_user(self) -> Settlement:
        if not self.state.token:
            outcome: Settlement = Failed("No token found")
        else:
            outcome = await FETCH_USER.run(self._fetch_me)
        self._handle.dispatch(AuthAction(op=AuthOp.FETCH_USER, outcome=outcome))
        return outcome

    def update_profile(self, user_data: Record) -> Awaitable[Settlement]:
        self._handle.dispatch(AuthAction(op=AuthOp.UPDATE_PROFILE, outcome=Pending()))
        return self._settle_profile_update(user_data)

    async def _settle_profile_update(self, user_data: Record) -> Settlement:
        async def call() -> Record:
            body = await self._api.patch("/api/users/updateMe", user_data)
            return extract_record(body, USER_PATHS)

        outcome = await UPDATE_PROFILE.run(call)
        self._handle.dispatch(AuthAction(op=AuthOp.UPDATE_PROFILE, outcome=outcome))
        return outcome

    def logout(self) -> Settlement:
        outcome = Succeeded(True)
        self._handle.dispatch(AuthAction(op=AuthOp.LOGOUT, outcome=outcome))
        return outcome

    def clear_error(self) -> None:
        self._handle.dispatch(AuthAction(op=AuthOp.CLEAR_ERROR))

    def _start_session(
        self,
        op: AuthOp,
        descriptor: RequestDescriptor,
        path: str,
        payload: Record,
    ) -> Awaitable[Settlement]:
        self._handle.dispatch(AuthAction(op=op, outcome=Pending()))
        return self._settle_session(op, descriptor, path, payload)

    async def _settle_session(
        self,
        op: AuthOp,
        descriptor: RequestDescriptor,
        path: str,
        payload: Record,
    ) -> Settlement:
        async def call() -> dict[str, Any]:
            return _session_from(await self._api.post(path, payload))

        outcome = await descriptor.run(call)
        self._handle.dispatch(AuthAction(op=op, outcome=outcome))
        return outcome

    async def _fetch_me(self) -> Record:
        body = await self._api.get("/api/users/me")
        return extract_record(body, USER_PATHS)
