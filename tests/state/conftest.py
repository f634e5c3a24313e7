import asyncio
from typing import Any

import pytest

from bookingdesk.state.config import ClientSettings
from bookingdesk.state.container import StateContainer
from bookingdesk.state.storage import InMemoryStateStorage


class Deferred:
    """A scripted response held back until `release()` is called."""

    def __init__(self, result: Any) -> None:
        self.result = result
        self.released = asyncio.Event()

    def release(self) -> None:
        self.released.set()


class ScriptedApi:
    """Stands in for ApiClient. Each route answers from a queue; the last entry repeats."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def on(self, method: str, path: str, *responses: Any) -> None:
        self._routes.setdefault((method, path), []).extend(responses)

    def replace(self, method: str, path: str, *responses: Any) -> None:
        self._routes[(method, path)] = list(responses)

    def defer(self, method: str, path: str, result: Any) -> Deferred:
        deferred = Deferred(result)
        self.on(method, path, deferred)
        return deferred

    def calls_to(self, method: str, path: str) -> list[Any]:
        return [payload for call_method, call_path, payload in self.calls if (call_method, call_path) == (method, path)]

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._respond("GET", path, params)

    async def post(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return await self._respond("POST", path, payload)

    async def patch(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        return await self._respond("PATCH", path, payload)

    async def delete(self, path: str) -> Any:
        return await self._respond("DELETE", path, None)

    async def _respond(self, method: str, path: str, payload: Any) -> Any:
        self.calls.append((method, path, payload))
        queue = self._routes.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected request {method} {path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Deferred):
            await response.released.wait()
            response = response.result
        if isinstance(response, BaseException):
            raise response
        return response


def create_fake_booking_api() -> Any:
    """In-process booking API used to exercise the real HTTP transport."""
    from fastapi import FastAPI, Header, HTTPException
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel

    class LoginRequest(BaseModel):
        email: str
        password: str

    class BookingPatch(BaseModel):
        status: str | None = None

    app = FastAPI(title="Fake Booking API")
    bookings: dict[str, dict[str, Any]] = {
        "B1": {"_id": "B1", "status": "pending", "amount": 120},
        "B2": {"_id": "B2", "status": "confirmed", "amount": 80},
    }
    app.state.bookings = bookings
    app.state.seen_authorization = []

    @app.post("/api/users/login")
    def login(payload: LoginRequest) -> Any:
        if payload.password != "secret":
            return JSONResponse(status_code=401, content={"status": "fail", "message": "Incorrect email or password"})
        return {"status": "success", "token": "tok-1", "data": {"user": {"_id": "U1", "email": payload.email}}}

    @app.get("/api/users/me")
    def me(authorization: str | None = Header(default=None)) -> Any:
        app.state.seen_authorization.append(authorization)
        if authorization != "Bearer tok-1":
            return JSONResponse(status_code=401, content={"status": "fail", "message": "You are not logged in"})
        return {"status": "success", "data": {"user": {"_id": "U1", "email": "host@example.com"}}}

    @app.get("/api/bookings")
    def list_bookings(authorization: str | None = Header(default=None)) -> Any:
        app.state.seen_authorization.append(authorization)
        return {"status": "success", "results": len(bookings), "data": list(bookings.values())}

    @app.patch("/api/bookings/{booking_id}")
    def patch_booking(booking_id: str, payload: BookingPatch) -> Any:
        booking = bookings.get(booking_id)
        if booking is None:
            return JSONResponse(status_code=404, content={"status": "fail", "message": "No booking found with that ID"})
        if payload.status is not None:
            booking["status"] = payload.status
        return {"status": "success", "data": dict(booking)}

    @app.post("/api/bookings/{booking_id}/refund")
    def refund_booking(booking_id: str) -> Any:
        booking = bookings.get(booking_id)
        if booking is None:
            raise HTTPException(status_code=404, detail="Booking not found")
        booking["status"] = "refunded"
        return {"status": "success", "booking": dict(booking)}

    @app.delete("/api/bookings/{booking_id}", status_code=204)
    def delete_booking(booking_id: str) -> None:
        bookings.pop(booking_id, None)

    @app.get("/api/broken")
    def broken() -> Any:
        return JSONResponse(status_code=500, content="upstream exploded")

    return app


@pytest.fixture
def api() -> ScriptedApi:
    return ScriptedApi()


@pytest.fixture
def storage() -> InMemoryStateStorage:
    return InMemoryStateStorage()


@pytest.fixture
async def container(api: ScriptedApi, storage: InMemoryStateStorage):
    state_container = StateContainer(api=api, storage=storage)
    yield state_container
    await state_container.aclose()


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(
        api_base_url="http://testserver",
        timeout_seconds=5,
        storage_path=None,
        database_url=None,
        persist_key="root",
        discard_stale_settlements=False,
    )


@pytest.fixture
def fake_booking_api() -> Any:
    pytest.importorskip("fastapi")
    return create_fake_booking_api()
