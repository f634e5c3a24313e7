from bookingdesk.state.http import ApiHttpError
from bookingdesk.state.models import WishlistStatus
from bookingdesk.state.outcomes import Failed, Succeeded


async def test_fetch_normalizes_wishlist_entries(api, container) -> None:
    api.on("GET", "/api/wishlist", {"status": "success", "data": [{"_id": "P1", "title": "Loft"}, {"_id": "P2"}]})

    outcome = await container.wishlist.fetch()

    assert isinstance(outcome, Succeeded)
    assert container.wishlist.state.status is WishlistStatus.SUCCEEDED
    assert container.wishlist.state.items == frozenset({"P1", "P2"})
    assert container.wishlist.contains("P1") is True
    assert container.wishlist.contains("P3") is False


async def test_fetch_accepts_wishlist_key(api, container) -> None:
    api.on("GET", "/api/wishlist", {"wishlist": ["P4"]})

    await container.wishlist.fetch()

    assert container.wishlist.state.items == frozenset({"P4"})


async def test_adding_twice_keeps_single_membership(api, container) -> None:
    api.on("POST", "/api/wishlist/P1", {"status": "success"})

    await container.wishlist.add("P1")
    await container.wishlist.add("P1")

    assert container.wishlist.state.items == frozenset({"P1"})
    assert len(api.calls_to("POST", "/api/wishlist/P1")) == 2


async def test_removing_absent_id_is_a_no_op(api, container) -> None:
    api.on("DELETE", "/api/wishlist/P9", {})
    notified: list[object] = []
    container.subscribe(notified.append)

    outcome = await container.wishlist.remove("P9")

    assert outcome == Succeeded("P9")
    assert container.wishlist.state.items == frozenset()
    assert notified == []


async def test_failed_add_leaves_membership_and_records_error(api, container) -> None:
    api.on("POST", "/api/wishlist/P1", {})
    api.on("POST", "/api/wishlist/P2", ApiHttpError(401, "HTTP 401", body={"message": "Please log in"}))
    await container.wishlist.add("P1")

    outcome = await container.wishlist.add("P2")

    assert outcome == Failed("Please log in")
    assert container.wishlist.state.items == frozenset({"P1"})
    assert container.wishlist.state.error == "Please log in"

    container.wishlist.clear_error()

    assert container.wishlist.state.error is None


async def test_failed_fetch_marks_status_failed(api, container) -> None:
    api.on("GET", "/api/wishlist", RuntimeError(""))

    outcome = await container.wishlist.fetch()

    assert outcome == Failed("Failed to fetch wishlist")
    assert container.wishlist.state.status is WishlistStatus.FAILED


async def test_fetch_marks_loading_before_settling(api, container) -> None:
    api.on("GET", "/api/wishlist", [])

    pending = container.wishlist.fetch()

    assert container.wishlist.state.status is WishlistStatus.LOADING

    await pending

    assert container.wishlist.state.status is WishlistStatus.SUCCEEDED
