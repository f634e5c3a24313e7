import json

from bookingdesk.cli import main, parse_args, run_command
from bookingdesk.state.http import ApiHttpError


def test_parse_args_reads_login_credentials() -> None:
    args = parse_args(["--server", "http://api.local/", "login", "--email", "a@example.com", "--password", "pw"])

    assert args.command == "login"
    assert args.server == "http://api.local/"
    assert args.email == "a@example.com"
    assert args.password == "pw"


async def test_dashboard_command_prints_totals(api, container, capsys) -> None:
    api.on("GET", "/api/users", {"data": [{"_id": "U1"}]})
    api.on("GET", "/api/properties", {"data": [{"_id": "P1", "status": "pending"}]})
    api.on("GET", "/api/publicProperties", {"data": []})
    api.on("GET", "/api/bookings", {"data": [{"_id": "B1"}, {"_id": "B2"}]})

    exit_code = await run_command(container, parse_args(["dashboard"]))

    assert exit_code == 0
    totals = json.loads(capsys.readouterr().out)
    assert totals["total_users"] == 1
    assert totals["total_bookings"] == 2
    assert totals["pending_properties"] == 1


async def test_dashboard_command_reports_failure(api, container, capsys) -> None:
    api.on("GET", "/api/users", ApiHttpError(403, "HTTP 403", body={"message": "Admins only"}))
    api.on("GET", "/api/properties", [])
    api.on("GET", "/api/publicProperties", [])
    api.on("GET", "/api/bookings", [])

    exit_code = await run_command(container, parse_args(["dashboard"]))

    assert exit_code == 1
    assert "Admins only" in capsys.readouterr().err


async def test_login_then_whoami(api, container, capsys) -> None:
    api.on("POST", "/api/users/login", {"token": "tok-1", "data": {"user": {"_id": "U1", "email": "a@example.com"}}})
    api.on("GET", "/api/users/me", {"data": {"user": {"_id": "U1", "email": "a@example.com"}}})

    login_code = await run_command(container, parse_args(["login", "--email", "a@example.com", "--password", "pw"]))
    whoami_code = await run_command(container, parse_args(["whoami"]))

    assert login_code == 0
    assert whoami_code == 0
    assert capsys.readouterr().out.splitlines() == ["Logged in as a@example.com", "a@example.com"]


async def test_whoami_without_session_fails(container, capsys) -> None:
    exit_code = await run_command(container, parse_args(["whoami"]))

    assert exit_code == 1
    assert "No token found" in capsys.readouterr().err


async def test_logout_command(container, capsys) -> None:
    exit_code = await run_command(container, parse_args(["logout"]))

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "Logged out"


def test_main_rejects_invalid_configuration(monkeypatch, capsys) -> None:
    monkeypatch.setenv("BOOKINGDESK_TIMEOUT_SECONDS", "-1")

    exit_code = main(["logout"])

    assert exit_code == 2
    assert "BOOKINGDESK_TIMEOUT_SECONDS" in capsys.readouterr().err
