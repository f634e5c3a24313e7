"""Command line entry point for inspecting and driving the client state."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, replace

from bookingdesk.state.config import ConfigurationError, load_settings
from bookingdesk.state.container import StateContainer, create_container
from bookingdesk.state.outcomes import Failed


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Booking desk client")
    parser.add_argument("--server", default="", help="Override BOOKINGDESK_API_BASE_URL")
    parser.add_argument("--verbose", action="store_true")
    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("dashboard", help="Fetch the admin dashboard and print totals")
    login = subcommands.add_parser("login", help="Start a session and persist it")
    login.add_argument("--email", required=True)
    login.add_argument("--password", required=True)
    subcommands.add_parser("logout", help="Forget the persisted session")
    subcommands.add_parser("whoami", help="Show the user of the persisted session")
    return parser.parse_args(argv)


async def run_command(container: StateContainer, args: argparse.Namespace) -> int:
    if args.command == "dashboard":
        outcome = await container.dashboard.fetch()
        if isinstance(outcome, Failed):
            print(outcome.message, file=sys.stderr)
            return 1
        stats = container.dashboard.stats()
        print(json.dumps(asdict(stats) if stats is not None else {}, indent=2))
        return 0

    if args.command == "login":
        outcome = await container.auth.login({"email": args.email, "password": args.password})
        if isinstance(outcome, Failed):
            print(outcome.message, file=sys.stderr)
            return 1
        print(f"Logged in as {_display_name(container)}")
        return 0

    if args.command == "logout":
        container.auth.logout()
        print("Logged out")
        return 0

    if args.command == "whoami":
        outcome = await container.auth.fetch_current_user()
        if isinstance(outcome, Failed):
            print(outcome.message, file=sys.stderr)
            return 1
        print(_display_name(container))
        return 0

    print(f"Unknown command: {args.command}", file=sys.stderr)
    return 2


def _display_name(container: StateContainer) -> str:
    user = container.get_state().auth.user or {}
    return str(user.get("email") or user.get("name") or "unknown user")


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings()
    if args.server:
        settings = replace(settings, api_base_url=args.server.rstrip("/"))
        settings.validate()
    container = create_container(settings)
    try:
        return await run_command(container, args)
    finally:
        await container.aclose()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
