"""CLI for gcal-tools - Google Calendar from the command line.

Usage:
    gcal auth [--mode readonly|readwrite]     # Interactive OAuth login
    gcal status [--mode readonly|readwrite]   # Show OAuth token status
    gcal fetch [DATE] [--calendar ID ...]     # Events for a day (default: today)
    gcal create SUMMARY START END             # Create an event
    gcal update --event-id ID [--summary ...] # Update fields of an event
    gcal delete --event-id ID                 # Delete an event

fetch/create/update/delete print one JSON document to stdout and exit 1
with {"error": ...} on failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import webbrowser
from typing import Any

from gcal_tools.calendar import CalendarClient
from gcal_tools.commands import (
    VALID_SEND_UPDATES,
    CommandResult,
    create_event,
    delete_event,
    fetch_events,
    resolve_day,
    run_command,
    update_event,
)
from gcal_tools.config import Settings
from gcal_tools.exceptions import CalendarToolsError
from gcal_tools.google import GoogleOAuth, ScopeMode

logger = logging.getLogger(__name__)


def _build_client(settings: Settings, mode: ScopeMode) -> CalendarClient:
    """Calendar client authenticated for a scope mode."""
    return CalendarClient(GoogleOAuth(mode, settings))


def _emit(result: CommandResult, pretty: bool = False) -> int:
    """Print a command result as JSON and return its exit code."""
    print(json.dumps(result.payload, ensure_ascii=False, indent=2 if pretty else None))
    return result.exit_code


# =============================================================================
# OAuth commands
# =============================================================================


def cmd_auth(settings: Settings, mode: str, no_browser: bool = False) -> int:
    """Interactive Google OAuth login for one scope mode."""
    try:
        auth = GoogleOAuth(mode, settings)
        authorized = auth.authorize_interactive(
            open_url=None if no_browser else webbrowser.open,
        )
    except (CalendarToolsError, EOFError) as e:
        print(f"\nError: {str(e) or 'no authorization code provided'}")
        return 1

    if authorized:
        if auth.mode is ScopeMode.READONLY:
            print("\nYou can now run 'gcal fetch' to fetch your calendar events.")
        else:
            print("\nYou can now run 'gcal create', 'gcal update' and 'gcal delete'.")
    return 0


def cmd_status(settings: Settings, mode: str) -> int:
    """Show Google OAuth token status."""
    try:
        auth = GoogleOAuth(mode, settings)
    except CalendarToolsError as e:
        print(f"Error: {e}")
        return 1

    info = auth.get_token_info()

    if info["status"] == "no_token":
        print(f"No token found at {info['token_path']} - run 'gcal auth --mode={mode}'")
        return 1

    if info["status"] == "scope_mismatch":
        print(f"Token missing scopes: {', '.join(info['missing_scopes'])}")
        print(f"Delete {info['token_path']} and run 'gcal auth --mode={mode}'")
        return 1

    print(f"Status     : {info['status']}")
    print(f"Mode       : {info['mode']}")
    print(f"Scopes     : {', '.join(info.get('scopes', []))}")
    print(f"Expires in : {info.get('expires_in', 'unknown')}")
    print(f"Token file : {info['token_path']}")
    return 0


# =============================================================================
# Calendar commands
# =============================================================================


def _fetch(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    day = resolve_day(args.date)
    calendar_ids = settings.resolve_fetch_calendar_ids(args.calendar)
    client = _build_client(settings, ScopeMode.READONLY)
    return fetch_events(client, calendar_ids, day)


def _create(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    calendar_id = settings.resolve_calendar_id(args.calendar)
    client = _build_client(settings, ScopeMode.READWRITE)
    return create_event(
        client,
        calendar_id,
        summary=args.summary,
        start=args.start,
        end=args.end,
        description=args.description,
        location=args.location,
    )


def _update(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    calendar_id = settings.resolve_calendar_id(args.calendar)
    client = _build_client(settings, ScopeMode.READWRITE)
    fields = {
        "summary": args.summary,
        "start": args.start,
        "end": args.end,
        "description": args.description,
        "location": args.location,
    }
    return update_event(
        client, calendar_id, args.event_id, fields, send_updates=args.send_updates
    )


def _delete(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    calendar_id = settings.resolve_calendar_id(args.calendar)
    client = _build_client(settings, ScopeMode.READWRITE)
    return delete_event(client, calendar_id, args.event_id, send_updates=args.send_updates)


CALENDAR_COMMANDS = {
    "fetch": _fetch,
    "create": _create,
    "update": _update,
    "delete": _delete,
}


def run_calendar_command(settings: Settings, args: argparse.Namespace) -> CommandResult:
    """Run fetch/create/update/delete, converting any failure to a result."""
    handler = CALENDAR_COMMANDS[args.command]
    try:
        return run_command(handler, settings, args)
    except Exception as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        return CommandResult.failure(e)


# =============================================================================
# Argument parsing
# =============================================================================


def _add_mode_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--mode",
        type=str,
        default=ScopeMode.READONLY.value,
        choices=[m.value for m in ScopeMode],
        help="Authentication mode: readonly (for fetch, default) or readwrite (for changes)",
    )


def _add_send_updates_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--send-updates",
        type=str,
        default="none",
        help=f"Notify attendees: {', '.join(VALID_SEND_UPDATES)} (default: none)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the gcal argument parser."""
    parser = argparse.ArgumentParser(
        prog="gcal",
        description="Fetch, create, update and delete Google Calendar events",
    )
    parser.add_argument("--pretty", action="store_true", help="Indent JSON output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # auth command
    auth_parser = subparsers.add_parser("auth", help="Interactive OAuth login")
    _add_mode_option(auth_parser)
    auth_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open browser automatically",
    )

    # status command
    status_parser = subparsers.add_parser("status", help="Show token status")
    _add_mode_option(status_parser)

    # fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Fetch events for a day")
    fetch_parser.add_argument(
        "date",
        nargs="?",
        help="YYYY-MM-DD, or y/yesterday, t/tomorrow (default: today)",
    )
    fetch_parser.add_argument(
        "--calendar",
        action="append",
        help="Calendar ID, repeatable (default: GOOGLE_CALENDAR_IDS or GOOGLE_CALENDAR_ID)",
    )

    # create command
    create_parser = subparsers.add_parser("create", help="Create an event")
    create_parser.add_argument("summary", nargs="?", help="Event title")
    create_parser.add_argument("start", nargs="?", help="Start, e.g. '2025-11-24T10:00:00'")
    create_parser.add_argument("end", nargs="?", help="End, e.g. '2025-11-24T11:00:00'")
    create_parser.add_argument("--description", help="Event description")
    create_parser.add_argument("--location", help="Event location")
    create_parser.add_argument("--calendar", help="Calendar ID (default: GOOGLE_CALENDAR_ID)")

    # update command
    update_parser = subparsers.add_parser("update", help="Update an event")
    update_parser.add_argument("--event-id", help="Event ID to update (required)")
    update_parser.add_argument("--summary", help="New event title")
    update_parser.add_argument("--start", help="New start, e.g. '2025-01-15T10:00:00'")
    update_parser.add_argument("--end", help="New end, e.g. '2025-01-15T11:00:00'")
    update_parser.add_argument("--description", help="New event description")
    update_parser.add_argument("--location", help="New event location")
    update_parser.add_argument("--calendar", help="Calendar ID (default: GOOGLE_CALENDAR_ID)")
    _add_send_updates_option(update_parser)

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete an event")
    delete_parser.add_argument("--event-id", help="Event ID to delete (required)")
    delete_parser.add_argument("--calendar", help="Calendar ID (default: GOOGLE_CALENDAR_ID)")
    _add_send_updates_option(delete_parser)

    return parser


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    settings = settings or Settings.from_env()

    if args.command == "auth":
        return cmd_auth(settings, args.mode, args.no_browser)

    if args.command == "status":
        return cmd_status(settings, args.mode)

    return _emit(run_calendar_command(settings, args), pretty=args.pretty)


if __name__ == "__main__":
    sys.exit(main())
