"""
CLI (Command Line Interface).

This module provides quick terminal commands for power users and for testing, e.g.:

    eventhub list [--category Sports] [--search talk] [--mine]
    eventhub register <event_id>
    eventhub export <file.ics>
    eventhub --user admin create --title ... --date 2026-03-01 --time 18:00 ...
    eventhub --user admin delete <event_id>
    eventhub --user admin attendees <event_id>
    eventhub --user admin clear --yes
    eventhub interactive

Note:
- The interactive UI lives in eventhub/interactive.py
- Every command signs in first (--user, default "student")
- Admin-only commands are refused for students before anything is sent
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Awaitable, Callable, Optional

from eventhub.config import Settings, configure_logging, load_settings
from eventhub.coordinator import MutationCoordinator, can_manage
from eventhub.errors import SignInError
from eventhub.export_ics import export_events_to_ics
from eventhub.http_remote import HttpRemote
from eventhub.model import ALL_CATEGORIES, Event, EventCategory, EventDraft, View
from eventhub.notifications import Notifier
from eventhub.remote import MemoryRemote
from eventhub.session import Session
from eventhub.storage import JsonFileRemote

ADMIN_COMMANDS = {"create", "update", "delete", "clear", "stats", "attendees"}


def make_remote(settings: Settings) -> MemoryRemote | HttpRemote:
    """
    Build the backend selected by EVENTHUB_BACKEND.
    """
    if settings.backend == "http":
        return HttpRemote(settings.api_url, token=settings.api_token, timeout=settings.http_timeout)
    if settings.backend == "memory":
        return MemoryRemote()
    return JsonFileRemote(settings.data_path)


def make_coordinator(settings: Settings) -> MutationCoordinator:
    remote = make_remote(settings)
    session = Session(remote, Notifier(delay=settings.notify_seconds))
    return MutationCoordinator(session, remote)


def event_line(ev: Event, registered: bool = False) -> str:
    """
    One-line summary: id | date time | title | category | location | attendees/capacity.
    """
    bits = [ev.id, f"{ev.date} {ev.time}".strip(), ev.title or "(no title)", ev.category.value]
    if ev.location:
        bits.append(f"@ {ev.location}")
    bits.append(f"{ev.attendees}/{ev.capacity}")
    if registered:
        bits.append("registered")
    return " | ".join(bits)


def attendee_line(form: dict[str, str]) -> str:
    """name (username) | usn | department, skipping what the form does not have."""
    name = form.get("name") or form.get("userId", "?")
    if form.get("username"):
        name += f" ({form['username']})"
    bits = [name] + [form[key] for key in ("usn", "department") if form.get(key)]
    return " | ".join(bits)


def _report(coord: MutationCoordinator, ok: bool) -> int:
    """
    Print the terminal notification of the last mutation and map it to an exit code.
    """
    message = coord.session.notifier.message
    if message:
        print(message)
    return 0 if ok else 1


def _draft_from_args(args: argparse.Namespace, base: Optional[EventDraft] = None) -> EventDraft:
    """
    Build a draft from CLI flags. For updates, unset flags keep the values of `base`.
    """
    values = dict(vars(base)) if base is not None else {}
    for key in ("title", "date", "time", "location", "description", "organizer", "capacity"):
        value = getattr(args, key, None)
        if value is not None:
            values[key] = value
    if getattr(args, "image", None) is not None:
        values["image_url"] = args.image
    if getattr(args, "category", None) is not None:
        values["category"] = EventCategory(args.category)
    return EventDraft(**values)


async def _cmd_list(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    """
    List visible events, filtered like the dashboard.
    """
    session = coord.session
    if not await coord.refresh_events():
        print(session.notifier.message)
        return 1
    await coord.refresh_registrations()

    session.set_view(View.MY_EVENTS if args.mine else View.DASHBOARD)
    session.set_category(args.category)
    session.set_query((args.search or "").strip())

    events = session.visible_events()
    if not events:
        print("No events found.")
        return 0
    for ev in events:
        print(event_line(ev, registered=session.is_registered(ev.id)))
    return 0


async def _cmd_stats(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    if not await coord.refresh_events():
        print(coord.session.notifier.message)
        return 1
    stats = coord.session.stats()
    print(f"Total events:     {stats.total_events}")
    print(f"Total attendees:  {stats.total_attendees}")
    print(f"Avg. attendance:  {stats.average_attendance}")
    return 0


async def _cmd_create(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    try:
        draft = _draft_from_args(args)
        ok = await coord.save_event(draft)
    except (TypeError, ValueError) as exc:
        print(f"Invalid event: {exc}")
        return 1
    return _report(coord, ok)


async def _cmd_update(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    await coord.refresh_events()
    existing = coord.session.catalog.get(args.event_id)
    if existing is None:
        print(f"Unknown event: {args.event_id}")
        return 1
    try:
        draft = _draft_from_args(args, base=existing.to_draft())
        ok = await coord.save_event(draft, editing=existing)
    except ValueError as exc:
        print(f"Invalid event: {exc}")
        return 1
    return _report(coord, ok)


async def _cmd_delete(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    await coord.refresh_events()
    ok = await coord.delete_event(args.event_id)
    return _report(coord, ok)


async def _cmd_clear(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    if not args.yes:
        print("This deletes ALL events. Re-run with --yes to confirm.")
        return 1
    ok = await coord.delete_all_events()
    return _report(coord, ok)


async def _cmd_register(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    await coord.refresh_registrations()
    if not coord.can_register(args.event_id):
        print(f"Already registered: {args.event_id}")
        return 0
    ok = await coord.register(args.event_id)
    return _report(coord, ok)


async def _cmd_export(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    """
    Export the signed-in user's registered events into an iCalendar (.ics) file.
    """
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    session = coord.session
    if not await coord.refresh_all():
        print("Could not load your events from the server.")
        return 1
    session.set_view(View.MY_EVENTS)
    events = session.visible_events()
    if not events:
        print("No registered events to export.")
        return 0

    n = export_events_to_ics(events, out_path)
    print(f"Exported {n} events to: {out_path}")
    return 0


async def _cmd_attendees(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    await coord.refresh_events()
    ev = coord.session.catalog.get(args.event_id)
    if ev is None:
        print(f"Unknown event: {args.event_id}")
        return 1
    attendees = await coord.load_attendees(ev.id)
    if attendees is None:
        print(coord.session.notifier.message)
        return 1

    print(f"{ev.title}: {len(attendees)} registered, capacity {ev.capacity}")
    for form in attendees:
        print(f"  - {attendee_line(form)}")
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, MutationCoordinator], Awaitable[int]]] = {
    "list": _cmd_list,
    "stats": _cmd_stats,
    "create": _cmd_create,
    "update": _cmd_update,
    "delete": _cmd_delete,
    "clear": _cmd_clear,
    "register": _cmd_register,
    "attendees": _cmd_attendees,
    "export": _cmd_export,
}


async def _run(args: argparse.Namespace, coord: MutationCoordinator) -> int:
    try:
        user = await coord.sign_in(args.user, load=False)
    except SignInError as exc:
        print(exc)
        return 1

    if args.command in ADMIN_COMMANDS and not can_manage(user):
        print(f"'{args.command}' is only available to admins.")
        return 1

    code = await COMMANDS[args.command](args, coord)
    # let the background refresh after a delete finish before the loop closes
    await coord.drain()
    return code


def _add_event_fields(p: argparse.ArgumentParser, required: bool) -> None:
    categories = [c.value for c in EventCategory]
    p.add_argument("--title", required=required, help="Event title")
    p.add_argument("--date", required=required, help="Date (YYYY-MM-DD)")
    p.add_argument("--time", required=required, help="Start time (HH:MM)")
    p.add_argument("--location", required=required, help="Where it takes place")
    p.add_argument("--category", required=required, choices=categories, help="Event category")
    p.add_argument("--description", default=None if not required else "", help="Description")
    p.add_argument("--organizer", default=None if not required else "", help="Organizer")
    p.add_argument("--image", default=None if not required else "", help="Image URL (blank = category default)")
    p.add_argument("--capacity", type=int, default=None if not required else 50, help="Maximum attendees")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="eventhub", description="EventHub CLI")
    parser.add_argument("--user", "-u", type=str, default="student", help="Username to sign in as")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List events")
    p_list.add_argument(
        "--category", "-c", type=str, default=ALL_CATEGORIES, choices=[ALL_CATEGORIES] + [c.value for c in EventCategory]
    )
    p_list.add_argument("--search", "-s", type=str, default="", help="Search in title and description")
    p_list.add_argument("--mine", action="store_true", help="Only events you registered for")

    sub.add_parser("stats", help="Attendance numbers (admin)")

    p_create = sub.add_parser("create", help="Create an event (admin)")
    _add_event_fields(p_create, required=True)

    p_update = sub.add_parser("update", help="Edit an event (admin)")
    p_update.add_argument("event_id", type=str, help="Event ID")
    _add_event_fields(p_update, required=False)

    p_delete = sub.add_parser("delete", help="Delete an event (admin)")
    p_delete.add_argument("event_id", type=str, help="Event ID")

    p_clear = sub.add_parser("clear", help="Delete ALL events (admin)")
    p_clear.add_argument("--yes", action="store_true", help="Confirm deleting everything")

    p_attendees = sub.add_parser("attendees", help="Who registered for an event (admin)")
    p_attendees.add_argument("event_id", type=str, help="Event ID")

    p_register = sub.add_parser("register", help="Register for an event")
    p_register.add_argument("event_id", type=str, help="Event ID")

    p_export = sub.add_parser("export", help="Export your registered events to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. events.ics)")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings)
    coord = make_coordinator(settings)

    if args.command == "interactive":
        from eventhub.interactive import run_interactive

        asyncio.run(run_interactive(coord, username=args.user))
        raise SystemExit(0)

    if args.command in COMMANDS:
        raise SystemExit(asyncio.run(_run(args, coord)))

    raise SystemExit(2)
