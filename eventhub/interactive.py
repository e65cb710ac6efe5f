from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from eventhub.cli import attendee_line, event_line
from eventhub.coordinator import MutationCoordinator, can_manage
from eventhub.errors import SignInError
from eventhub.export_ics import export_events_to_ics
from eventhub.filters import visible_events
from eventhub.model import ALL_CATEGORIES, Event, EventCategory, EventDraft, View, parse_category

console = Console()


def _println(msg: str = "") -> None:
    console.print(msg)


async def _prompt(msg: str) -> str:
    # input() blocks; run it in a thread so notification timers and
    # background refreshes keep running on the loop meanwhile
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, console.input, escape(msg))


async def run_interactive(coord: MutationCoordinator, username: Optional[str] = None) -> None:
    """
    Sign in, then run the menu loop until the user exits.
    Signing out returns to the sign-in prompt.
    """
    while True:
        name = username or (await _prompt("Username [blank = exit]: ")).strip()
        username = None
        if not name:
            _println("Bye.")
            return
        try:
            await coord.sign_in(name)
        except SignInError as exc:
            _println(f"[red]{escape(str(exc))}[/]")
            continue

        keep_going = await _menu_loop(coord)
        coord.sign_out()
        await coord.drain()
        if not keep_going:
            _println("Bye.")
            return


async def _menu_loop(coord: MutationCoordinator) -> bool:
    """
    Returns False when the user wants to quit, True after sign-out.
    """
    session = coord.session
    admin = can_manage(session.user)

    while True:
        _print_header(coord)
        _print_events(coord)

        lines = [
            "",
            "[1] Search",
            "[2] Category filter",
            "[3] Refresh",
        ]
        if admin:
            lines += [
                "[4] Create event",
                "[5] Edit event",
                "[6] Delete event",
                "[7] Clear all events",
                "[8] View attendees",
            ]
        else:
            lines += [
                "[4] Register for event",
                "[5] Toggle Dashboard / My Events",
                "[6] Export my events (.ics)",
            ]
        lines += ["[9] Sign out", "[0] Exit", "Select: "]
        choice = (await _prompt("\n".join(lines))).strip()

        if choice == "0":
            return False
        if choice == "9":
            return True

        if choice == "1":
            session.set_query((await _prompt("Search text [blank = clear]: ")).strip())
        elif choice == "2":
            await _flow_category(coord)
        elif choice == "3":
            await coord.refresh_all()
        elif admin and choice == "4":
            await _flow_save(coord, editing=None)
        elif admin and choice == "5":
            ev = await _pick_event(coord, "edit")
            if ev:
                await _flow_save(coord, editing=ev)
        elif admin and choice == "6":
            ev = await _pick_event(coord, "delete")
            if ev and (await _prompt(f"Remove '{ev.title}'? [y/N]: ")).strip().lower() == "y":
                await coord.delete_event(ev.id)
        elif admin and choice == "7":
            answer = await _prompt("WARNING: this deletes ALL events and cannot be undone. Type 'yes': ")
            if answer.strip().lower() == "yes":
                await coord.delete_all_events()
        elif admin and choice == "8":
            ev = await _pick_event(coord, "see attendees of")
            if ev:
                await _flow_attendees(coord, ev)
        elif not admin and choice == "4":
            await _flow_register(coord)
        elif not admin and choice == "5":
            session.set_view(View.DASHBOARD if session.state.view == View.MY_EVENTS else View.MY_EVENTS)
        elif not admin and choice == "6":
            await _flow_export(coord)
        else:
            _println("Invalid choice.")


def _print_header(coord: MutationCoordinator) -> None:
    session = coord.session
    user = session.user
    state = session.state

    _println("\n=== [bold]Event[cyan]Hub[/][/] ===")
    if user is not None:
        badge = " [bold red]ADMIN[/]" if user.is_admin else ""
        _println(f"Hello, {user.name}{badge}")

    if state.view == View.MY_EVENTS:
        _println("[bold]My Registrations[/] – Events you have signed up for.")
    elif user is not None and user.is_admin:
        _println("[bold]Event Management Dashboard[/] – Manage campus activities.")
    else:
        _println("[bold]Upcoming Events[/] – Discover what's happening on campus this week.")

    filters = f"Category: {state.category.value if isinstance(state.category, EventCategory) else state.category}"
    if state.query:
        filters += f" | Search: '{state.query}'"
    if state.loading:
        filters += " | loading..."
    _println(filters)

    if user is not None and user.is_admin and state.view == View.DASHBOARD:
        stats = session.stats()
        _println(
            f"Total events: [yellow]{stats.total_events}[/] | "
            f"Total attendees: [yellow]{stats.total_attendees}[/] | "
            f"Avg. attendance: [yellow]{stats.average_attendance}[/]"
        )

    if session.notifier.message:
        _println(f"[bold green]>> {escape(session.notifier.message)}[/]")


def _print_events(coord: MutationCoordinator) -> None:
    session = coord.session
    events = session.visible_events()
    if not events:
        if session.state.view == View.MY_EVENTS:
            _println("No events found. You haven't registered for any events yet.")
        elif can_manage(session.user):
            _println("No events found. Get started by creating a new event.")
        else:
            _println("No events found. Check back later for new events.")
        return

    table = Table(box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("When")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Where")
    table.add_column("Seats", justify="right")
    table.add_column("")
    for i, ev in enumerate(events, start=1):
        status = ""
        if session.is_registered(ev.id):
            status = "[green]registered[/]"
        elif ev.is_full:
            status = "[red]full[/]"
        table.add_row(
            str(i),
            f"{ev.date} {ev.time}".strip(),
            f"[bold cyan]{escape(ev.title)}[/]",
            ev.category.value,
            escape(ev.location),
            f"{ev.attendees}/{ev.capacity}",
            status,
        )
    console.print(table)


async def _pick_event(coord: MutationCoordinator, verb: str) -> Optional[Event]:
    events = coord.session.visible_events()
    if not events:
        _println("No events.")
        return None
    pick = (await _prompt(f"Enter number to {verb} [blank = cancel]: ")).strip()
    if not pick:
        return None
    if not pick.isdigit():
        _println("Not a number.")
        return None
    i = int(pick)
    if not (1 <= i <= len(events)):
        _println("Out of range.")
        return None
    return events[i - 1]


async def _flow_category(coord: MutationCoordinator) -> None:
    options = [ALL_CATEGORIES] + [c.value for c in EventCategory]
    for i, name in enumerate(options, start=1):
        _println(f"{i}) {name}")
    pick = (await _prompt("Choose category [blank = All]: ")).strip()
    if pick.isdigit() and 1 <= int(pick) <= len(options):
        coord.session.set_category(options[int(pick) - 1])
    else:
        coord.session.set_category(ALL_CATEGORIES)


async def _flow_save(coord: MutationCoordinator, editing: Optional[Event]) -> None:
    """
    Ask for every field. When editing, blank input keeps the current value.
    """
    base = editing.to_draft() if editing else None

    async def ask(label: str, current: str = "") -> str:
        hint = f" [{current}]" if current else ""
        answer = (await _prompt(f"{label}{hint}: ")).strip()
        return answer or current

    categories = [c.value for c in EventCategory]
    title = await ask("Title", base.title if base else "")
    date = await ask("Date (YYYY-MM-DD)", base.date if base else "")
    time = await ask("Time (HH:MM)", base.time if base else "")
    location = await ask("Location", base.location if base else "")
    category = await ask(f"Category ({', '.join(categories)})", base.category.value if base else "Academic")
    description = await ask("Description", base.description if base else "")
    organizer = await ask("Organizer", base.organizer if base else "")
    image_url = await ask("Image URL (blank = category default)", base.image_url if base else "")
    capacity = await ask("Capacity", str(base.capacity) if base else "50")

    try:
        draft = EventDraft(
            title=title,
            date=date,
            time=time,
            location=location,
            category=parse_category(category),
            description=description,
            organizer=organizer,
            image_url=image_url,
            capacity=int(capacity),
        )
        await coord.save_event(draft, editing=editing)
    except ValueError as exc:
        _println(f"[red]Invalid event: {escape(str(exc))}[/]")


async def _flow_register(coord: MutationCoordinator) -> None:
    ev = await _pick_event(coord, "register for")
    if ev is None:
        return
    if not coord.can_register(ev.id):
        _println(f"Already registered for '{ev.title}'.")
        return
    if ev.is_full:
        _println("[yellow]This event looks full; the organizer may still accept you.[/]")
    if (await _prompt(f"Register for '{ev.title}'? [Y/n]: ")).strip().lower() == "n":
        return
    await coord.register(ev.id)


async def _flow_export(coord: MutationCoordinator) -> None:
    session = coord.session
    events = visible_events(session.catalog.list(), session.ledger.ids(), View.MY_EVENTS, ALL_CATEGORIES, "")
    if not events:
        _println("No registered events.")
        return

    downloads = Path.home() / "Downloads"
    default_name = "eventhub.ics"

    out_in = (await _prompt(f"Please enter desired file name, default is [{default_name}]: ")).strip()
    out_path = downloads / out_in if out_in else downloads / default_name

    # enforce .ics extension
    if out_path.suffix.lower() != ".ics":
        out_path = out_path.with_suffix(".ics")

    n = export_events_to_ics(events, out_path)
    _println(f"\nExported {n} events.")
    _println(f"Saved to: {out_path.resolve()}")
    for ev in events:
        _println(f"  - {escape(event_line(ev))}")


async def _flow_attendees(coord: MutationCoordinator, ev: Event) -> None:
    attendees = await coord.load_attendees(ev.id)
    if attendees is None:
        return
    _println(f"\n[bold]{escape(ev.title)}[/] – {len(attendees)} registered, capacity {ev.capacity}")
    if not attendees:
        _println("No one has registered yet.")
        return
    for i, form in enumerate(attendees, start=1):
        _println(f"  {i}. {escape(attendee_line(form))}")
    await _prompt("Press Enter to go back ")
