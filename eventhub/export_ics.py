"""
iCalendar (.ics) export.

We convert the events a user registered for into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from eventhub.model import Event


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dtstart(date_yyyy_mm_dd: str, time_hh_mm: str) -> str:
    """
    Return the DTSTART property for a date and an optional 'HH:MM' time.

    Events without a usable time become all-day entries.
    Raises ValueError if the date itself is invalid.
    """
    day = datetime.strptime(date_yyyy_mm_dd.strip(), "%Y-%m-%d")
    try:
        dt = datetime.strptime(f"{date_yyyy_mm_dd.strip()} {time_hh_mm.strip()}", "%Y-%m-%d %H:%M")
    except ValueError:
        return f"DTSTART;VALUE=DATE:{day.strftime('%Y%m%d')}"
    return f"DTSTART:{dt.strftime('%Y%m%dT%H%M00')}"


def export_events_to_ics(events: Iterable[Event], out_path: str | Path) -> int:
    """
    Export events to an .ics file. Returns number of exported events.
    Events with an unparseable date are skipped.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//EventHub//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for ev in events:
        try:
            dtstart = _dtstart(ev.date, ev.time)
        except ValueError:
            continue

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(ev.id)}@eventhub")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.append(dtstart)
        lines.append(f"SUMMARY:{_ics_escape(ev.title.strip() or 'EventHub Event')}")
        if ev.location.strip():
            lines.append(f"LOCATION:{_ics_escape(ev.location.strip())}")
        if ev.description.strip():
            lines.append(f"DESCRIPTION:{_ics_escape(ev.description.strip())}")
        lines.append(f"CATEGORIES:{_ics_escape(ev.category.value)}")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return count
