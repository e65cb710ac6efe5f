"""
View filtering.

Given the catalog, the user's registered ids and the view state, derive the
events that are visible. Pure functions only: same inputs, same output, no
hidden state.

Predicate (all three must hold):
    view == my-events  ->  event.id in registered_ids
    category == All    or  event.category == category
    query == ""        or  query in title/description (case-insensitive)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Collection, Iterable

from eventhub.model import ALL_CATEGORIES, Event, View


def _matches_query(event: Event, query: str) -> bool:
    q = query.lower()
    return q in event.title.lower() or q in event.description.lower()


def visible_events(
    catalog: Iterable[Event],
    registered_ids: Collection[str],
    view: View,
    category: str,
    query: str,
) -> list[Event]:
    """
    Return the visible subset of `catalog`, in catalog order.
    """
    out: list[Event] = []
    for ev in catalog:
        if view == View.MY_EVENTS and ev.id not in registered_ids:
            continue
        if category != ALL_CATEGORIES and ev.category != category:
            continue
        if query and not _matches_query(ev, query):
            continue
        out.append(ev)
    return out


@dataclass(frozen=True)
class CatalogStats:
    total_events: int
    total_attendees: int
    average_attendance: int


def catalog_stats(events: Collection[Event]) -> CatalogStats:
    """
    Numbers for the admin dashboard banner.
    Average is rounded half up (2.5 -> 3), 0 for no events.
    """
    total = sum(ev.attendees for ev in events)
    avg = math.floor(total / len(events) + 0.5) if events else 0
    return CatalogStats(total_events=len(events), total_attendees=total, average_attendance=avg)
