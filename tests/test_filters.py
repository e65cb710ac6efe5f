"""
Unit tests for view filtering.

Predicate used here (all must hold):
- my-events view only shows registered events
- category "All" imposes nothing, otherwise exact match
- search is case-insensitive on title OR description
Catalog order is always preserved.
"""

import unittest

from eventhub.filters import catalog_stats, visible_events
from eventhub.model import ALL_CATEGORIES, Event, EventCategory, View


def _event(event_id: str, title: str, category: EventCategory, description: str = "", attendees: int = 0) -> Event:
    return Event(
        id=event_id,
        title=title,
        date="2026-03-01",
        time="18:00",
        location="Main Hall",
        category=category,
        description=description,
        organizer="Student Council",
        image_url="",
        attendees=attendees,
        capacity=100,
    )


CATALOG = [
    _event("e1", "Tech Talk", EventCategory.ACADEMIC, "Cloud computing basics"),
    _event("e2", "Football Finals", EventCategory.SPORTS, "Inter-college match"),
    _event("e3", "Resume Clinic", EventCategory.CAREER, "Bring your CV, we talk TECH jobs"),
    _event("e4", "Dance Night", EventCategory.CULTURAL, "Music and food"),
]


class TestVisibleEvents(unittest.TestCase):
    def test_defaults_return_whole_catalog_in_order(self) -> None:
        out = visible_events(CATALOG, {"e2"}, View.DASHBOARD, ALL_CATEGORIES, "")
        self.assertEqual(out, CATALOG)

    def test_my_events_keeps_only_registered_in_catalog_order(self) -> None:
        out = visible_events(CATALOG, {"e4", "e1"}, View.MY_EVENTS, ALL_CATEGORIES, "")
        self.assertEqual([e.id for e in out], ["e1", "e4"])

    def test_my_events_with_no_registrations_is_empty(self) -> None:
        self.assertEqual(visible_events(CATALOG, set(), View.MY_EVENTS, ALL_CATEGORIES, ""), [])

    def test_search_is_case_insensitive(self) -> None:
        for query in ("tech", "TECH", "Tech"):
            out = visible_events(CATALOG, set(), View.DASHBOARD, ALL_CATEGORIES, query)
            # e1 matches on title, e3 on description
            self.assertEqual([e.id for e in out], ["e1", "e3"], query)

    def test_category_is_exact_match(self) -> None:
        out = visible_events(CATALOG, set(), View.DASHBOARD, EventCategory.SPORTS, "")
        self.assertEqual([e.id for e in out], ["e2"])

        out = visible_events(CATALOG, set(), View.DASHBOARD, "Sports", "")
        self.assertEqual([e.id for e in out], ["e2"])

    def test_all_clauses_must_hold(self) -> None:
        out = visible_events(CATALOG, {"e1", "e2"}, View.MY_EVENTS, EventCategory.ACADEMIC, "cloud")
        self.assertEqual([e.id for e in out], ["e1"])

        out = visible_events(CATALOG, {"e2"}, View.MY_EVENTS, EventCategory.ACADEMIC, "")
        self.assertEqual(out, [])

    def test_input_is_not_modified(self) -> None:
        catalog = list(CATALOG)
        visible_events(catalog, {"e1"}, View.MY_EVENTS, EventCategory.ACADEMIC, "x")
        self.assertEqual(catalog, CATALOG)


class TestCatalogStats(unittest.TestCase):
    def test_empty_catalog(self) -> None:
        stats = catalog_stats([])
        self.assertEqual((stats.total_events, stats.total_attendees, stats.average_attendance), (0, 0, 0))

    def test_average_rounds_half_up(self) -> None:
        events = [
            _event("a", "A", EventCategory.SOCIAL, attendees=2),
            _event("b", "B", EventCategory.SOCIAL, attendees=3),
        ]
        stats = catalog_stats(events)
        self.assertEqual(stats.total_events, 2)
        self.assertEqual(stats.total_attendees, 5)
        self.assertEqual(stats.average_attendance, 3)


if __name__ == "__main__":
    unittest.main()
