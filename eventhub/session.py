"""
Session state container.

Everything a signed-in browsing session holds in memory: the user, the view
state, the catalog and ledger snapshots and the current notification.
reset() puts all of it back to defaults; it is what sign-out does.
"""

from __future__ import annotations

from typing import Optional

from eventhub.catalog import EventCatalog
from eventhub.filters import CatalogStats, catalog_stats, visible_events
from eventhub.ledger import RegistrationLedger
from eventhub.model import ALL_CATEGORIES, Event, User, View, ViewState, parse_category
from eventhub.notifications import Notifier
from eventhub.remote import RemoteService


class Session:
    def __init__(self, remote: RemoteService, notifier: Optional[Notifier] = None) -> None:
        self.catalog = EventCatalog(remote)
        self.ledger = RegistrationLedger(remote)
        self.notifier = notifier if notifier is not None else Notifier()
        self.user: Optional[User] = None
        self.state = ViewState()
        # bumped on every reset so late async results can tell they are stale
        self.generation = 0

    def reset(self) -> None:
        self.user = None
        self.catalog.clear()
        self.ledger.clear()
        self.notifier.reset()
        self.state = ViewState()
        self.generation += 1

    # view state

    def set_view(self, view: View | str) -> None:
        self.state.view = View(view)

    def set_category(self, category: str) -> None:
        self.state.category = ALL_CATEGORIES if category == ALL_CATEGORIES else parse_category(category)

    def set_query(self, query: str) -> None:
        self.state.query = query

    def begin_loading(self) -> None:
        self.state.pending_refreshes += 1
        self.state.loading = True

    def end_loading(self) -> None:
        self.state.pending_refreshes = max(0, self.state.pending_refreshes - 1)
        self.state.loading = self.state.pending_refreshes > 0

    # derived

    def visible_events(self) -> list[Event]:
        return visible_events(
            self.catalog.list(),
            self.ledger.ids(),
            self.state.view,
            self.state.category,
            self.state.query,
        )

    def stats(self) -> CatalogStats:
        return catalog_stats(self.catalog.list())

    def is_registered(self, event_id: str) -> bool:
        return self.ledger.contains(event_id)
