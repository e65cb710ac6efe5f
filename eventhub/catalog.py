"""
Event catalog store.

Holds the local snapshot of all events. The snapshot is only ever replaced
as a whole (refresh, optimistic removal, rollback), never patched field by
field. Writes are forwarded to the remote store and never inserted
speculatively: ids and attendee counts are server-assigned.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from eventhub.errors import FetchError, WriteError
from eventhub.model import Event, EventDraft
from eventhub.remote import RemoteService

logger = logging.getLogger(__name__)


class EventCatalog:
    def __init__(self, remote: RemoteService) -> None:
        self._remote = remote
        self._events: list[Event] = []
        # bumped by clear(); fetches started before a clear are dropped
        self._epoch = 0

    def list(self) -> list[Event]:
        """Current snapshot (a new list; the Event objects are shared)."""
        return list(self._events)

    def get(self, event_id: str) -> Optional[Event]:
        for ev in self._events:
            if ev.id == event_id:
                return ev
        return None

    def replace(self, events: Iterable[Event]) -> None:
        self._events = list(events)

    def clear(self) -> None:
        self._events = []
        self._epoch += 1

    async def refresh(self) -> list[Event]:
        """
        Replace the snapshot with everything the remote store has.
        On failure the previous snapshot stays and FetchError is raised.
        """
        epoch = self._epoch
        try:
            events = await self._remote.get_events()
        except Exception as exc:
            logger.warning("Fetching events failed: %s", exc)
            raise FetchError(f"Could not load events: {exc}") from exc
        if epoch == self._epoch:
            self.replace(events)
        return self.list()

    async def create(self, draft: EventDraft) -> Event:
        try:
            return await self._remote.create_event(draft)
        except Exception as exc:
            logger.warning("Creating event %r failed: %s", draft.title, exc)
            raise WriteError("create", str(exc)) from exc

    async def update(self, event: Event) -> None:
        try:
            await self._remote.update_event(event)
        except Exception as exc:
            logger.warning("Updating event %s failed: %s", event.id, exc)
            raise WriteError("update", str(exc)) from exc

    async def delete_one(self, event_id: str) -> None:
        try:
            await self._remote.delete_event(event_id)
        except Exception as exc:
            logger.warning("Deleting event %s failed: %s", event_id, exc)
            raise WriteError("delete", str(exc)) from exc

    async def delete_all(self) -> None:
        try:
            await self._remote.delete_all_events()
        except Exception as exc:
            logger.warning("Deleting all events failed: %s", exc)
            raise WriteError("delete-all", str(exc)) from exc
