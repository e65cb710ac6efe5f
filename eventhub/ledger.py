"""
Registration ledger: the set of event ids the signed-in user is registered for.

Registrations are append-only from the client's point of view. There is no
unregister.
"""

from __future__ import annotations

import logging

from eventhub.errors import FetchError, WriteError
from eventhub.remote import RemoteService

logger = logging.getLogger(__name__)


class RegistrationLedger:
    def __init__(self, remote: RemoteService) -> None:
        self._remote = remote
        self._ids: frozenset[str] = frozenset()
        self._epoch = 0

    def ids(self) -> frozenset[str]:
        return self._ids

    def contains(self, event_id: str) -> bool:
        return event_id in self._ids

    def clear(self) -> None:
        self._ids = frozenset()
        self._epoch += 1

    async def list_for_user(self, user_id: str) -> set[str]:
        try:
            ids = await self._remote.get_user_registrations(user_id)
        except Exception as exc:
            logger.warning("Fetching registrations for %s failed: %s", user_id, exc)
            raise FetchError(f"Could not load registrations: {exc}") from exc
        return set(ids)

    async def refresh(self, user_id: str) -> frozenset[str]:
        """Replace the local id-set. The stale set is kept if the fetch fails."""
        epoch = self._epoch
        ids = await self.list_for_user(user_id)
        if epoch == self._epoch:
            self._ids = frozenset(ids)
        return self._ids

    async def register(self, user_id: str, event_id: str, form_fields: dict[str, str]) -> None:
        try:
            await self._remote.register_for_event(user_id, event_id, form_fields)
        except Exception as exc:
            logger.warning("Registering %s for %s failed: %s", user_id, event_id, exc)
            raise WriteError("register", str(exc)) from exc

    async def attendees(self, event_id: str) -> list[dict[str, str]]:
        """Everyone registered for `event_id` (the submitted forms). Nothing is cached."""
        try:
            return await self._remote.get_event_attendees(event_id)
        except Exception as exc:
            logger.warning("Fetching attendees of %s failed: %s", event_id, exc)
            raise FetchError(f"Could not load attendees: {exc}") from exc
