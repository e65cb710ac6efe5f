"""
Remote collaborator contract plus an in-process backend.

The core never talks to a database or web service directly. It talks to a
RemoteService (events and registrations) and an IdentityProvider (who is
signed in). Backends:

- MemoryRemote   : everything in process memory (tests, demos)
- JsonFileRemote : MemoryRemote persisted to a JSON file (see storage.py)
- HttpRemote     : REST service over HTTP (see http_remote.py)
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from eventhub.errors import SignInError
from eventhub.model import Event, EventDraft, Role, User

logger = logging.getLogger(__name__)


class RemoteService(ABC):
    """Events and registrations, as seen by the client."""

    @abstractmethod
    async def get_events(self) -> list[Event]:
        ...

    @abstractmethod
    async def create_event(self, draft: EventDraft) -> Event:
        """Store a new event. The backend assigns id and sets attendees to 0."""
        ...

    @abstractmethod
    async def update_event(self, event: Event) -> None:
        """Full replacement of the event with the same id."""
        ...

    @abstractmethod
    async def delete_event(self, event_id: str) -> None:
        ...

    @abstractmethod
    async def delete_all_events(self) -> None:
        ...

    @abstractmethod
    async def get_user_registrations(self, user_id: str) -> list[str]:
        ...

    @abstractmethod
    async def register_for_event(self, user_id: str, event_id: str, form_fields: dict[str, str]) -> None:
        """Register and bump the event's attendee count (visible on the next get_events)."""
        ...

    @abstractmethod
    async def get_event_attendees(self, event_id: str) -> list[dict[str, str]]:
        """Registration forms submitted for `event_id`, oldest first."""
        ...


class IdentityProvider(ABC):
    @abstractmethod
    async def sign_in(self, username: str) -> User:
        """Return the user for `username`. Raises SignInError if unknown."""
        ...


class RemoteUnavailable(Exception):
    """Raised by MemoryRemote when a failure is injected for an operation."""


DEFAULT_USERS: tuple[User, ...] = (
    User(id="u-admin", name="Campus Admin", username="admin", role=Role.ADMIN, avatar="CA"),
    User(
        id="u-student",
        name="Student User",
        username="student",
        role=Role.STUDENT,
        avatar="SU",
        usn="1XX21CS001",
        department="Computer Science",
    ),
)


class MemoryRemote(RemoteService, IdentityProvider):
    """
    In-process backend.

    `latency` simulates a slow network (seconds per call). `fail_on` holds the
    names of RemoteService methods that should raise RemoteUnavailable, which
    is how tests simulate partial failure.
    """

    def __init__(
        self,
        events: Iterable[Event] = (),
        users: Iterable[User] = DEFAULT_USERS,
        latency: float = 0.0,
    ) -> None:
        self.events: list[Event] = [copy.copy(e) for e in events]
        # usernames are matched case-insensitively
        self.users: dict[str, User] = {u.username.strip().lower(): u for u in users}
        self.registrations: dict[str, list[str]] = {}
        self.form_submissions: list[dict[str, str]] = []
        self.latency = latency
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self.latency:
            await asyncio.sleep(self.latency)
        else:
            # still a suspension point, like a real network call
            await asyncio.sleep(0)
        if operation in self.fail_on:
            raise RemoteUnavailable(f"simulated failure in {operation}")

    def _changed(self) -> None:
        """Hook for subclasses that persist state after every write."""

    def _snapshot(self) -> tuple[list[Event], dict[str, list[str]], list[dict[str, str]]]:
        return (
            [copy.copy(e) for e in self.events],
            {uid: list(ids) for uid, ids in self.registrations.items()},
            [dict(s) for s in self.form_submissions],
        )

    def _commit(self, before: tuple[list[Event], dict[str, list[str]], list[dict[str, str]]]) -> None:
        """
        Persist the state after a write. If that fails the state taken in
        `before` comes back and the error propagates, so a write that is
        reported as failed has really not happened.
        """
        try:
            self._changed()
        except Exception:
            self.events, self.registrations, self.form_submissions = before
            raise

    def _find(self, event_id: str) -> Optional[Event]:
        for ev in self.events:
            if ev.id == event_id:
                return ev
        return None

    # RemoteService

    async def get_events(self) -> list[Event]:
        await self._enter("get_events")
        # hand out copies so callers can never mutate server state
        return [copy.copy(e) for e in self.events]

    async def create_event(self, draft: EventDraft) -> Event:
        await self._enter("create_event")
        before = self._snapshot()
        ev = Event(id=uuid.uuid4().hex, attendees=0, **vars(draft))
        self.events.append(ev)
        self._commit(before)
        logger.info("Created event %s (%s)", ev.id, ev.title)
        return copy.copy(ev)

    async def update_event(self, event: Event) -> None:
        await self._enter("update_event")
        for i, ev in enumerate(self.events):
            if ev.id == event.id:
                before = self._snapshot()
                updated = copy.copy(event)
                # attendees stay server-owned
                updated.attendees = ev.attendees
                self.events[i] = updated
                self._commit(before)
                return
        raise KeyError(f"No event with id {event.id!r}")

    async def delete_event(self, event_id: str) -> None:
        await self._enter("delete_event")
        if self._find(event_id) is None:
            raise KeyError(f"No event with id {event_id!r}")
        before = self._snapshot()
        self.events = [e for e in self.events if e.id != event_id]
        self._commit(before)

    async def delete_all_events(self) -> None:
        await self._enter("delete_all_events")
        before = self._snapshot()
        self.events = []
        self._commit(before)

    async def get_user_registrations(self, user_id: str) -> list[str]:
        await self._enter("get_user_registrations")
        return list(self.registrations.get(user_id, []))

    async def register_for_event(self, user_id: str, event_id: str, form_fields: dict[str, str]) -> None:
        await self._enter("register_for_event")
        ev = self._find(event_id)
        if ev is None:
            raise KeyError(f"No event with id {event_id!r}")
        if event_id in self.registrations.get(user_id, []):
            raise ValueError(f"User {user_id!r} is already registered for {event_id!r}")
        if ev.is_full:
            raise ValueError(f"Event {event_id!r} is full")
        before = self._snapshot()
        self.registrations.setdefault(user_id, []).append(event_id)
        ev.attendees += 1
        self.form_submissions.append({**form_fields, "userId": user_id, "eventId": event_id})
        self._commit(before)

    async def get_event_attendees(self, event_id: str) -> list[dict[str, str]]:
        await self._enter("get_event_attendees")
        return [dict(s) for s in self.form_submissions if s.get("eventId") == event_id]

    # IdentityProvider

    async def sign_in(self, username: str) -> User:
        await asyncio.sleep(0)
        user = self.users.get(username.strip().lower())
        if user is None:
            raise SignInError(f"Unknown user: {username!r}")
        return user
