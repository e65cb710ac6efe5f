"""
Mutation coordinator.

The only place that sequences local state changes with remote calls. Each
mutation kind has a policy (see POLICIES):

- delete      : optimistic. The event disappears locally right away; if the
                remote call fails the exact previous snapshot comes back.
                A background refresh follows a success.
- create,
  update,
  delete-all  : pessimistic. Nothing changes locally until the remote store
                confirms; then the catalog is refreshed.
- register    : pessimistic. On success both catalog (attendee count) and
                ledger (membership) are refreshed.

Remote failures never escape from here: each one turns into a notification.
Refreshes that follow a successful write are best-effort; a failure there is
logged, not shown, so every mutation ends in exactly one terminal message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from eventhub.errors import FetchError, SignInError, WriteError
from eventhub.model import Event, EventCategory, EventDraft, User, View
from eventhub.remote import IdentityProvider
from eventhub.session import Session

logger = logging.getLogger(__name__)


class Mutation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    DELETE_ALL = "delete-all"
    REGISTER = "register"


@dataclass(frozen=True)
class MutationPolicy:
    optimistic: bool
    refresh_catalog: bool
    refresh_ledger: bool = False
    # refresh in a background task instead of before returning
    background: bool = False


POLICIES: dict[Mutation, MutationPolicy] = {
    Mutation.DELETE: MutationPolicy(optimistic=True, refresh_catalog=True, background=True),
    Mutation.CREATE: MutationPolicy(optimistic=False, refresh_catalog=True),
    Mutation.UPDATE: MutationPolicy(optimistic=False, refresh_catalog=True),
    Mutation.DELETE_ALL: MutationPolicy(optimistic=False, refresh_catalog=True),
    Mutation.REGISTER: MutationPolicy(optimistic=False, refresh_catalog=True, refresh_ledger=True),
}


_UNSPLASH = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&q=80&w=1000"

CATEGORY_IMAGES: dict[EventCategory, str] = {
    EventCategory.ACADEMIC: _UNSPLASH.format("1523050854058-8df90110c9f1"),
    EventCategory.SOCIAL: _UNSPLASH.format("1523301386673-989097b4a149"),
    EventCategory.SPORTS: _UNSPLASH.format("1461896836934-ffe607ba8211"),
    EventCategory.CULTURAL: _UNSPLASH.format("1514525253440-b393452e8d03"),
    EventCategory.WORKSHOP: _UNSPLASH.format("1552664730-d307ca884978"),
    EventCategory.CAREER: _UNSPLASH.format("1454165804606-c3d57bc86b40"),
}
FALLBACK_IMAGE = _UNSPLASH.format("1541339907198-e08756dedf3f")

SIGN_IN_UNAVAILABLE = "Could not reach the server. Please try again."


def category_image(category: EventCategory) -> str:
    return CATEGORY_IMAGES.get(category, FALLBACK_IMAGE)


def with_default_image(draft: EventDraft) -> EventDraft:
    """Fill a blank image URL with the category's default picture."""
    image = draft.image_url.strip() or category_image(draft.category)
    return replace(draft, image_url=image)


def can_manage(user: Optional[User]) -> bool:
    """Admin-only entry points (create, update, delete, clear all) are exposed only if this is True."""
    return user is not None and user.is_admin


def default_registration_form(user: User) -> dict[str, str]:
    """Registration form fields, pre-filled from the user's profile."""
    form = {"name": user.name, "username": user.username}
    if user.usn:
        form["usn"] = user.usn
    if user.department:
        form["department"] = user.department
    return form


class MutationCoordinator:
    def __init__(self, session: Session, identity: IdentityProvider) -> None:
        self.session = session
        self.identity = identity
        self._background: set[asyncio.Task] = set()

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    def _notify(self, message: str) -> None:
        self.session.notifier.show(message)

    # ------------------------------------------------------------------
    # Sign in / out
    # ------------------------------------------------------------------

    async def sign_in(self, username: str, load: bool = True) -> User:
        """
        Ask the identity provider for the user, then (unless load=False) load
        catalog and ledger. SignInError propagates so the caller can ask again;
        an unreachable identity provider is reported as SignInError too.
        """
        try:
            user = await self.identity.sign_in(username)
        except SignInError:
            raise
        except Exception as exc:
            logger.warning("Sign-in for %r failed: %s", username, exc)
            self._notify(SIGN_IN_UNAVAILABLE)
            raise SignInError(SIGN_IN_UNAVAILABLE) from exc
        self.session.reset()
        self.session.user = user
        if user.is_admin:
            self.session.set_view(View.DASHBOARD)
        self._notify(f"Welcome back, {user.name}!")
        if load:
            await self.refresh_all()
        return user

    def sign_out(self) -> None:
        self.session.reset()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh_events(self) -> bool:
        generation = self.session.generation
        self.session.begin_loading()
        try:
            await self.session.catalog.refresh()
            return True
        except FetchError:
            if generation == self.session.generation:
                self._notify("Failed to load events from server")
            return False
        finally:
            if generation == self.session.generation:
                self.session.end_loading()

    async def refresh_registrations(self) -> bool:
        user = self.session.user
        if user is None:
            return False
        try:
            await self.session.ledger.refresh(user.id)
            return True
        except FetchError as exc:
            # stale membership is kept; nothing shown to the user
            logger.warning("Keeping previous registrations: %s", exc)
            return False

    async def refresh_all(self) -> bool:
        events_ok, regs_ok = await asyncio.gather(self.refresh_events(), self.refresh_registrations())
        return events_ok and regs_ok

    async def load_attendees(self, event_id: str) -> Optional[list[dict[str, str]]]:
        """
        Registration forms for one event (admins only). Returns None when the
        user may not see them or the fetch failed.
        """
        if not can_manage(self.session.user):
            return None
        generation = self.session.generation
        try:
            return await self.session.ledger.attendees(event_id)
        except FetchError:
            if generation == self.session.generation:
                self._notify("Failed to load attendees.")
            return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def save_event(self, draft: EventDraft, editing: Optional[Event] = None) -> bool:
        """
        Create a new event, or update `editing` with the draft's fields.
        Raises ValueError for an invalid draft before anything is sent.
        """
        draft.validate()
        final = with_default_image(draft)
        if editing is not None:
            updated = editing.with_draft(final)
            return await self._execute(
                Mutation.UPDATE,
                lambda: self.session.catalog.update(updated),
                success=f'Event "{final.title}" updated successfully!',
                failure="Failed to update event.",
            )
        return await self._execute(
            Mutation.CREATE,
            lambda: self.session.catalog.create(final),
            success=f'Event "{final.title}" created successfully!',
            failure="Failed to create event.",
        )

    async def delete_event(self, event_id: str) -> bool:
        catalog = self.session.catalog
        return await self._execute(
            Mutation.DELETE,
            lambda: catalog.delete_one(event_id),
            success="Event deleted.",
            failure="Failed to delete event. Please try again.",
            apply=lambda: catalog.replace(e for e in catalog.list() if e.id != event_id),
        )

    async def delete_all_events(self) -> bool:
        return await self._execute(
            Mutation.DELETE_ALL,
            self.session.catalog.delete_all,
            success="All events have been deleted.",
            failure="Failed to delete all events.",
        )

    def can_register(self, event_id: str) -> bool:
        return self.session.user is not None and not self.session.is_registered(event_id)

    async def register(self, event_id: str, form_fields: Optional[dict[str, str]] = None) -> bool:
        """
        Register the signed-in user. Refused without a remote call when the
        ledger already holds the event id.
        """
        user = self.session.user
        if user is None or not self.can_register(event_id):
            logger.info("Register for %s refused (not signed in or already registered)", event_id)
            return False
        fields = form_fields if form_fields is not None else default_registration_form(user)
        return await self._execute(
            Mutation.REGISTER,
            lambda: self.session.ledger.register(user.id, event_id, fields),
            success="Successfully registered!",
            failure="Registration failed. Please try again.",
        )

    async def drain(self) -> None:
        """Wait for background refreshes started by earlier mutations."""
        while self._background:
            await asyncio.gather(*list(self._background))

    # ------------------------------------------------------------------
    # Policy dispatch
    # ------------------------------------------------------------------

    async def _execute(
        self,
        kind: Mutation,
        call: Callable[[], Awaitable[object]],
        success: str,
        failure: str,
        apply: Optional[Callable[[], None]] = None,
    ) -> bool:
        policy = POLICIES[kind]
        generation = self.session.generation

        previous: Optional[list[Event]] = None
        if policy.optimistic:
            previous = self.session.catalog.list()
            if apply is not None:
                apply()
            self._notify(success)

        try:
            await call()
        except WriteError as exc:
            logger.warning("%s failed: %s", kind.value, exc)
            if generation != self.session.generation:
                # signed out meanwhile; nothing left to roll back or tell
                return False
            if previous is not None:
                self.session.catalog.replace(previous)
            self._notify(failure)
            return False

        if generation != self.session.generation:
            return True

        if policy.background:
            task = asyncio.create_task(self._reconcile(policy))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
        else:
            await self._reconcile(policy)

        if not policy.optimistic:
            self._notify(success)
        return True

    async def _reconcile(self, policy: MutationPolicy) -> None:
        """Best-effort refresh after a confirmed write."""
        jobs = []
        if policy.refresh_catalog:
            jobs.append(self.session.catalog.refresh())
        if policy.refresh_ledger and self.session.user is not None:
            jobs.append(self.session.ledger.refresh(self.session.user.id))
        for result in await asyncio.gather(*jobs, return_exceptions=True):
            if isinstance(result, FetchError):
                logger.warning("Refresh after write failed (ignored): %s", result)
            elif isinstance(result, BaseException):
                raise result
