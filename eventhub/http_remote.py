"""Client for an EventHub REST backend."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import requests

from eventhub.errors import FetchError, SignInError
from eventhub.model import Event, EventDraft, User
from eventhub.remote import IdentityProvider, RemoteService

logger = logging.getLogger(__name__)


class HttpRemote(RemoteService, IdentityProvider):
    """
    REST endpoints used:

        GET    /events
        POST   /events
        PUT    /events/<id>
        DELETE /events/<id>
        DELETE /events
        GET    /users/<user id>/registrations
        GET    /events/<id>/registrations
        POST   /events/<id>/registrations
        POST   /auth/login

    requests is blocking, so every call runs in the loop's default
    executor and the event loop stays responsive. Sign-in failures other
    than an unknown user come back as FetchError.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _make_headers(self) -> dict[str, str]:
        """Return headers for API requests, including the auth token if set."""
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: Any | None = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.info("%s %s", method.upper(), url)
        if payload is not None:
            logger.info("Payload: %s", payload)
        resp = requests.request(method, url, json=payload, headers=self._make_headers(), timeout=self.timeout)
        resp.raise_for_status()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def _call(self, method: str, path: str, payload: Any | None = None) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._request, method, path, payload)

    async def get_events(self) -> list[Event]:
        data = await self._call("get", "/events")
        return [Event.from_dict(raw) for raw in data or []]

    async def create_event(self, draft: EventDraft) -> Event:
        data = await self._call("post", "/events", draft.to_dict())
        return Event.from_dict(data)

    async def update_event(self, event: Event) -> None:
        await self._call("put", f"/events/{event.id}", event.to_dict())

    async def delete_event(self, event_id: str) -> None:
        await self._call("delete", f"/events/{event_id}")

    async def delete_all_events(self) -> None:
        await self._call("delete", "/events")

    async def get_user_registrations(self, user_id: str) -> list[str]:
        data = await self._call("get", f"/users/{user_id}/registrations")
        return [str(x) for x in data or []]

    async def register_for_event(self, user_id: str, event_id: str, form_fields: dict[str, str]) -> None:
        await self._call("post", f"/events/{event_id}/registrations", {"userId": user_id, **form_fields})

    async def get_event_attendees(self, event_id: str) -> list[dict[str, str]]:
        data = await self._call("get", f"/events/{event_id}/registrations")
        return [{str(k): str(v) for k, v in raw.items()} for raw in data or []]

    async def sign_in(self, username: str) -> User:
        try:
            data = await self._call("post", "/auth/login", {"username": username})
        except requests.HTTPError as exc:
            if exc.response is not None and exc.response.status_code in (401, 403, 404):
                raise SignInError(f"Unknown user: {username!r}") from exc
            logger.warning("Sign-in request failed: %s", exc)
            raise FetchError(f"Sign-in service error: {exc}") from exc
        except requests.RequestException as exc:
            logger.warning("Sign-in service unreachable: %s", exc)
            raise FetchError(f"Sign-in service unreachable: {exc}") from exc
        return User.from_dict(data)
