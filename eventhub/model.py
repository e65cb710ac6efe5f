"""
Central data model definitions used across the project.

This module defines the canonical structure of Event, EventDraft and User objects so that:
- all modules share the same field names
- the wire mapping to the remote store (camelCase keys) lives in one place
- role and view values are plain enumerations, not class hierarchies
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Optional


class EventCategory(str, Enum):
    ACADEMIC = "Academic"
    SOCIAL = "Social"
    SPORTS = "Sports"
    CULTURAL = "Cultural"
    WORKSHOP = "Workshop"
    CAREER = "Career"


# Filter value meaning "no category constraint". Not a category itself.
ALL_CATEGORIES = "All"


class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


class View(str, Enum):
    DASHBOARD = "dashboard"
    MY_EVENTS = "my-events"


def parse_category(value: Any) -> EventCategory:
    """
    Accept 'Academic', 'academic' or an EventCategory. Raises ValueError otherwise.
    """
    if isinstance(value, EventCategory):
        return value
    text = str(value or "").strip()
    for cat in EventCategory:
        if cat.value.lower() == text.lower():
            return cat
    raise ValueError(f"Unknown event category: {value!r}")


@dataclass
class EventDraft:
    """
    Everything an admin fills in when creating an event.

    id and attendees are missing on purpose: the remote store assigns both.
    """

    title: str
    date: str
    time: str
    location: str
    category: EventCategory
    description: str = ""
    organizer: str = ""
    image_url: str = ""
    capacity: int = 50

    def validate(self) -> None:
        if not self.title.strip():
            raise ValueError("Event title must not be empty")
        if self.capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {self.capacity}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "category": self.category.value,
            "description": self.description,
            "organizer": self.organizer,
            "imageUrl": self.image_url,
            "capacity": self.capacity,
        }


@dataclass
class Event:
    """
    One event as stored by the remote store.

    `id` never changes for the lifetime of the event and `attendees` is only
    ever changed by the remote store (as a side effect of registration).
    """

    id: str
    title: str
    date: str
    time: str
    location: str
    category: EventCategory
    description: str
    organizer: str
    image_url: str
    attendees: int
    capacity: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        event_id = str(data.get("id", "")).strip()
        if not event_id:
            raise ValueError("Event without id")
        return cls(
            id=event_id,
            title=str(data.get("title", "") or ""),
            date=str(data.get("date", "") or ""),
            time=str(data.get("time", "") or ""),
            location=str(data.get("location", "") or ""),
            category=parse_category(data.get("category")),
            description=str(data.get("description", "") or ""),
            organizer=str(data.get("organizer", "") or ""),
            image_url=str(data.get("imageUrl", "") or ""),
            attendees=max(0, int(data.get("attendees", 0) or 0)),
            capacity=int(data.get("capacity", 0) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        out = {"id": self.id}
        out.update(self.to_draft().to_dict())
        out["attendees"] = self.attendees
        return out

    def to_draft(self) -> EventDraft:
        names = {f.name for f in fields(EventDraft)}
        return EventDraft(**{k: v for k, v in vars(self).items() if k in names})

    def with_draft(self, draft: EventDraft) -> Event:
        """
        Return a copy with every editable field taken from `draft`.
        id and attendees are kept.
        """
        return replace(self, **vars(draft))

    @property
    def is_full(self) -> bool:
        return self.attendees >= self.capacity


@dataclass
class User:
    id: str
    name: str
    username: str
    role: Role
    avatar: Optional[str] = None
    usn: Optional[str] = None
    department: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "") or ""),
            username=str(data.get("username", "") or ""),
            role=Role(str(data.get("role", "student")).strip().lower()),
            avatar=data.get("avatar"),
            usn=data.get("usn"),
            department=data.get("department"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "name": self.name, "username": self.username, "role": self.role.value}
        for key in ("avatar", "usn", "department"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass
class ViewState:
    """
    Ephemeral per-session UI state. Never persisted.
    """

    view: View = View.DASHBOARD
    category: str = ALL_CATEGORIES
    query: str = ""
    loading: bool = False
    # in-flight catalog refreshes; `loading` mirrors "> 0"
    pending_refreshes: int = field(default=0, repr=False)
