"""
File-backed remote store.

This module manages one JSON file (by default):

    data/eventhub.json

with the schema

    {
      "events": [ {event}, ... ],
      "registrations": { "<user id>": ["<event id>", ...] },
      "submissions": [ {"userId": ..., "eventId": ..., <form fields>}, ... ],
      "users": [ {user}, ... ]
    }

It lets the whole application run on a single machine without a server:
JsonFileRemote behaves exactly like MemoryRemote and rewrites the file after
every successful write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from eventhub.model import Event, User
from eventhub.remote import DEFAULT_USERS, MemoryRemote

logger = logging.getLogger(__name__)


def default_data_path() -> Path:
    """
    Return the default path of eventhub.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "eventhub.json"


def load_store(path: str | Path) -> dict[str, Any]:
    """
    Load the raw store file.

    Returns an empty store if the file does not exist or is invalid.
    Broken entries are skipped one by one instead of discarding the whole file.
    """
    store_path = Path(path)
    empty: dict[str, Any] = {"events": [], "registrations": {}, "submissions": [], "users": []}

    # First run: file does not exist yet
    if not store_path.exists():
        return empty

    try:
        data = json.loads(store_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable store %s: %s", store_path, exc)
        return empty
    if not isinstance(data, dict):
        return empty

    events: list[Event] = []
    for raw in data.get("events", []) if isinstance(data.get("events"), list) else []:
        try:
            events.append(Event.from_dict(raw))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed event entry: %r", raw)

    users: list[User] = []
    for raw in data.get("users", []) if isinstance(data.get("users"), list) else []:
        try:
            users.append(User.from_dict(raw))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed user entry: %r", raw)

    registrations: dict[str, list[str]] = {}
    raw_regs = data.get("registrations", {})
    if isinstance(raw_regs, dict):
        for user_id, ids in raw_regs.items():
            if isinstance(ids, list):
                registrations[str(user_id)] = [str(x) for x in ids if isinstance(x, str) and x.strip()]

    submissions: list[dict[str, str]] = []
    for raw in data.get("submissions", []) if isinstance(data.get("submissions"), list) else []:
        if isinstance(raw, dict) and isinstance(raw.get("eventId"), str):
            submissions.append({str(k): str(v) for k, v in raw.items()})
        else:
            logger.warning("Skipping malformed submission entry: %r", raw)

    return {"events": events, "registrations": registrations, "submissions": submissions, "users": users}


def save_store(remote: MemoryRemote, path: str | Path) -> None:
    """
    Write the full state of `remote` to `path`.

    Creates parent directories if needed. The data goes to a temporary file
    next to `path` first and is then moved over it, so the store is either
    the old or the new version, never half written.
    """
    store_path = Path(path)
    store_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "events": [e.to_dict() for e in remote.events],
        "registrations": {uid: list(ids) for uid, ids in sorted(remote.registrations.items())},
        "submissions": [dict(s) for s in remote.form_submissions],
        "users": [u.to_dict() for u in remote.users.values()],
    }
    tmp_path = store_path.with_name(store_path.name + ".tmp")
    tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(store_path)


class JsonFileRemote(MemoryRemote):
    """MemoryRemote whose state lives in a JSON file between runs."""

    def __init__(self, path: str | Path | None = None, latency: float = 0.0) -> None:
        self.path = Path(path) if path is not None else default_data_path()
        data = load_store(self.path)
        super().__init__(events=data["events"], users=data["users"] or DEFAULT_USERS, latency=latency)
        self.registrations = data["registrations"]
        self.form_submissions = data["submissions"]

    def _changed(self) -> None:
        save_store(self, self.path)
