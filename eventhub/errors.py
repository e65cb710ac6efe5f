"""
Error taxonomy of the EventHub core.

Every remote failure is reported as exactly one of these, no matter what the
backend raised underneath (HTTP error, broken JSON file, simulated outage).
The original exception is kept as __cause__.
"""

from __future__ import annotations


class EventHubError(Exception):
    """Base class for all EventHub errors."""


class FetchError(EventHubError):
    """A read against the remote store failed. Local snapshots are left as they were."""


class WriteError(EventHubError):
    """A create/update/delete/register call against the remote store failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class SignInError(EventHubError):
    """The identity provider did not accept the given username."""
