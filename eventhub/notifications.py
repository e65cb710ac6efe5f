"""
Transient status messages ("Event deleted.", "Failed to load events ...").

One message at a time, last write wins. Each message clears itself after a
fixed delay unless replaced or cleared first. Timers run on the asyncio
event loop that is current when show() is called.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 3.0


class Notifier:
    def __init__(self, delay: float = DEFAULT_DELAY_SECONDS) -> None:
        self.delay = delay
        self.message: Optional[str] = None
        self.history: list[str] = []
        self._timer: Optional[asyncio.TimerHandle] = None

    def show(self, message: str) -> None:
        self._cancel_timer()
        self.message = message
        self.history.append(message)
        logger.info("notify: %s", message)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop (plain synchronous caller): message stays until cleared
            loop = None
        if loop is not None:
            self._timer = loop.call_later(self.delay, self._expire)

    def clear(self) -> None:
        self._cancel_timer()
        self.message = None

    def reset(self) -> None:
        self.clear()
        self.history = []

    def _expire(self) -> None:
        self._timer = None
        self.message = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
