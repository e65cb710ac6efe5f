"""
Unit tests for the notification channel.

Contract:
- a shown message is present immediately and gone after the delay
- a new message replaces the old one and restarts the timer
- clear() empties the message and cancels the pending timer
"""

import asyncio
import unittest

from eventhub.notifications import DEFAULT_DELAY_SECONDS, Notifier


class TestNotifier(unittest.IsolatedAsyncioTestCase):
    async def test_message_clears_itself(self) -> None:
        notifier = Notifier(delay=0.05)
        notifier.show("Event deleted.")
        self.assertEqual(notifier.message, "Event deleted.")

        await asyncio.sleep(0.15)

        self.assertIsNone(notifier.message)

    async def test_new_message_resets_timer(self) -> None:
        notifier = Notifier(delay=0.2)
        notifier.show("first")
        await asyncio.sleep(0.15)
        notifier.show("second")

        # past the first message's expiry, still inside the second's
        await asyncio.sleep(0.1)
        self.assertEqual(notifier.message, "second")

        await asyncio.sleep(0.2)
        self.assertIsNone(notifier.message)
        self.assertEqual(notifier.history, ["first", "second"])

    async def test_clear_cancels_timer(self) -> None:
        notifier = Notifier(delay=0.05)
        notifier.show("bye")
        notifier.clear()
        self.assertIsNone(notifier.message)
        self.assertIsNone(notifier._timer)

        # a message shown after the clear is not cut short by the old timer
        notifier.delay = 0.2
        notifier.show("hello")
        await asyncio.sleep(0.1)
        self.assertEqual(notifier.message, "hello")

    async def test_reset_forgets_history(self) -> None:
        notifier = Notifier()
        notifier.show("a")
        notifier.reset()
        self.assertEqual(notifier.history, [])
        self.assertIsNone(notifier.message)


class TestNotifierWithoutLoop(unittest.TestCase):
    def test_default_delay(self) -> None:
        self.assertEqual(Notifier().delay, DEFAULT_DELAY_SECONDS)
        self.assertEqual(DEFAULT_DELAY_SECONDS, 3.0)

    def test_show_outside_loop_keeps_message(self) -> None:
        notifier = Notifier()
        notifier.show("no loop here")
        self.assertEqual(notifier.message, "no loop here")


if __name__ == "__main__":
    unittest.main()
