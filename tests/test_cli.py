"""
Tests for CLI entry points.

These tests focus on:
- Sign-in and role gating (admin-only commands refused for students)
- A create -> list -> register -> export flow against a temporary JSON store
  (to avoid touching real user data during tests)
"""

import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import requests

from eventhub.cli import build_parser, main


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = Path(self._tmp.name) / "eventhub.json"
        env = {"EVENTHUB_BACKEND": "file", "EVENTHUB_DATA_PATH": str(self.store), "EVENTHUB_NOTIFY_SECONDS": "3"}
        self._env = patch.dict(os.environ, env)
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with contextlib.redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            main(list(argv))
        return ctx.exception.code, out.getvalue()

    def create_event(self, title: str = "Tech Talk") -> str:
        code, _ = self.run_cli(
            "--user",
            "admin",
            "create",
            "--title",
            title,
            "--date",
            "2026-03-01",
            "--time",
            "18:00",
            "--location",
            "Main Hall",
            "--category",
            "Academic",
        )
        self.assertEqual(code, 0)
        data = json.loads(self.store.read_text(encoding="utf-8"))
        return [e["id"] for e in data["events"] if e["title"] == title][0]

    def test_unknown_user_exits_nonzero(self) -> None:
        code, out = self.run_cli("--user", "nobody", "list")
        self.assertEqual(code, 1)
        self.assertIn("Unknown user", out)

    def test_student_cannot_create(self) -> None:
        code, out = self.run_cli(
            "create", "--title", "X", "--date", "2026-01-01", "--time", "10:00", "--location", "Y", "--category", "Social"
        )
        self.assertEqual(code, 1)
        self.assertIn("only available to admins", out)
        self.assertFalse(self.store.exists())

    def test_create_then_list_and_search(self) -> None:
        self.create_event("Tech Talk")
        self.create_event("Football Finals")

        code, out = self.run_cli("list", "--search", "TECH")
        self.assertEqual(code, 0)
        self.assertIn("Tech Talk", out)
        self.assertNotIn("Football Finals", out)

        code, out = self.run_cli("list", "--mine")
        self.assertEqual(code, 0)
        self.assertIn("No events found.", out)

    def test_register_twice_and_export(self) -> None:
        event_id = self.create_event()

        code, out = self.run_cli("register", event_id)
        self.assertEqual(code, 0)
        self.assertIn("Successfully registered!", out)

        code, out = self.run_cli("register", event_id)
        self.assertEqual(code, 0)
        self.assertIn("Already registered", out)

        data = json.loads(self.store.read_text(encoding="utf-8"))
        self.assertEqual(data["events"][0]["attendees"], 1)

        ics = Path(self._tmp.name) / "mine.ics"
        code, out = self.run_cli("export", str(ics))
        self.assertEqual(code, 0)
        self.assertIn("BEGIN:VEVENT", ics.read_text(encoding="utf-8"))

    def test_delete_and_clear(self) -> None:
        event_id = self.create_event("Old Event")
        self.create_event("Other Event")

        code, out = self.run_cli("--user", "admin", "delete", event_id)
        self.assertEqual(code, 0)
        self.assertIn("Event deleted.", out)

        code, _ = self.run_cli("--user", "admin", "clear")
        self.assertEqual(code, 1)

        code, out = self.run_cli("--user", "admin", "clear", "--yes")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(self.store.read_text(encoding="utf-8"))["events"], [])

    def test_delete_unknown_event_reports_failure(self) -> None:
        code, out = self.run_cli("--user", "admin", "delete", "does-not-exist")
        self.assertEqual(code, 1)
        self.assertIn("Failed to delete event", out)

    def test_stats_for_admin(self) -> None:
        self.create_event()
        code, out = self.run_cli("--user", "admin", "stats")
        self.assertEqual(code, 0)
        self.assertIn("Total events:     1", out)

    def test_update_keeps_unset_fields(self) -> None:
        event_id = self.create_event("Tech Talk")

        code, out = self.run_cli("--user", "admin", "update", event_id, "--title", "Tech Talk II", "--capacity", "80")
        self.assertEqual(code, 0)
        self.assertIn('Event "Tech Talk II" updated successfully!', out)

        stored = json.loads(self.store.read_text(encoding="utf-8"))["events"]
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0]["id"], event_id)
        self.assertEqual(stored[0]["title"], "Tech Talk II")
        self.assertEqual(stored[0]["capacity"], 80)
        self.assertEqual(stored[0]["location"], "Main Hall")
        self.assertEqual(stored[0]["category"], "Academic")
        self.assertEqual(stored[0]["time"], "18:00")

    def test_update_unknown_event(self) -> None:
        code, out = self.run_cli("--user", "admin", "update", "nope", "--title", "X")
        self.assertEqual(code, 1)
        self.assertIn("Unknown event: nope", out)

    def test_attendees_lists_registration_forms(self) -> None:
        event_id = self.create_event()
        self.run_cli("register", event_id)

        code, out = self.run_cli("--user", "admin", "attendees", event_id)
        self.assertEqual(code, 0)
        self.assertIn("Tech Talk: 1 registered, capacity 50", out)
        self.assertIn("Student User (student) | 1XX21CS001 | Computer Science", out)

        code, out = self.run_cli("attendees", event_id)
        self.assertEqual(code, 1)
        self.assertIn("only available to admins", out)

    def test_unreachable_api_exits_nonzero(self) -> None:
        env = {"EVENTHUB_BACKEND": "http", "EVENTHUB_API_URL": "http://127.0.0.1:9"}
        with patch.dict(os.environ, env), patch(
            "eventhub.http_remote.requests.request", side_effect=requests.ConnectionError("connection refused")
        ):
            code, out = self.run_cli("list")
        self.assertEqual(code, 1)
        self.assertIn("Could not reach the server", out)

    def test_parser_requires_command(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            build_parser().parse_args([])
        self.assertNotEqual(ctx.exception.code, 0)


if __name__ == "__main__":
    unittest.main()
