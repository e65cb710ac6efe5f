import unittest

from eventhub.model import Event, EventCategory, EventDraft, Role, User, parse_category


class TestEventMapping(unittest.TestCase):
    def test_from_dict_reads_camel_case_keys(self) -> None:
        ev = Event.from_dict(
            {
                "id": "abc",
                "title": "Hackathon",
                "date": "2026-04-10",
                "time": "09:00",
                "location": "Lab 3",
                "category": "Workshop",
                "description": "24h of code",
                "organizer": "CS Club",
                "imageUrl": "https://example.com/h.png",
                "attendees": 12,
                "capacity": 80,
            }
        )
        self.assertEqual(ev.category, EventCategory.WORKSHOP)
        self.assertEqual(ev.image_url, "https://example.com/h.png")
        self.assertEqual(ev.to_dict()["imageUrl"], "https://example.com/h.png")
        self.assertEqual(ev.to_dict()["category"], "Workshop")

    def test_from_dict_rejects_unknown_category(self) -> None:
        with self.assertRaises(ValueError):
            Event.from_dict({"id": "x", "category": "Gaming"})

    def test_from_dict_requires_id(self) -> None:
        with self.assertRaises(ValueError):
            Event.from_dict({"title": "No id", "category": "Social"})

    def test_with_draft_keeps_id_and_attendees(self) -> None:
        ev = Event("e1", "Old", "2026-01-01", "10:00", "Hall", EventCategory.SOCIAL, "", "", "", 7, 20)
        draft = ev.to_draft()
        draft.title = "New"
        draft.capacity = 30

        updated = ev.with_draft(draft)

        self.assertEqual(updated.id, "e1")
        self.assertEqual(updated.attendees, 7)
        self.assertEqual(updated.title, "New")
        self.assertEqual(updated.capacity, 30)
        # original untouched
        self.assertEqual(ev.title, "Old")


class TestDraftValidation(unittest.TestCase):
    def test_blank_title_rejected(self) -> None:
        with self.assertRaises(ValueError):
            EventDraft(title="  ", date="", time="", location="", category=EventCategory.SOCIAL).validate()

    def test_non_positive_capacity_rejected(self) -> None:
        with self.assertRaises(ValueError):
            EventDraft(title="T", date="", time="", location="", category=EventCategory.SOCIAL, capacity=0).validate()


class TestParsing(unittest.TestCase):
    def test_parse_category_is_case_insensitive(self) -> None:
        self.assertIs(parse_category("career"), EventCategory.CAREER)
        with self.assertRaises(ValueError):
            parse_category("All")

    def test_user_roundtrip_keeps_role(self) -> None:
        user = User.from_dict({"id": "u1", "name": "Ada", "username": "ada", "role": "admin"})
        self.assertIs(user.role, Role.ADMIN)
        self.assertTrue(user.is_admin)
        self.assertEqual(User.from_dict(user.to_dict()), user)


if __name__ == "__main__":
    unittest.main()
