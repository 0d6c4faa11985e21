"""Tests for mention notifications."""

from __future__ import annotations

import unittest

from tests.conftest import FirestoreTestCase
from volunteerhub.chat.mentions import extract_mentions, notify_mentions
from volunteerhub.errors import ValidationError


class TestExtractMentions(unittest.TestCase):
    def test_tokens_keep_order_and_duplicates(self) -> None:
        self.assertEqual(
            extract_mentions("@alice hi @bob_2, and @alice again"),
            ["alice", "bob_2", "alice"],
        )

    def test_no_mentions(self) -> None:
        self.assertEqual(extract_mentions("email me at example.com"), [])
        self.assertEqual(extract_mentions(""), [])


class TestNotifyMentions(FirestoreTestCase):
    firestore_modules = (
        "volunteerhub.chat.mentions",
        "volunteerhub.chat.models",
        "volunteerhub.chat.services",
    )

    def setUp(self) -> None:
        super().setUp()
        self.db.collection("users").document("uA").set({"displayName": "alice"})
        self.db.collection("users").document("uB").set({"displayName": "bob"})
        self.db.collection("chatRooms").document("room1").set(
            {"title": "Park Cleanup", "participants": ["uA", "sender"]}
        )

    def _notifications(self) -> list[dict]:
        return [doc.to_dict() for doc in self.db.collection("notifications").stream()]

    def test_only_room_participants_are_notified(self) -> None:
        created = notify_mentions(
            self.db,
            "room1",
            "m1",
            {"text": "hello @alice and @bob", "senderId": "sender"},
        )

        self.assertEqual(created, 1)
        notifications = self._notifications()
        self.assertEqual(len(notifications), 1)
        notification = notifications[0]
        self.assertEqual(notification["userId"], "uA")
        self.assertEqual(notification["type"], "mention")
        self.assertEqual(notification["chatRoomId"], "room1")
        self.assertEqual(notification["messageId"], "m1")
        self.assertEqual(notification["senderId"], "sender")
        self.assertEqual(notification["message"], "You were mentioned in Park Cleanup")
        self.assertFalse(notification["read"])
        self.assertEqual(len(self.batches), 1)

    def test_repeated_mentions_are_not_deduplicated(self) -> None:
        created = notify_mentions(
            self.db, "room1", "m1", {"text": "@alice @alice", "senderId": "sender"}
        )

        self.assertEqual(created, 2)

    def test_display_name_match_is_case_sensitive(self) -> None:
        created = notify_mentions(
            self.db, "room1", "m1", {"text": "hi @Alice", "senderId": "sender"}
        )

        self.assertEqual(created, 0)
        self.assertEqual(self.batches, [])

    def test_non_participant_mention_writes_nothing(self) -> None:
        created = notify_mentions(
            self.db, "room1", "m1", {"text": "ping @bob", "senderId": "sender"}
        )

        self.assertEqual(created, 0)
        self.assertEqual(self.batches, [])
        self.assertEqual(self._notifications(), [])

    def test_preview_is_truncated(self) -> None:
        text = "@alice " + "x" * 200
        notify_mentions(self.db, "room1", "m1", {"text": text, "senderId": "sender"})

        self.assertEqual(self._notifications()[0]["messagePreview"], text[:100])

    def test_missing_room(self) -> None:
        created = notify_mentions(
            self.db, "nowhere", "m1", {"text": "@alice", "senderId": "sender"}
        )

        self.assertEqual(created, 0)

    def test_message_without_text(self) -> None:
        with self.assertRaises(ValidationError):
            notify_mentions(self.db, "room1", "m1", {"senderId": "sender"})


if __name__ == "__main__":
    unittest.main()
