"""Tests for the chat message retention sweep."""

from __future__ import annotations

import datetime
import unittest
from unittest.mock import MagicMock

from tests.conftest import FirestoreTestCase
from volunteerhub.triggers.retention import purge_stale_messages

UTC = datetime.timezone.utc
NOW = datetime.datetime(2024, 6, 30, 3, 0, tzinfo=UTC)


class TestRetentionSweep(FirestoreTestCase):
    firestore_modules = ("volunteerhub.triggers.retention",)

    def _add_message(self, room_id: str, message_id: str, age: datetime.timedelta):
        room_ref = self.db.collection("chatRooms").document(room_id)
        if not room_ref.get().exists:
            room_ref.set({"participants": []})
        room_ref.collection("messages").document(message_id).set(
            {"text": "hi", "senderId": "u1", "createdAt": NOW - age}
        )

    def _message_ids(self, room_id: str) -> list[str]:
        messages = (
            self.db.collection("chatRooms")
            .document(room_id)
            .collection("messages")
            .stream()
        )
        return sorted(doc.id for doc in messages)

    def test_retention_boundary(self) -> None:
        self._add_message(
            "global-chat", "stale", datetime.timedelta(days=30, seconds=1)
        )
        self._add_message("global-chat", "fresh", datetime.timedelta(days=29))
        self._add_message("global-chat", "edge", datetime.timedelta(days=30))

        summary = purge_stale_messages(self.db, now=NOW)

        self.assertEqual(self._message_ids("global-chat"), ["edge", "fresh"])
        self.assertEqual(summary["deleted"], 1)
        self.assertEqual(summary["rooms"], 1)

    def test_sweeps_every_room(self) -> None:
        self._add_message("global-chat", "a", datetime.timedelta(days=45))
        self._add_message("event_e1", "b", datetime.timedelta(days=31))
        self._add_message("event_e1", "c", datetime.timedelta(days=1))

        summary = purge_stale_messages(self.db, now=NOW)

        self.assertEqual(self._message_ids("global-chat"), [])
        self.assertEqual(self._message_ids("event_e1"), ["c"])
        self.assertEqual(summary["deleted"], 2)

    def test_large_rooms_use_several_batches(self) -> None:
        for i in range(1201):
            self._add_message("global-chat", f"m{i:04d}", datetime.timedelta(days=60))

        summary = purge_stale_messages(self.db, now=NOW)

        self.assertEqual(summary["deleted"], 1201)
        self.assertEqual(summary["batches"], 3)
        self.assertEqual([len(b.updates) for b in self.batches], [500, 500, 201])
        self.assertEqual(self._message_ids("global-chat"), [])

    def test_custom_retention_window(self) -> None:
        self._add_message("global-chat", "week-old", datetime.timedelta(days=8))

        summary = purge_stale_messages(self.db, now=NOW, retention_days=7)

        self.assertEqual(summary["deleted"], 1)

    def test_failing_room_does_not_stop_sweep(self) -> None:
        db = MagicMock()
        bad_room = MagicMock(id="broken")
        bad_room.reference.collection.side_effect = RuntimeError("unavailable")
        good_room = MagicMock(id="global-chat")
        stale = MagicMock()
        good_room.reference.collection.return_value.where.return_value.limit.return_value.stream.return_value = [  # noqa: E501
            stale
        ]
        db.collection.return_value.stream.return_value = [bad_room, good_room]

        summary = purge_stale_messages(db, now=NOW)

        self.assertEqual(summary["rooms"], 2)
        self.assertEqual(summary["deleted"], 1)
        self.assertEqual(summary["errors"][0]["chatRoomId"], "broken")
        db.batch.return_value.delete.assert_called_once_with(stale.reference)


if __name__ == "__main__":
    unittest.main()
