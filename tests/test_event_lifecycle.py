"""Tests for event deletion cleanup, chat sync and event status changes."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from tests.conftest import FirestoreTestCase
from volunteerhub.errors import (
    InternalError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from volunteerhub.events.services import EventService
from volunteerhub.triggers.events import on_event_deleted, on_event_updated

EVENT_DATA = {
    "organizationId": "org1",
    "title": "Food Drive",
    "registeredVolunteers": ["u1", "u2", "u3"],
    "maxVolunteers": 5,
    "withChat": True,
    "status": "active",
    "hasCustomImage": True,
    "imageUrl": "https://storage.example.com/events/e1/image",
}


class EventLifecycleTestCase(FirestoreTestCase):
    firestore_modules = (
        "volunteerhub.events.cleanup",
        "volunteerhub.events.services",
        "volunteerhub.chat.services",
    )

    def setUp(self) -> None:
        super().setUp()
        storage_patcher = patch("volunteerhub.events.cleanup.storage")
        self.mock_storage = storage_patcher.start()
        self.addCleanup(storage_patcher.stop)

        db = self.db
        event_ref = db.collection("events").document("e1")
        event_ref.set(dict(EVENT_DATA))
        event_ref.collection("applications").document("app1").set({"userId": "u4"})

        db.collection("organizations").document("org1").set({"events": ["e1", "e2"]})
        for user_id in ("u1", "u2"):
            db.collection("users").document(user_id).set(
                {"displayName": user_id, "registeredEvents": ["e1", "e9"]}
            )

        room_ref = db.collection("chatRooms").document("event_e1")
        room_ref.set(
            {
                "eventId": "e1",
                "adminId": "org1",
                "participants": ["u1", "u2", "u3", "org1"],
            }
        )
        for i in range(3):
            room_ref.collection("messages").document(f"m{i}").set(
                {"text": f"message {i}", "senderId": "u1"}
            )

        db.collection("notifications").document("n1").set({"eventId": "e1"})
        db.collection("notifications").document("n2").set({"eventId": "e2"})
        db.collection("activities").document("a1").set({"eventId": "e1"})

    def _exists(self, *path: str) -> bool:
        ref = self.db.collection(path[0]).document(path[1])
        return ref.get().exists


class TestEventDeletedTrigger(EventLifecycleTestCase):
    def test_cascade_runs_in_a_single_batch(self) -> None:
        summary = on_event_deleted(self.db, "e1", dict(EVENT_DATA))

        self.assertEqual(len(self.batches), 1)
        self.batches[0].commit.assert_called_once()
        # Three messages followed by the room itself.
        room_deletes = [
            ref for ref in self.batches[0].deletes if "chatRooms" in ref._path
        ]
        self.assertEqual(len(room_deletes), 4)
        self.assertEqual(summary["messages"], 3)
        self.assertTrue(summary["chatRoom"])
        self.assertFalse(self._exists("chatRooms", "event_e1"))

    def test_cascade_removes_references(self) -> None:
        summary = on_event_deleted(self.db, "e1", dict(EVENT_DATA))

        org = self.db.collection("organizations").document("org1").get().to_dict()
        self.assertEqual(org["events"], ["e2"])
        self.assertFalse(self._exists("notifications", "n1"))
        self.assertTrue(self._exists("notifications", "n2"))
        self.assertFalse(self._exists("activities", "a1"))
        self.assertEqual(summary["applications"], 1)
        for user_id in ("u1", "u2"):
            user = self.db.collection("users").document(user_id).get().to_dict()
            self.assertEqual(user["registeredEvents"], ["e9"])
        self.assertEqual(summary["userUpdates"], 2)
        self.assertFalse(self._exists("users", "u3"))
        self.assertEqual(summary["errors"], [])

    def test_image_is_deleted_after_commit(self) -> None:
        summary = on_event_deleted(self.db, "e1", dict(EVENT_DATA))

        self.mock_storage.bucket.return_value.blob.assert_called_once_with(
            "events/e1/image"
        )
        self.assertEqual(summary["images"], 1)

    def test_image_failure_keeps_cleanup(self) -> None:
        blob = self.mock_storage.bucket.return_value.blob.return_value
        blob.delete.side_effect = Exception("storage unavailable")

        summary = on_event_deleted(self.db, "e1", dict(EVENT_DATA))

        self.assertEqual(summary["images"], 0)
        self.assertEqual(len(summary["errors"]), 1)
        self.batches[0].commit.assert_called_once()
        self.assertFalse(self._exists("chatRooms", "event_e1"))

    def test_no_image_without_custom_upload(self) -> None:
        data = dict(EVENT_DATA, hasCustomImage=False)

        on_event_deleted(self.db, "e1", data)

        self.mock_storage.bucket.assert_not_called()

    def test_failed_commit_raises(self) -> None:
        failing_batch = MagicMock()
        failing_batch.commit.side_effect = RuntimeError("unavailable")
        self.db.batch = MagicMock(return_value=failing_batch)

        with self.assertRaises(InternalError):
            on_event_deleted(self.db, "e1", dict(EVENT_DATA))
        self.mock_storage.bucket.assert_not_called()
        self.assertTrue(self._exists("chatRooms", "event_e1"))


class TestEventUpdatedTrigger(EventLifecycleTestCase):
    def test_registration_diff_is_applied_to_room(self) -> None:
        before = {"withChat": True, "registeredVolunteers": ["u1", "u2"]}
        after = {"withChat": True, "registeredVolunteers": ["u2", "u5"]}

        self.assertTrue(on_event_updated(self.db, "e1", before, after))

        room = self.db.collection("chatRooms").document("event_e1").get().to_dict()
        self.assertEqual(sorted(room["participants"]), ["org1", "u2", "u3", "u5"])
        self.assertEqual(len(self.batches), 1)
        self.assertEqual(len(self.batches[0].updates), 2)

    def test_unchanged_registrations_are_ignored(self) -> None:
        state = {"withChat": True, "registeredVolunteers": ["u1"]}

        self.assertFalse(on_event_updated(self.db, "e1", state, dict(state)))
        self.assertEqual(self.batches, [])

    def test_events_without_chat_are_ignored(self) -> None:
        before = {"withChat": False, "registeredVolunteers": []}
        after = {"withChat": False, "registeredVolunteers": ["u1"]}

        self.assertFalse(on_event_updated(self.db, "e1", before, after))
        self.assertEqual(self.batches, [])

    def test_missing_room_is_skipped(self) -> None:
        before = {"withChat": True, "registeredVolunteers": []}
        after = {"withChat": True, "registeredVolunteers": ["u1"]}

        self.assertFalse(on_event_updated(self.db, "e7", before, after))
        self.assertEqual(self.batches, [])


class TestEventService(EventLifecycleTestCase):
    def test_delete_event_removes_document_and_references(self) -> None:
        summary = EventService.delete_event(self.db, "e1", "org1")

        self.assertTrue(summary["event"])
        self.assertFalse(self._exists("events", "e1"))
        self.assertFalse(self._exists("chatRooms", "event_e1"))
        self.assertEqual(len(self.batches), 1)

    def test_delete_event_with_large_chat_history(self) -> None:
        messages = self.db.collection("chatRooms").document("event_e1").collection(
            "messages"
        )
        for i in range(3, 600):
            messages.document(f"m{i}").set({"text": "hi", "senderId": "u1"})

        summary = EventService.delete_event(self.db, "e1", "org1")

        self.assertEqual(summary["messages"], 600)
        self.assertEqual([len(b.updates) for b in self.batches[1:]], [500, 100])
        for batch in self.batches:
            self.assertLessEqual(len(batch.updates), 500)
        self.assertFalse(self._exists("events", "e1"))
        self.assertFalse(self._exists("chatRooms", "event_e1"))
        self.assertEqual(summary["errors"], [])

    def test_delete_event_requires_owner(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            EventService.delete_event(self.db, "e1", "org2")
        self.assertTrue(self._exists("events", "e1"))
        self.assertEqual(self.batches, [])

    def test_delete_missing_event(self) -> None:
        with self.assertRaises(NotFoundError):
            EventService.delete_event(self.db, "nope", "org1")

    def test_status_transition(self) -> None:
        status = EventService.update_event_status(self.db, "e1", "completed", "org1")

        self.assertEqual(status.value, "completed")
        event = self.db.collection("events").document("e1").get().to_dict()
        self.assertEqual(event["status"], "completed")

    def test_active_event_can_be_unpublished(self) -> None:
        EventService.update_event_status(self.db, "e1", "draft", "org1")
        EventService.update_event_status(self.db, "e1", "active", "org1")

        event = self.db.collection("events").document("e1").get().to_dict()
        self.assertEqual(event["status"], "active")

    def test_terminal_status_cannot_reopen(self) -> None:
        self.db.collection("events").document("e1").update({"status": "cancelled"})

        with self.assertRaises(InvalidStateError):
            EventService.update_event_status(self.db, "e1", "active", "org1")

    def test_unknown_status(self) -> None:
        with self.assertRaises(ValidationError):
            EventService.update_event_status(self.db, "e1", "archived", "org1")

    def test_sync_chat_participants(self) -> None:
        self.db.collection("chatRooms").document("event_e1").update(
            {"participants": ["stranger"]}
        )

        result = EventService.sync_chat_participants(self.db, "e1", "org1")

        self.assertEqual(result, {"success": True, "participantCount": 4})
        room = self.db.collection("chatRooms").document("event_e1").get().to_dict()
        self.assertEqual(room["participants"], ["u1", "u2", "u3", "org1"])

    def test_sync_chat_requires_chat_enabled(self) -> None:
        self.db.collection("events").document("e1").update({"withChat": False})

        with self.assertRaises(InvalidStateError):
            EventService.sync_chat_participants(self.db, "e1", "org1")

    def test_sync_chat_missing_room(self) -> None:
        self.db.collection("chatRooms").document("event_e1").delete()

        with self.assertRaises(NotFoundError):
            EventService.sync_chat_participants(self.db, "e1", "org1")


if __name__ == "__main__":
    unittest.main()
