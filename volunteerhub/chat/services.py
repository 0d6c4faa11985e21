"""Service layer for chat room membership.

Chat membership is a soft-consistency target. The per-volunteer helpers
(``remove_event_participant``, ``ensure_event_participant``) log failures and
report them as False. ``apply_membership_diff`` and
``reset_event_participants`` raise, and their callers decide.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, cast

from firebase_admin import firestore
from flask import current_app

from volunteerhub.core.constants import CHAT_ROOMS_COLLECTION, event_chat_room_id
from volunteerhub.errors import NotFoundError

from .models import ChatRoom

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

    from volunteerhub.events.models import Event


class ChatService:
    """Service class for chat room membership."""

    @staticmethod
    def get_chat_room(db: Client, chat_room_id: str) -> ChatRoom | None:
        """Fetch a chat room, or None if it does not exist."""
        snapshot = cast(
            "DocumentSnapshot",
            db.collection(CHAT_ROOMS_COLLECTION).document(chat_room_id).get(),
        )
        if not snapshot.exists:
            return None
        return ChatRoom.from_snapshot(snapshot)

    @staticmethod
    def remove_event_participant(db: Client, event: Event, user_id: str) -> bool:
        """Remove a user from the event's chat room, logging any failure."""
        if not event.with_chat:
            return False
        chat_room_id = event_chat_room_id(event.id)
        try:
            room_ref = db.collection(CHAT_ROOMS_COLLECTION).document(chat_room_id)
            if not room_ref.get().exists:
                return False
            room_ref.update(
                {
                    "participants": firestore.ArrayRemove([user_id]),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                }
            )
            return True
        except Exception as e:
            current_app.logger.warning(
                f"Chat room update failed for {chat_room_id}: {e}"
            )
            return False

    @staticmethod
    def ensure_event_participant(db: Client, event: Event, user_id: str) -> bool:
        """Add a user to the event's chat room, creating the room if needed."""
        if not event.with_chat:
            return False
        chat_room_id = event_chat_room_id(event.id)
        try:
            room_ref = db.collection(CHAT_ROOMS_COLLECTION).document(chat_room_id)
            room_doc = cast("DocumentSnapshot", room_ref.get())
            if not room_doc.exists:
                # The organization stays in the room for moderation.
                participants = [user_id]
                if event.organization_id != user_id:
                    participants.append(event.organization_id)
                room_ref.set(
                    {
                        "eventId": event.id,
                        "isEventChat": True,
                        "title": event.title,
                        "adminId": event.organization_id,
                        "participants": participants,
                        "createdAt": firestore.SERVER_TIMESTAMP,
                        "updatedAt": firestore.SERVER_TIMESTAMP,
                        "lastMessage": "",
                        "lastMessageTime": None,
                    }
                )
                current_app.logger.info(f"Created chat room {chat_room_id}")
                return True

            room = ChatRoom.from_snapshot(room_doc)
            if not room.has_participant(user_id):
                room_ref.update(
                    {
                        "participants": firestore.ArrayUnion([user_id]),
                        "updatedAt": firestore.SERVER_TIMESTAMP,
                    }
                )
            return True
        except Exception as e:
            current_app.logger.warning(
                f"Chat room setup failed for {chat_room_id}: {e}"
            )
            return False

    @staticmethod
    def apply_membership_diff(
        db: Client,
        chat_room_id: str,
        added: Iterable[str],
        removed: Iterable[str],
    ) -> bool:
        """Apply added/removed participant sets to a room in one commit.

        Firestore allows a single transform per field and write, so the union
        and the removal are two writes to the same document inside one batch.
        """
        added = sorted(set(added))
        removed = sorted(set(removed))
        if not added and not removed:
            return False

        room_ref = db.collection(CHAT_ROOMS_COLLECTION).document(chat_room_id)
        if not room_ref.get().exists:
            current_app.logger.warning(
                f"Chat room {chat_room_id} not found, skipping participant sync."
            )
            return False

        batch = db.batch()
        if added:
            batch.update(
                room_ref,
                {
                    "participants": firestore.ArrayUnion(added),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
        if removed:
            batch.update(
                room_ref,
                {
                    "participants": firestore.ArrayRemove(removed),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
        batch.commit()
        current_app.logger.info(
            f"Synced {chat_room_id}: +{len(added)} / -{len(removed)} participants"
        )
        return True

    @staticmethod
    def reset_event_participants(db: Client, event: Event) -> dict[str, Any]:
        """Overwrite an event room's participants with the registered volunteers."""
        expected = list(event.registered_volunteers)
        if event.organization_id not in expected:
            expected.append(event.organization_id)

        room_ref = db.collection(CHAT_ROOMS_COLLECTION).document(
            event_chat_room_id(event.id)
        )
        if not room_ref.get().exists:
            raise NotFoundError("Chat room not found for this event.")
        room_ref.update(
            {"participants": expected, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        return {"success": True, "participantCount": len(expected)}
