"""Data models for chat rooms, notifications and moderation records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore

from volunteerhub.core.constants import (
    EVENT_CHAT_PREFIX,
    MESSAGE_PREVIEW_LENGTH,
)
from volunteerhub.errors import ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot


class NotificationType(str, Enum):
    """Kinds of notification documents."""

    MENTION = "mention"


class AdminActionType(str, Enum):
    """Moderator actions recorded in the audit log."""

    DELETE_MESSAGE = "deleteMessage"
    REMOVE_PARTICIPANT = "removeParticipant"


@dataclass
class ChatRoom:
    """A chat room document in Firestore, validated on read."""

    id: str
    participants: list[str] = field(default_factory=list)
    admin_id: Optional[str] = None
    event_id: Optional[str] = None
    title: str = ""

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> ChatRoom:
        """Build a ChatRoom from a Firestore snapshot."""
        data = snapshot.to_dict() or {}
        participants = data.get("participants") or []
        if not isinstance(participants, list):
            raise ValidationError(f"Chat room {snapshot.id} has malformed participants.")
        return cls(
            id=snapshot.id,
            participants=list(participants),
            admin_id=data.get("adminId"),
            event_id=data.get("eventId"),
            title=data.get("title") or data.get("name") or "",
        )

    @property
    def is_event_room(self) -> bool:
        """Return True for rooms that accompany an event."""
        return self.id.startswith(EVENT_CHAT_PREFIX)

    @property
    def linked_event_id(self) -> Optional[str]:
        """The accompanied event, from ``eventId`` or the room ID."""
        if not self.is_event_room:
            return None
        return self.event_id or self.id[len(EVENT_CHAT_PREFIX) :]

    def has_participant(self, user_id: str) -> bool:
        """Check room membership."""
        return user_id in self.participants


@dataclass
class Message:
    """A chat message document."""

    id: str
    text: str
    sender_id: str
    sender_name: str = ""
    created_at: Any = None

    @classmethod
    def from_dict(cls, message_id: str, data: dict[str, Any]) -> Message:
        """Build a Message from raw document data."""
        text = data.get("text")
        if not isinstance(text, str):
            raise ValidationError(f"Message {message_id} has no text.")
        return cls(
            id=message_id,
            text=text,
            sender_id=data.get("senderId") or "",
            sender_name=data.get("senderName") or "",
            created_at=data.get("createdAt"),
        )


def build_mention_notification(
    recipient_id: str, room: ChatRoom, message: Message
) -> dict[str, Any]:
    """Return the document body for a mention notification."""
    room_label = room.title or "a chat"
    return {
        "userId": recipient_id,
        "type": NotificationType.MENTION.value,
        "title": "You were mentioned in a chat",
        "message": f"You were mentioned in {room_label}",
        "chatRoomId": room.id,
        "messageId": message.id,
        "senderId": message.sender_id,
        "messagePreview": message.text[:MESSAGE_PREVIEW_LENGTH],
        "read": False,
        "createdAt": firestore.SERVER_TIMESTAMP,
    }


def build_admin_action(
    action: AdminActionType, actor_id: str, chat_room_id: str, target_id: str
) -> dict[str, Any]:
    """Return the document body for a moderation audit record."""
    return {
        "action": action.value,
        "actorId": actor_id,
        "chatRoomId": chat_room_id,
        "targetId": target_id,
        "timestamp": firestore.SERVER_TIMESTAMP,
    }
