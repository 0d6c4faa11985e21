"""Mention notifications for new chat messages."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from volunteerhub.core.constants import (
    MENTION_PATTERN,
    NOTIFICATIONS_COLLECTION,
    USERS_COLLECTION,
)

from .models import Message, build_mention_notification
from .services import ChatService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

_MENTION_RE = re.compile(MENTION_PATTERN)


def extract_mentions(text: str) -> list[str]:
    """Return every ``@name`` token in order, duplicates included."""
    return _MENTION_RE.findall(text or "")


def notify_mentions(
    db: Client, chat_room_id: str, message_id: str, message_data: dict[str, Any]
) -> int:
    """Create a mention notification for each mentioned room participant.

    Returns:
        int: The number of notifications written.
    """
    message = Message.from_dict(message_id, message_data)
    mentions = extract_mentions(message.text)
    if not mentions:
        return 0

    room = ChatService.get_chat_room(db, chat_room_id)
    if room is None:
        current_app.logger.warning(
            f"Chat room {chat_room_id} not found for message {message_id}"
        )
        return 0

    recipients: list[str] = []
    for name in mentions:
        matches = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("displayName", "==", name))
            .limit(1)
            .stream()
        )
        recipients.extend(
            user_doc.id for user_doc in matches if room.has_participant(user_doc.id)
        )

    if not recipients:
        return 0

    batch = db.batch()
    for user_id in recipients:
        batch.set(
            db.collection(NOTIFICATIONS_COLLECTION).document(),
            build_mention_notification(user_id, room, message),
        )
    batch.commit()
    current_app.logger.info(
        f"Created {len(recipients)} mention notifications for message {message_id}"
    )
    return len(recipients)
