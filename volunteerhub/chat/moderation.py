"""Admin moderation of chat rooms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import firestore
from flask import current_app

from volunteerhub.core.constants import (
    ADMIN_ACTIONS_COLLECTION,
    CHAT_ROOMS_COLLECTION,
    EVENTS_COLLECTION,
    MESSAGES_SUBCOLLECTION,
)
from volunteerhub.errors import (
    InternalError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    ValidationError,
)

from .models import AdminActionType, ChatRoom, build_admin_action
from .services import ChatService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def _is_moderator(db: Client, room: ChatRoom, caller_uid: str) -> bool:
    if room.admin_id and room.admin_id == caller_uid:
        return True
    event_id = room.linked_event_id
    if event_id:
        event_doc = db.collection(EVENTS_COLLECTION).document(event_id).get()
        if event_doc.exists:
            return (event_doc.to_dict() or {}).get("organizationId") == caller_uid
    return False


def moderate(
    db: Client,
    caller_uid: Optional[str],
    operation: str,
    chat_room_id: str,
    message_id: Optional[str] = None,
    participant_id: Optional[str] = None,
) -> dict[str, Any]:
    """Delete a message or remove a participant, recording an audit entry.

    The moderated change and its ``adminActions`` record share one batch.
    """
    if not caller_uid:
        raise UnauthenticatedError("The function must be called while authenticated.")
    try:
        action = AdminActionType(operation)
    except ValueError:
        raise ValidationError(f"Unknown operation '{operation}'.") from None
    if not chat_room_id:
        raise ValidationError("Chat room ID is required.")

    room = ChatService.get_chat_room(db, chat_room_id)
    if room is None:
        raise NotFoundError("Chat room not found.")
    if not _is_moderator(db, room, caller_uid):
        raise PermissionDeniedError("Only the room admin can moderate this chat.")

    room_ref = db.collection(CHAT_ROOMS_COLLECTION).document(chat_room_id)
    batch = db.batch()

    if action is AdminActionType.DELETE_MESSAGE:
        if not message_id:
            raise ValidationError("Message ID is required.")
        message_ref = room_ref.collection(MESSAGES_SUBCOLLECTION).document(message_id)
        if not message_ref.get().exists:
            raise NotFoundError("Message not found.")
        batch.delete(message_ref)
        target_id = message_id
        result_message = "Message deleted."
    else:
        if not participant_id:
            raise ValidationError("Participant ID is required.")
        if not room.has_participant(participant_id):
            raise ValidationError("User is not a participant in this chat room.")
        batch.update(
            room_ref,
            {
                "participants": firestore.ArrayRemove([participant_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        target_id = participant_id
        result_message = "Participant removed."

    batch.set(
        db.collection(ADMIN_ACTIONS_COLLECTION).document(),
        build_admin_action(action, caller_uid, chat_room_id, target_id),
    )
    try:
        batch.commit()
    except Exception as e:
        current_app.logger.error(f"Moderation batch failed in {chat_room_id}: {e}")
        raise InternalError("Moderation failed.") from e

    current_app.logger.info(
        f"{caller_uid} performed {action.value} on {target_id} in {chat_room_id}"
    )
    return {"success": True, "message": result_message}
