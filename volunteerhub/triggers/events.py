"""Reactions to event document writes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import current_app

from volunteerhub.chat.services import ChatService
from volunteerhub.core.constants import event_chat_room_id
from volunteerhub.events.cleanup import cascade_event_deletion
from volunteerhub.events.models import Event

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def on_event_deleted(
    db: Client, event_id: str, deleted_data: dict[str, Any]
) -> dict[str, Any]:
    """Clean up everything that referenced a deleted event."""
    event = Event.from_dict(event_id, deleted_data)
    current_app.logger.info(f"Event {event_id} deleted, starting cleanup")
    return cascade_event_deletion(db, event)


def on_event_updated(
    db: Client, event_id: str, before: dict[str, Any], after: dict[str, Any]
) -> bool:
    """Mirror registration changes into the event's chat room.

    Returns:
        bool: True when the room was updated.
    """
    before_volunteers = set(before.get("registeredVolunteers") or [])
    after_volunteers = set(after.get("registeredVolunteers") or [])
    added = after_volunteers - before_volunteers
    removed = before_volunteers - after_volunteers

    if not added and not removed:
        return False
    if not after.get("withChat"):
        return False

    return ChatService.apply_membership_diff(
        db, event_chat_room_id(event_id), added, removed
    )
