"""Service layer for event lifecycle operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from volunteerhub.chat.services import ChatService
from volunteerhub.core.constants import EVENTS_COLLECTION
from volunteerhub.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

from .cleanup import cascade_event_deletion
from .models import Event, EventStatus

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


class EventService:
    """Service class for event-related operations."""

    @staticmethod
    def get_event(db: Client, event_id: str) -> Event:
        """Fetch and validate an event."""
        if not event_id:
            raise ValidationError("Event ID is required.")
        event_doc = cast(
            "DocumentSnapshot", db.collection(EVENTS_COLLECTION).document(event_id).get()
        )
        if not event_doc.exists:
            raise NotFoundError("Event not found.")
        return Event.from_snapshot(event_doc)

    @staticmethod
    def get_owned_event(db: Client, event_id: str, organization_id: str) -> Event:
        """Fetch an event and check that ``organization_id`` owns it."""
        event = EventService.get_event(db, event_id)
        if event.organization_id != organization_id:
            raise PermissionDeniedError("Only the event organizer can manage this event.")
        return event

    @staticmethod
    def delete_event(db: Client, event_id: str, organization_id: str) -> dict[str, Any]:
        """Delete an event and everything that references it."""
        event = EventService.get_owned_event(db, event_id, organization_id)
        summary = cascade_event_deletion(db, event, delete_event_document=True)
        current_app.logger.info(f"Event {event_id} deleted by {organization_id}")
        return summary

    @staticmethod
    def update_event_status(
        db: Client, event_id: str, status: str, organization_id: str
    ) -> EventStatus:
        """Move an event to a new lifecycle state."""
        target = EventStatus.parse(status)
        event = EventService.get_owned_event(db, event_id, organization_id)
        event.status.ensure_transition(target)

        db.collection(EVENTS_COLLECTION).document(event_id).update(
            {"status": target.value, "updatedAt": firestore.SERVER_TIMESTAMP}
        )
        current_app.logger.info(
            f"Event {event_id} moved from {event.status.value} to {target.value}"
        )
        return target

    @staticmethod
    def sync_chat_participants(
        db: Client, event_id: str, organization_id: str
    ) -> dict[str, Any]:
        """Rebuild the event room's participants from the registrations."""
        event = EventService.get_owned_event(db, event_id, organization_id)
        if not event.with_chat:
            raise InvalidStateError("Chat is disabled for this event.")
        return ChatService.reset_event_participants(db, event)
