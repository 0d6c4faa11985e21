"""Cascading cleanup for deleted events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore, storage
from flask import current_app

from volunteerhub.core.constants import (
    ACTIVITIES_COLLECTION,
    APPLICATIONS_SUBCOLLECTION,
    CHAT_ROOMS_COLLECTION,
    EVENT_IMAGE_PATH,
    EVENTS_COLLECTION,
    FIRESTORE_BATCH_LIMIT,
    MESSAGES_SUBCOLLECTION,
    NOTIFICATIONS_COLLECTION,
    ORGANIZATIONS_COLLECTION,
    USERS_COLLECTION,
    event_chat_room_id,
)
from volunteerhub.errors import InternalError
from volunteerhub.utils import delete_in_batches

from .models import Event

if TYPE_CHECKING:
    from google.cloud.firestore_v1.batch import WriteBatch
    from google.cloud.firestore_v1.client import Client


def _new_summary() -> dict[str, Any]:
    return {
        "event": False,
        "chatRoom": False,
        "messages": 0,
        "organizationUpdated": False,
        "notifications": 0,
        "activities": 0,
        "applications": 0,
        "userUpdates": 0,
        "images": 0,
        "errors": [],
    }


def _record_error(summary: dict[str, Any], label: str, error: Exception) -> None:
    current_app.logger.error(f"{label} error: {error}")
    summary["errors"].append(f"{label} error: {error}")


def _queued_operations(summary: dict[str, Any]) -> int:
    counted = ("notifications", "activities", "applications", "userUpdates")
    flags = ("event", "organizationUpdated")
    return sum(summary[key] for key in counted) + sum(
        1 for key in flags if summary[key]
    )


def _queue_chat_room(
    db: Client, batch: WriteBatch, event_id: str, summary: dict[str, Any]
) -> None:
    """Queue the room and its messages, paging the messages out first if needed."""
    room_ref = db.collection(CHAT_ROOMS_COLLECTION).document(
        event_chat_room_id(event_id)
    )
    if not room_ref.get().exists:
        return
    messages = room_ref.collection(MESSAGES_SUBCOLLECTION)
    message_refs = [doc.reference for doc in messages.stream()]

    # Room and messages share the batch only while everything fits.
    if _queued_operations(summary) + len(message_refs) + 1 > FIRESTORE_BATCH_LIMIT:
        deleted, _ = delete_in_batches(db, messages, FIRESTORE_BATCH_LIMIT)
        summary["messages"] += deleted
        message_refs = []

    for message_ref in message_refs:
        batch.delete(message_ref)
        summary["messages"] += 1
    batch.delete(room_ref)
    summary["chatRoom"] = True


def _queue_organization(
    db: Client, batch: WriteBatch, event: Event, summary: dict[str, Any]
) -> None:
    org_ref = db.collection(ORGANIZATIONS_COLLECTION).document(event.organization_id)
    if not org_ref.get().exists:
        return
    batch.update(
        org_ref,
        {
            "events": firestore.ArrayRemove([event.id]),
            "updatedAt": firestore.SERVER_TIMESTAMP,
        },
    )
    summary["organizationUpdated"] = True


def _queue_related(
    db: Client,
    batch: WriteBatch,
    collection_name: str,
    event_id: str,
    summary: dict[str, Any],
    key: str,
) -> None:
    docs = (
        db.collection(collection_name)
        .where(filter=firestore.FieldFilter("eventId", "==", event_id))
        .stream()
    )
    for doc in docs:
        batch.delete(doc.reference)
        summary[key] += 1


def _queue_applications(
    db: Client, batch: WriteBatch, event_id: str, summary: dict[str, Any]
) -> None:
    applications = (
        db.collection(EVENTS_COLLECTION)
        .document(event_id)
        .collection(APPLICATIONS_SUBCOLLECTION)
        .stream()
    )
    for application_doc in applications:
        batch.delete(application_doc.reference)
        summary["applications"] += 1


def _queue_volunteers(
    db: Client, batch: WriteBatch, event: Event, summary: dict[str, Any]
) -> None:
    for volunteer_id in event.registered_volunteers:
        try:
            user_ref = db.collection(USERS_COLLECTION).document(volunteer_id)
            if not user_ref.get().exists:
                current_app.logger.warning(
                    f"Registered volunteer {volunteer_id} has no user document."
                )
                continue
            batch.update(
                user_ref,
                {
                    "registeredEvents": firestore.ArrayRemove([event.id]),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            summary["userUpdates"] += 1
        except Exception as e:
            _record_error(summary, f"User update for {volunteer_id}", e)


def delete_event_image(event: Event) -> bool:
    """Delete an event's uploaded image from Cloud Storage.

    Media cleanup is soft: failures are logged and reported as False.
    """
    if not (event.has_custom_image and event.image_url):
        return False
    path = EVENT_IMAGE_PATH.format(event_id=event.id)
    try:
        storage.bucket().blob(path).delete()
        return True
    except Exception as e:
        current_app.logger.error(f"Image deletion error for {path}: {e}")
        return False


def cascade_event_deletion(
    db: Client, event: Event, delete_event_document: bool = False
) -> dict[str, Any]:
    """Remove everything that references an event in one batch.

    Each lookup that feeds the batch is attempted independently and recorded
    in the summary's ``errors`` on failure. The batch commit itself is the
    mandatory step and raises InternalError if it fails. Chat rooms with more
    messages than the batch can hold have those messages deleted in pages
    before the commit. The image is deleted only after the commit.
    """
    summary = _new_summary()
    batch = db.batch()

    steps = [
        ("Organization update", lambda: _queue_organization(db, batch, event, summary)),
        (
            "Notifications cleanup",
            lambda: _queue_related(
                db, batch, NOTIFICATIONS_COLLECTION, event.id, summary, "notifications"
            ),
        ),
        (
            "Activities cleanup",
            lambda: _queue_related(
                db, batch, ACTIVITIES_COLLECTION, event.id, summary, "activities"
            ),
        ),
        ("Applications cleanup", lambda: _queue_applications(db, batch, event.id, summary)),
    ]
    for label, step in steps:
        try:
            step()
        except Exception as e:
            _record_error(summary, label, e)

    _queue_volunteers(db, batch, event, summary)

    if delete_event_document:
        batch.delete(db.collection(EVENTS_COLLECTION).document(event.id))
        summary["event"] = True

    try:
        _queue_chat_room(db, batch, event.id, summary)
    except Exception as e:
        _record_error(summary, "Chat cleanup", e)

    try:
        batch.commit()
    except Exception as e:
        current_app.logger.error(f"Cleanup batch for event {event.id} failed: {e}")
        raise InternalError(f"Failed to clean up event {event.id}.") from e

    if delete_event_image(event):
        summary["images"] += 1
    elif event.has_custom_image and event.image_url:
        summary["errors"].append(f"Image deletion error for event {event.id}")

    current_app.logger.info(
        f"Cleaned up event {event.id}: {summary['messages']} messages, "
        f"{summary['userUpdates']} users, {summary['notifications']} notifications"
    )
    return summary
