"""Daily purge of old chat messages."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from volunteerhub.core.constants import (
    CHAT_ROOMS_COLLECTION,
    FIRESTORE_BATCH_LIMIT,
    MESSAGE_RETENTION_DAYS,
    MESSAGES_SUBCOLLECTION,
)
from volunteerhub.utils import delete_in_batches, utc_now

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def _purge_room(db: Client, room_ref: Any, cutoff: datetime.datetime) -> tuple[int, int]:
    stale = room_ref.collection(MESSAGES_SUBCOLLECTION).where(
        filter=firestore.FieldFilter("createdAt", "<", cutoff)
    )
    return delete_in_batches(db, stale, FIRESTORE_BATCH_LIMIT)


def purge_stale_messages(
    db: Client,
    now: datetime.datetime | None = None,
    retention_days: int = MESSAGE_RETENTION_DAYS,
) -> dict[str, Any]:
    """Delete chat messages created before ``now - retention_days``.

    A failing room is logged and skipped; the sweep carries on with the rest.
    """
    cutoff = (now or utc_now()) - datetime.timedelta(days=retention_days)
    summary: dict[str, Any] = {"rooms": 0, "deleted": 0, "batches": 0, "errors": []}

    for room_doc in db.collection(CHAT_ROOMS_COLLECTION).stream():
        summary["rooms"] += 1
        try:
            deleted, batches = _purge_room(db, room_doc.reference, cutoff)
        except Exception as e:
            current_app.logger.error(f"Retention sweep failed for {room_doc.id}: {e}")
            summary["errors"].append({"chatRoomId": room_doc.id, "error": str(e)})
            continue
        if deleted:
            current_app.logger.info(
                f"Deleted {deleted} old messages from chat room {room_doc.id}"
            )
        summary["deleted"] += deleted
        summary["batches"] += batches

    current_app.logger.info(
        f"Message retention sweep finished: {summary['deleted']} messages "
        f"across {summary['rooms']} rooms"
    )
    return summary
