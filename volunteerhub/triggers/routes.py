"""Routes for the triggers blueprint.

Document-write events and the scheduled sweep arrive as webhooks that carry
the shared ``X-Trigger-Secret`` header.
"""

from __future__ import annotations

import hmac
from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify, request

from volunteerhub.chat.mentions import notify_mentions
from volunteerhub.errors import PermissionDeniedError, ValidationError

from . import bp
from .events import on_event_deleted, on_event_updated
from .retention import purge_stale_messages


@bp.before_request
def check_trigger_secret() -> None:
    expected = current_app.config.get("TRIGGER_SECRET")
    provided = request.headers.get("X-Trigger-Secret", "")
    if not expected or not hmac.compare_digest(provided, expected):
        raise PermissionDeniedError("Invalid trigger secret.")


def _payload() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("A JSON object body is required.")
    return payload


@bp.route("/events/<string:event_id>/deleted", methods=["POST"])
def event_deleted(event_id: str) -> Any:
    """Body: the deleted event document."""
    summary = on_event_deleted(firestore.client(), event_id, _payload())
    return jsonify({"success": True, "results": summary})


@bp.route("/events/<string:event_id>/updated", methods=["POST"])
def event_updated(event_id: str) -> Any:
    """Body: ``{"before": {...}, "after": {...}}``."""
    payload = _payload()
    before = payload.get("before") or {}
    after = payload.get("after") or {}
    if not isinstance(before, dict) or not isinstance(after, dict):
        raise ValidationError("'before' and 'after' must be objects.")
    updated = on_event_updated(firestore.client(), event_id, before, after)
    return jsonify({"success": True, "chatUpdated": updated})


@bp.route(
    "/chat-rooms/<string:chat_room_id>/messages/<string:message_id>/created",
    methods=["POST"],
)
def message_created(chat_room_id: str, message_id: str) -> Any:
    """Body: the new message document."""
    created = notify_mentions(firestore.client(), chat_room_id, message_id, _payload())
    return jsonify({"success": True, "notifications": created})


@bp.route("/retention", methods=["POST"])
def retention() -> Any:
    summary = purge_stale_messages(
        firestore.client(), retention_days=current_app.config["MESSAGE_RETENTION_DAYS"]
    )
    return jsonify({"success": True, "results": summary})
