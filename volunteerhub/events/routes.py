"""Routes for the events blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify

from volunteerhub.auth.decorators import login_required
from volunteerhub.errors import ValidationError
from volunteerhub.user.models import UserRole

from . import bp
from .forms import EventStatusForm
from .services import EventService


@bp.route("/<string:event_id>", methods=["DELETE"])
@login_required(role=UserRole.ORGANIZATION)
def delete_event(event_id: str) -> Any:
    """Delete an event together with its chat, notifications and registrations."""
    db = firestore.client()
    summary = EventService.delete_event(db, event_id, g.app_session.organization_id)
    return jsonify({"success": True, "results": summary})


@bp.route("/<string:event_id>/status", methods=["POST"])
@login_required(role=UserRole.ORGANIZATION)
def update_status(event_id: str) -> Any:
    form = EventStatusForm()
    if not form.validate():
        raise ValidationError("A valid event status is required.")
    db = firestore.client()
    status = EventService.update_event_status(
        db, event_id, form.status.data, g.app_session.organization_id
    )
    return jsonify({"success": True, "status": status.value})


@bp.route("/<string:event_id>/chat/sync", methods=["POST"])
@login_required(role=UserRole.ORGANIZATION)
def sync_chat(event_id: str) -> Any:
    """Rebuild the event chat room's participants from current registrations."""
    db = firestore.client()
    result = EventService.sync_chat_participants(
        db, event_id, g.app_session.organization_id
    )
    return jsonify(result)
