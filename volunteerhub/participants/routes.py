"""Routes for the participants blueprint."""

from __future__ import annotations

import csv
import io
from typing import Any

from firebase_admin import firestore
from flask import Response, g, jsonify, request

from volunteerhub.auth.decorators import login_required
from volunteerhub.errors import ValidationError
from volunteerhub.events.services import EventService
from volunteerhub.user.models import UserRole

from . import bp
from .forms import StatusUpdateForm
from .services import ParticipantService

EXPORT_COLUMNS = [
    "Name",
    "Email",
    "Phone",
    "Location",
    "Skills",
    "Registration Date",
    "Status",
    "Bio",
]


@bp.route("/events/<string:event_id>/participants", methods=["GET"])
@login_required
def list_participants(event_id: str) -> Any:
    """List the registered volunteers of an event with their profiles."""
    db = firestore.client()
    participants = ParticipantService.get_event_participants(db, event_id)
    return jsonify({"success": True, "participants": participants})


@bp.route("/events/<string:event_id>/participants/stats", methods=["GET"])
@login_required
def participant_stats(event_id: str) -> Any:
    db = firestore.client()
    stats = ParticipantService.get_participant_stats(db, event_id)
    return jsonify({"success": True, "stats": stats})


@bp.route("/events/<string:event_id>/participants/export", methods=["GET"])
@login_required(role=UserRole.ORGANIZATION)
def export_participants(event_id: str) -> Any:
    """Download the participant list as CSV."""
    db = firestore.client()
    EventService.get_owned_event(db, event_id, g.app_session.organization_id)
    rows = ParticipantService.export_participants_data(db, event_id)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=participants-{event_id}.csv"
        },
    )


@bp.route(
    "/events/<string:event_id>/participants/<string:participant_id>",
    methods=["DELETE"],
)
@login_required(role=UserRole.ORGANIZATION)
def remove_participant(event_id: str, participant_id: str) -> Any:
    db = firestore.client()
    ParticipantService.remove_participant(
        db, event_id, participant_id, g.app_session.organization_id
    )
    return jsonify({"success": True, "message": "Participant removed successfully"})


@bp.route(
    "/events/<string:event_id>/participants/<string:participant_id>/status",
    methods=["POST"],
)
@login_required(role=UserRole.ORGANIZATION)
def update_participant_status(event_id: str, participant_id: str) -> Any:
    form = StatusUpdateForm()
    if not form.validate():
        raise ValidationError("Status must be one of: registered, attended, no-show.")
    db = firestore.client()
    ParticipantService.update_participant_status(
        db, event_id, participant_id, form.status.data, g.app_session.organization_id
    )
    return jsonify({"success": True, "message": "Participant status updated"})


@bp.route("/events/<string:event_id>/participants/bulk-remove", methods=["POST"])
@login_required(role=UserRole.ORGANIZATION)
def bulk_remove_participants(event_id: str) -> Any:
    payload = request.get_json(silent=True) or {}
    db = firestore.client()
    results = ParticipantService.bulk_remove_participants(
        db, event_id, payload.get("participantIds"), g.app_session.organization_id
    )
    return jsonify({"success": True, "results": results})


@bp.route("/organizations/<string:organization_id>/events", methods=["GET"])
@login_required
def organization_events(organization_id: str) -> Any:
    """List an organization's events with participant statistics."""
    db = firestore.client()
    events = ParticipantService.get_organization_events_with_participants(
        db, organization_id
    )
    return jsonify({"success": True, "events": events})


@bp.route("/events/<string:event_id>/registration", methods=["POST"])
@login_required(role=UserRole.VOLUNTEER)
def register(event_id: str) -> Any:
    db = firestore.client()
    result = ParticipantService.register_volunteer(db, event_id, g.app_session.uid)
    return jsonify(result)


@bp.route("/events/<string:event_id>/registration", methods=["DELETE"])
@login_required(role=UserRole.VOLUNTEER)
def unregister(event_id: str) -> Any:
    db = firestore.client()
    result = ParticipantService.unregister_volunteer(db, event_id, g.app_session.uid)
    return jsonify(result)
