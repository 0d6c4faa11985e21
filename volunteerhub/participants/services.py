"""Service layer for event participant management.

Membership of a volunteer in an event is stored on both sides
(``events.registeredVolunteers`` and ``users.registeredEvents``) and, for
events with chat, in the companion chat room. The event/user pair is always
written in a single batch; the chat room is synchronised afterwards on a
best-effort basis.
"""

from __future__ import annotations

import datetime
import math
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from volunteerhub.chat.services import ChatService
from volunteerhub.core.constants import (
    EVENTS_COLLECTION,
    RECENT_REGISTRATION_DAYS,
    USERS_COLLECTION,
)
from volunteerhub.core.types import BulkRemovalResult
from volunteerhub.errors import (
    AppError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from volunteerhub.events.models import Event, EventStatus, ParticipantStatus
from volunteerhub.user.models import ParticipantRecord, User
from volunteerhub.user.services import UserService
from volunteerhub.utils import as_datetime, utc_now

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

_EPOCH = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


def _load_event(db: Client, event_id: str) -> tuple[DocumentReference, Event]:
    """Fetch an event or raise NotFoundError."""
    if not event_id:
        raise ValidationError("Event ID is required.")
    event_ref = db.collection(EVENTS_COLLECTION).document(event_id)
    event_doc = cast("DocumentSnapshot", event_ref.get())
    if not event_doc.exists:
        raise NotFoundError("Event not found.")
    return event_ref, Event.from_snapshot(event_doc)


def _ensure_owner(event: Event, organization_id: str) -> None:
    if event.organization_id != organization_id:
        raise PermissionDeniedError(
            "You do not have permission to manage participants for this event."
        )


def _sort_participants(
    participants: list[ParticipantRecord],
) -> list[ParticipantRecord]:
    """Newest registrations first, then the undated ones by display name."""
    dated = [p for p in participants if as_datetime(p.get("registrationDate"))]
    undated = [p for p in participants if not as_datetime(p.get("registrationDate"))]
    dated.sort(
        key=lambda p: as_datetime(p.get("registrationDate")) or _EPOCH, reverse=True
    )
    undated.sort(key=lambda p: (p.get("displayName") or "").lower())
    return dated + undated


def _recorded_status(event: Event, participant_id: str) -> ParticipantStatus:
    try:
        return event.participant_status(participant_id)
    except ValidationError:
        current_app.logger.warning(
            f"Unknown status recorded for {participant_id} on event {event.id}, "
            "treating as registered."
        )
        return ParticipantStatus.REGISTERED


def _commit(batch: Any, description: str) -> None:
    try:
        batch.commit()
    except Exception as e:
        current_app.logger.error(f"Batch commit failed while {description}: {e}")
        raise InternalError(f"Failed while {description}.") from e


class ParticipantService:
    """Service class for participant-related operations."""

    @staticmethod
    def get_event_participants(db: Client, event_id: str) -> list[ParticipantRecord]:
        """Return every registered volunteer joined with their profile."""
        _, event = _load_event(db, event_id)
        participants = ParticipantService.collect_participants(db, event)
        current_app.logger.info(
            f"Retrieved {len(participants)} participants for event {event_id}"
        )
        return participants

    @staticmethod
    def collect_participants(db: Client, event: Event) -> list[ParticipantRecord]:
        """Resolve the user documents referenced by an event.

        Missing or unreadable user documents are skipped; they are usually IDs
        left behind by an earlier partial failure.
        """
        participants: list[ParticipantRecord] = []
        for participant_id in event.registered_volunteers:
            try:
                user_doc = cast(
                    "DocumentSnapshot",
                    db.collection(USERS_COLLECTION).document(participant_id).get(),
                )
                if not user_doc.exists:
                    current_app.logger.warning(
                        f"Participant {participant_id} of event {event.id} "
                        "has no user document, skipping."
                    )
                    continue
                user = User.from_snapshot(user_doc)
            except Exception as e:
                current_app.logger.error(
                    f"Error fetching participant {participant_id}: {e}"
                )
                continue

            record = cast(ParticipantRecord, user.profile())
            record["participationStatus"] = _recorded_status(
                event, participant_id
            ).value
            record["registrationDate"] = event.registration_dates.get(participant_id)
            participants.append(record)

        return _sort_participants(participants)

    @staticmethod
    def build_participant_stats(
        event: Event,
        participants: list[ParticipantRecord],
        now: datetime.datetime | None = None,
    ) -> dict[str, Any]:
        """Derive capacity and engagement figures from a participant list."""
        now = now or utc_now()
        total = len(participants)
        max_capacity = event.max_volunteers
        recent_cutoff = now - datetime.timedelta(days=RECENT_REGISTRATION_DAYS)

        recent = 0
        for p in participants:
            registered_at = as_datetime(p.get("registrationDate"))
            if registered_at and registered_at > recent_cutoff:
                recent += 1

        return {
            "totalParticipants": total,
            "maxCapacity": max_capacity,
            "availableSpots": max(max_capacity - total, 0),
            # Half-up rounding, not capped at 100.
            "fillPercentage": math.floor(100 * total / max_capacity + 0.5)
            if max_capacity > 0
            else 0,
            "volunteerParticipants": len(
                [p for p in participants if p.get("role") == "volunteer"]
            ),
            "recentRegistrations": recent,
            "participantsWithSkills": len([p for p in participants if p.get("skills")]),
        }

    @staticmethod
    def get_participant_stats(
        db: Client, event_id: str, now: datetime.datetime | None = None
    ) -> dict[str, Any]:
        """Fetch participant statistics for an event."""
        _, event = _load_event(db, event_id)
        participants = ParticipantService.collect_participants(db, event)
        return ParticipantService.build_participant_stats(event, participants, now)

    @staticmethod
    def remove_participant(
        db: Client, event_id: str, participant_id: str, organization_id: str
    ) -> bool:
        """Remove a volunteer from an event on behalf of its organization."""
        if not event_id or not participant_id or not organization_id:
            raise ValidationError(
                "Event ID, Participant ID, and Organization ID are required."
            )

        event_ref, event = _load_event(db, event_id)
        _ensure_owner(event, organization_id)
        if not event.is_registered(participant_id):
            raise InvalidStateError("User is not registered for this event.")

        ParticipantService.commit_membership_removal(
            db, event_ref, event.id, participant_id
        )
        ChatService.remove_event_participant(db, event, participant_id)

        current_app.logger.info(
            f"Participant {participant_id} removed from event {event_id}"
        )
        return True

    @staticmethod
    def commit_membership_removal(
        db: Client, event_ref: DocumentReference, event_id: str, participant_id: str
    ) -> None:
        """Atomically drop the event/user membership pair."""
        batch = db.batch()
        batch.update(
            event_ref,
            {
                "registeredVolunteers": firestore.ArrayRemove([participant_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )

        user_ref = db.collection(USERS_COLLECTION).document(participant_id)
        if user_ref.get().exists:
            batch.update(
                user_ref,
                {
                    "registeredEvents": firestore.ArrayRemove([event_id]),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )

        _commit(batch, f"removing {participant_id} from event {event_id}")

    @staticmethod
    def update_participant_status(
        db: Client,
        event_id: str,
        participant_id: str,
        status: str,
        organization_id: str,
    ) -> bool:
        """Record attendance for a participant."""
        if not event_id or not participant_id or not status or not organization_id:
            raise ValidationError("All parameters are required.")
        new_status = ParticipantStatus.parse(status)

        event_ref, event = _load_event(db, event_id)
        _ensure_owner(event, organization_id)

        current_status = _recorded_status(event, participant_id)
        if not current_status.can_transition_to(new_status):
            raise InvalidStateError(
                f"Cannot change status from '{current_status.value}' "
                f"to '{new_status.value}'."
            )

        event_ref.update(
            {
                f"participantStatuses.{participant_id}": {
                    "status": new_status.value,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                    "updatedBy": organization_id,
                },
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )

        current_app.logger.info(
            f"Participant {participant_id} status updated to {new_status.value} "
            f"for event {event_id}"
        )
        return True

    @staticmethod
    def bulk_remove_participants(
        db: Client, event_id: str, participant_ids: list[str], organization_id: str
    ) -> BulkRemovalResult:
        """Remove several participants, collecting individual failures."""
        if not event_id or not isinstance(participant_ids, list) or not organization_id:
            raise ValidationError(
                "Event ID, participant IDs array, and Organization ID are required."
            )

        results: BulkRemovalResult = {"successful": 0, "failed": 0, "errors": []}
        for participant_id in participant_ids:
            try:
                ParticipantService.remove_participant(
                    db, event_id, participant_id, organization_id
                )
                results["successful"] += 1
            except Exception as e:
                message = e.message if isinstance(e, AppError) else str(e)
                results["failed"] += 1
                results["errors"].append(
                    {"participantId": participant_id, "error": message}
                )
                current_app.logger.error(
                    f"Failed to remove participant {participant_id}: {message}"
                )

        current_app.logger.info(
            f"Bulk removal completed: {results['successful']} successful, "
            f"{results['failed']} failed"
        )
        return results

    @staticmethod
    def get_organization_events_with_participants(
        db: Client, organization_id: str
    ) -> list[dict[str, Any]]:
        """List an organization's events, each with participant statistics."""
        if not organization_id:
            raise ValidationError("Organization ID is required.")

        events_query = (
            db.collection(EVENTS_COLLECTION)
            .where(
                filter=firestore.FieldFilter("organizationId", "==", organization_id)
            )
            .stream()
        )

        events_with_participants = []
        for event_doc in events_query:
            event_data = event_doc.to_dict() or {}
            try:
                event = Event.from_snapshot(event_doc)
                participants = ParticipantService.collect_participants(db, event)
                stats = ParticipantService.build_participant_stats(event, participants)
            except Exception as e:
                current_app.logger.error(
                    f"Error getting stats for event {event_doc.id}: {e}"
                )
                volunteers = event_data.get("registeredVolunteers") or []
                stats = {
                    "totalParticipants": len(volunteers),
                    "maxCapacity": event_data.get("maxVolunteers") or 0,
                    "availableSpots": 0,
                    "fillPercentage": 0,
                }

            events_with_participants.append(
                {
                    **event_data,
                    "id": event_doc.id,
                    "participantStats": stats,
                    "date": as_datetime(event_data.get("date")),
                }
            )

        events_with_participants.sort(key=lambda e: e["date"] or _EPOCH, reverse=True)
        current_app.logger.info(
            f"Retrieved {len(events_with_participants)} events with participant data"
        )
        return events_with_participants

    @staticmethod
    def export_participants_data(db: Client, event_id: str) -> list[dict[str, str]]:
        """Flatten participants into spreadsheet rows."""
        rows = []
        for participant in ParticipantService.get_event_participants(db, event_id):
            registered_at = as_datetime(participant.get("registrationDate"))
            rows.append(
                {
                    "Name": participant.get("displayName") or "Unknown",
                    "Email": participant.get("email") or "",
                    "Phone": participant.get("phone") or "",
                    "Location": participant.get("location") or "",
                    "Skills": ", ".join(participant.get("skills") or []),
                    "Registration Date": registered_at.date().isoformat()
                    if registered_at
                    else "",
                    "Status": participant.get("participationStatus") or "registered",
                    "Bio": participant.get("bio") or "",
                }
            )
        return rows

    @staticmethod
    def register_volunteer(
        db: Client,
        event_id: str,
        user_id: str,
        user_data: dict[str, Any] | None = None,
        now: datetime.datetime | None = None,
    ) -> dict[str, Any]:
        """Register a volunteer for an event.

        The capacity check reads then writes, so two concurrent registrations
        can both pass it; ``maxVolunteers`` is a soft limit.
        """
        if not event_id or not user_id:
            raise ValidationError("Event ID and User ID are required.")

        UserService.ensure_user_document_exists(db, user_id, user_data)
        event_ref, event = _load_event(db, event_id)

        if event.is_registered(user_id):
            raise InvalidStateError("You are already registered for this event.")
        if event.status is not EventStatus.ACTIVE:
            raise InvalidStateError("This event is not open for registration.")
        if len(event.registered_volunteers) >= event.max_volunteers:
            raise InvalidStateError("Event is at maximum capacity.")
        event_date = as_datetime(event.date)
        if event_date and event_date < (now or utc_now()):
            raise InvalidStateError("This event has already occurred.")

        batch = db.batch()
        batch.update(
            event_ref,
            {
                "registeredVolunteers": firestore.ArrayUnion([user_id]),
                f"registrationDates.{user_id}": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        batch.update(
            db.collection(USERS_COLLECTION).document(user_id),
            {
                "registeredEvents": firestore.ArrayUnion([event_id]),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        _commit(batch, f"registering {user_id} for event {event_id}")

        chat_updated = ChatService.ensure_event_participant(db, event, user_id)
        current_app.logger.info(f"User {user_id} registered for event {event_id}")
        return {"success": True, "chatUpdated": chat_updated}

    @staticmethod
    def unregister_volunteer(db: Client, event_id: str, user_id: str) -> dict[str, Any]:
        """Withdraw a volunteer's own registration."""
        if not event_id or not user_id:
            raise ValidationError("Event ID and User ID are required.")

        event_ref, event = _load_event(db, event_id)
        if not event.is_registered(user_id):
            raise InvalidStateError("You are not registered for this event.")

        ParticipantService.commit_membership_removal(db, event_ref, event.id, user_id)
        chat_updated = ChatService.remove_event_participant(db, event, user_id)
        current_app.logger.info(f"User {user_id} unregistered from event {event_id}")
        return {"success": True, "chatUpdated": chat_updated}
