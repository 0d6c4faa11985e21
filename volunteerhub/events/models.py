"""Data models for the events feature."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from volunteerhub.errors import InvalidStateError, ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot


class EventStatus(str, Enum):
    """Lifecycle state of an event."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> EventStatus:
        """Return the member for ``value`` or raise a ValidationError."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValidationError(
                f"Invalid event status. Must be one of: {valid}"
            ) from None

    def can_transition_to(self, target: EventStatus) -> bool:
        """Check whether moving from this status to ``target`` is allowed."""
        return target in EVENT_STATUS_TRANSITIONS[self]

    def ensure_transition(self, target: EventStatus) -> None:
        """Raise InvalidStateError unless ``target`` is reachable."""
        if not self.can_transition_to(target):
            raise InvalidStateError(
                f"Cannot move an event from '{self.value}' to '{target.value}'."
            )


EVENT_STATUS_TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.DRAFT: frozenset({EventStatus.ACTIVE, EventStatus.CANCELLED}),
    EventStatus.ACTIVE: frozenset(
        {EventStatus.DRAFT, EventStatus.COMPLETED, EventStatus.CANCELLED}
    ),
    EventStatus.COMPLETED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}


class ParticipantStatus(str, Enum):
    """Attendance state of a single participant."""

    REGISTERED = "registered"
    ATTENDED = "attended"
    NO_SHOW = "no-show"

    @classmethod
    def parse(cls, value: Any) -> ParticipantStatus:
        """Return the member for ``value`` or raise a ValidationError."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValidationError(f"Invalid status. Must be one of: {valid}") from None

    def can_transition_to(self, target: ParticipantStatus) -> bool:
        """Check whether moving from this status to ``target`` is allowed."""
        return target in PARTICIPANT_STATUS_TRANSITIONS[self]


# Attendance can be corrected after the fact, so every state is reachable.
PARTICIPANT_STATUS_TRANSITIONS: dict[ParticipantStatus, frozenset[ParticipantStatus]] = {
    ParticipantStatus.REGISTERED: frozenset(
        {
            ParticipantStatus.REGISTERED,
            ParticipantStatus.ATTENDED,
            ParticipantStatus.NO_SHOW,
        }
    ),
    ParticipantStatus.ATTENDED: frozenset(
        {
            ParticipantStatus.ATTENDED,
            ParticipantStatus.NO_SHOW,
            ParticipantStatus.REGISTERED,
        }
    ),
    ParticipantStatus.NO_SHOW: frozenset(
        {
            ParticipantStatus.NO_SHOW,
            ParticipantStatus.ATTENDED,
            ParticipantStatus.REGISTERED,
        }
    ),
}


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"Field '{key}' must be a list of IDs.")
    return list(value)


def _mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValidationError(f"Field '{key}' must be a map.")
    return dict(value)


@dataclass
class Event:
    """An event document in Firestore, validated on read."""

    id: str
    organization_id: str
    registered_volunteers: list[str] = field(default_factory=list)
    max_volunteers: int = 0
    with_chat: bool = False
    participant_statuses: dict[str, Any] = field(default_factory=dict)
    registration_dates: dict[str, Any] = field(default_factory=dict)
    status: EventStatus = EventStatus.ACTIVE
    title: str = ""
    description: str = ""
    location: Any = None
    date: Any = None
    has_custom_image: bool = False
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, event_id: str, data: dict[str, Any]) -> Event:
        """Build an Event from raw document data."""
        organization_id = data.get("organizationId")
        if not organization_id or not isinstance(organization_id, str):
            raise ValidationError(f"Event {event_id} has no organizationId.")

        max_volunteers = data.get("maxVolunteers") or 0
        if isinstance(max_volunteers, bool):
            raise ValidationError("Field 'maxVolunteers' must be an integer.")
        try:
            max_volunteers = int(max_volunteers)
        except (TypeError, ValueError):
            raise ValidationError(
                "Field 'maxVolunteers' must be an integer."
            ) from None

        return cls(
            id=event_id,
            organization_id=organization_id,
            registered_volunteers=_string_list(data, "registeredVolunteers"),
            max_volunteers=max(max_volunteers, 0),
            with_chat=bool(data.get("withChat", False)),
            participant_statuses=_mapping(data, "participantStatuses"),
            registration_dates=_mapping(data, "registrationDates"),
            status=EventStatus.parse(data.get("status") or EventStatus.ACTIVE.value),
            title=data.get("title") or "",
            description=data.get("description") or "",
            location=data.get("location"),
            date=data.get("date"),
            has_custom_image=bool(data.get("hasCustomImage", False)),
            image_url=data.get("imageUrl"),
        )

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> Event:
        """Build an Event from a Firestore snapshot."""
        return cls.from_dict(snapshot.id, snapshot.to_dict() or {})

    def is_registered(self, user_id: str) -> bool:
        """Check whether a user is in the registered volunteers list."""
        return user_id in self.registered_volunteers

    def participant_status(self, user_id: str) -> ParticipantStatus:
        """Return the recorded attendance status, defaulting to registered."""
        entry = self.participant_statuses.get(user_id) or {}
        raw = entry.get("status") if isinstance(entry, dict) else None
        if raw is None:
            return ParticipantStatus.REGISTERED
        return ParticipantStatus.parse(raw)
