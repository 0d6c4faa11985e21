"""Data models for the user feature."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, TypedDict

from volunteerhub.core.constants import DEFAULT_DISPLAY_NAME, DEFAULT_PHOTO_URL
from volunteerhub.errors import ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot


class UserRole(str, Enum):
    """Role discriminator stored on every user document."""

    VOLUNTEER = "volunteer"
    ORGANIZATION = "organization"


class ParticipantRecord(TypedDict, total=False):
    """A registered volunteer joined with their profile fields."""

    id: str
    displayName: str
    email: str
    photoURL: str
    role: str
    bio: str
    location: str
    skills: list[str]
    phone: str
    participationStatus: str
    registrationDate: Any


@dataclass
class User:
    """A user document in Firestore, validated on read."""

    id: str
    display_name: str = DEFAULT_DISPLAY_NAME
    email: str = ""
    photo_url: str = DEFAULT_PHOTO_URL
    role: UserRole = UserRole.VOLUNTEER
    bio: str = ""
    location: str = ""
    skills: list[str] = field(default_factory=list)
    phone: str = ""
    registered_events: list[str] = field(default_factory=list)
    followed_organizations: list[str] = field(default_factory=list)
    followed_at: Optional[Any] = None

    @classmethod
    def from_dict(cls, user_id: str, data: dict[str, Any]) -> User:
        """Build a User from raw document data."""
        try:
            role = UserRole(data.get("role") or UserRole.VOLUNTEER.value)
        except ValueError:
            raise ValidationError(f"User {user_id} has an unknown role.") from None

        skills = data.get("skills") or []
        if not isinstance(skills, list):
            raise ValidationError(f"User {user_id} has malformed skills.")

        for key in ("registeredEvents", "followedOrganizations"):
            if not isinstance(data.get(key) or [], list):
                raise ValidationError(f"User {user_id} has a malformed '{key}'.")

        return cls(
            id=user_id,
            display_name=data.get("displayName") or DEFAULT_DISPLAY_NAME,
            email=data.get("email") or "",
            photo_url=data.get("photoURL") or DEFAULT_PHOTO_URL,
            role=role,
            bio=data.get("bio") or "",
            location=data.get("location") or "",
            skills=list(skills),
            phone=data.get("phone") or "",
            registered_events=list(data.get("registeredEvents") or []),
            followed_organizations=list(data.get("followedOrganizations") or []),
            followed_at=data.get("followedAt"),
        )

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> User:
        """Build a User from a Firestore snapshot."""
        return cls.from_dict(snapshot.id, snapshot.to_dict() or {})

    def profile(self) -> dict[str, Any]:
        """Return the public profile fields in their stored camelCase form."""
        return {
            "id": self.id,
            "displayName": self.display_name,
            "email": self.email,
            "photoURL": self.photo_url,
            "role": self.role.value,
            "bio": self.bio,
            "location": self.location,
            "skills": list(self.skills),
            "phone": self.phone,
        }
