"""The authenticated caller, resolved once per request."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from firebase_admin import auth, firestore
from flask import current_app, g, request, session
from flask_login import UserMixin

from volunteerhub.user.models import UserRole
from volunteerhub.user.services import UserService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


@dataclass
class AppSession(UserMixin):
    """Identity and role of the caller, passed explicitly to services."""

    uid: str
    role: UserRole = UserRole.VOLUNTEER
    display_name: str = ""
    registered_events: tuple[str, ...] = field(default_factory=tuple)
    followed_organizations: tuple[str, ...] = field(default_factory=tuple)

    def get_id(self) -> str:
        """Return the Firebase UID."""
        return self.uid

    @property
    def is_organization(self) -> bool:
        return self.role is UserRole.ORGANIZATION

    @property
    def organization_id(self) -> Optional[str]:
        """The organization this caller acts for, if any."""
        return self.uid if self.is_organization else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "role": self.role.value,
            "displayName": self.display_name,
            "registeredEvents": list(self.registered_events),
            "followedOrganizations": list(self.followed_organizations),
        }


def build_session(
    db: Client, uid: str, claims: dict[str, Any] | None = None
) -> AppSession:
    """Build an AppSession from the user document, falling back to token claims."""
    claims = claims or {}
    user = UserService.get_user_by_id(db, uid)
    if user is None:
        role = UserRole(claims["role"]) if claims.get("role") in {
            r.value for r in UserRole
        } else UserRole.VOLUNTEER
        return AppSession(uid=uid, role=role, display_name=claims.get("name") or "")
    return AppSession(
        uid=uid,
        role=user.role,
        display_name=user.display_name,
        registered_events=tuple(user.registered_events),
        followed_organizations=tuple(user.followed_organizations),
    )


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer ") :].strip() or None
    return None


def load_app_session() -> None:
    """Populate ``g.app_session`` from a Bearer token or the cookie session."""
    g.app_session = None
    token = _bearer_token()
    try:
        if token:
            claims = auth.verify_id_token(token)
            g.app_session = build_session(firestore.client(), claims["uid"], claims)
            return

        user_id = session.get("user_id")
        if user_id is None:
            return
        g.app_session = build_session(firestore.client(), user_id)
    except Exception as e:
        current_app.logger.warning(f"Could not resolve caller identity: {e}")
        g.app_session = None
        if not token:
            session.clear()
