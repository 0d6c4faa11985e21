"""Service layer for user documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from volunteerhub.core.constants import USERS_COLLECTION

from .models import User, UserRole

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


class UserService:
    """Service class for user-related Firestore interaction."""

    @staticmethod
    def get_user_by_id(db: Client, user_id: str) -> User | None:
        """Fetch and validate a user by their ID."""
        user_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(user_id).get()
        )
        if not user_doc.exists:
            return None
        return User.from_snapshot(user_doc)

    @staticmethod
    def ensure_user_document_exists(
        db: Client, user_id: str, user_data: dict[str, Any] | None = None
    ) -> bool:
        """Create a default user document if one is missing.

        Returns:
            bool: True when a document was created.
        """
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        user_doc = cast("DocumentSnapshot", user_ref.get())
        if user_doc.exists:
            return False

        current_app.logger.info(f"User document {user_id} missing, creating it.")
        default_data: dict[str, Any] = {
            "uid": user_id,
            "registeredEvents": [],
            "followedOrganizations": [],
            "role": UserRole.VOLUNTEER.value,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        default_data.update(user_data or {})
        user_ref.set(default_data)
        return True
