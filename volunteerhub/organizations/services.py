"""Service layer for organization followers.

``organizations.followers`` and ``users.followedOrganizations`` mirror each
other and are written in the same batch.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional, cast

from firebase_admin import firestore
from flask import current_app

from volunteerhub.core.constants import (
    ORGANIZATIONS_COLLECTION,
    RECENT_FOLLOWER_DAYS,
    USERS_COLLECTION,
)
from volunteerhub.errors import (
    DuplicateResourceError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from volunteerhub.user.models import User, UserRole
from volunteerhub.utils import as_datetime, utc_now

from .models import Organization

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

FollowersCallback = Callable[[list[dict[str, Any]], Optional[dict[str, Any]]], None]


def _load_organization(
    db: Client, organization_id: str
) -> tuple[DocumentReference, Organization]:
    org_ref = db.collection(ORGANIZATIONS_COLLECTION).document(organization_id)
    org_doc = cast("DocumentSnapshot", org_ref.get())
    if not org_doc.exists:
        raise NotFoundError("Organization not found.")
    return org_ref, Organization.from_snapshot(org_doc)


def _empty_stats() -> dict[str, int]:
    return {
        "totalFollowers": 0,
        "volunteerFollowers": 0,
        "organizationFollowers": 0,
        "recentFollowers": 0,
        "followersWithSkills": 0,
    }


class FollowService:
    """Service class for following organizations."""

    @staticmethod
    def follow_organization(db: Client, user_id: str, organization_id: str) -> bool:
        """Add a user to an organization's followers."""
        if not user_id or not organization_id:
            raise ValidationError("User ID and Organization ID are required.")
        if user_id == organization_id:
            raise ValidationError("Organizations cannot follow themselves.")

        org_ref, organization = _load_organization(db, organization_id)
        if organization.has_follower(user_id):
            raise DuplicateResourceError("Already following this organization.")

        batch = db.batch()
        batch.update(
            org_ref,
            {
                "followers": firestore.ArrayUnion([user_id]),
                "followerCount": organization.follower_count + 1,
                f"followerDates.{user_id}": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        if user_ref.get().exists:
            batch.update(
                user_ref,
                {
                    "followedOrganizations": firestore.ArrayUnion([organization_id]),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
        FollowService._commit(batch, f"{user_id} following {organization_id}")

        current_app.logger.info(f"User {user_id} followed organization {organization_id}")
        return True

    @staticmethod
    def unfollow_organization(db: Client, user_id: str, organization_id: str) -> bool:
        """Remove a user from an organization's followers."""
        if not user_id or not organization_id:
            raise ValidationError("User ID and Organization ID are required.")

        org_ref, organization = _load_organization(db, organization_id)
        if not organization.has_follower(user_id):
            raise InvalidStateError("Not following this organization.")

        batch = db.batch()
        batch.update(
            org_ref,
            {
                "followers": firestore.ArrayRemove([user_id]),
                "followerCount": max(organization.follower_count - 1, 0),
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        if user_ref.get().exists:
            batch.update(
                user_ref,
                {
                    "followedOrganizations": firestore.ArrayRemove([organization_id]),
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
        FollowService._commit(batch, f"{user_id} unfollowing {organization_id}")

        current_app.logger.info(
            f"User {user_id} unfollowed organization {organization_id}"
        )
        return True

    @staticmethod
    def remove_follower(db: Client, organization_id: str, follower_id: str) -> bool:
        """Drop a follower on the organization's initiative."""
        if not organization_id or not follower_id:
            raise ValidationError("Organization ID and Follower ID are required.")
        return FollowService.unfollow_organization(db, follower_id, organization_id)

    @staticmethod
    def _commit(batch: Any, description: str) -> None:
        try:
            batch.commit()
        except Exception as e:
            current_app.logger.error(f"Batch commit failed for {description}: {e}")
            raise InternalError("Failed to update followers.") from e

    @staticmethod
    def collect_followers(
        db: Client, organization: Organization, logger: Any = None
    ) -> list[dict[str, Any]]:
        """Resolve follower profiles, skipping unreadable user documents."""
        logger = logger or current_app.logger
        followers = []
        for follower_id in organization.followers:
            try:
                user_doc = db.collection(USERS_COLLECTION).document(follower_id).get()
                if not user_doc.exists:
                    continue
                user = User.from_snapshot(user_doc)
            except Exception as e:
                logger.error(f"Error fetching follower {follower_id}: {e}")
                continue
            record = user.profile()
            record["followedAt"] = (
                organization.follower_dates.get(follower_id) or user.followed_at
            )
            followers.append(record)

        followers.sort(key=lambda f: (f.get("displayName") or "").lower())
        return followers

    @staticmethod
    def build_follower_stats(
        followers: list[dict[str, Any]], now: datetime.datetime | None = None
    ) -> dict[str, int]:
        cutoff = (now or utc_now()) - datetime.timedelta(days=RECENT_FOLLOWER_DAYS)
        stats = _empty_stats()
        stats["totalFollowers"] = len(followers)
        for follower in followers:
            if follower.get("role") == UserRole.VOLUNTEER.value:
                stats["volunteerFollowers"] += 1
            elif follower.get("role") == UserRole.ORGANIZATION.value:
                stats["organizationFollowers"] += 1
            followed_at = as_datetime(follower.get("followedAt"))
            if followed_at and followed_at > cutoff:
                stats["recentFollowers"] += 1
            if follower.get("skills"):
                stats["followersWithSkills"] += 1
        return stats

    @staticmethod
    def get_organization_followers(
        db: Client, organization_id: str
    ) -> list[dict[str, Any]]:
        if not organization_id:
            raise ValidationError("Organization ID is required.")
        _, organization = _load_organization(db, organization_id)
        followers = FollowService.collect_followers(db, organization)
        current_app.logger.info(
            f"Retrieved {len(followers)} followers for organization {organization_id}"
        )
        return followers

    @staticmethod
    def get_follower_stats(
        db: Client, organization_id: str, now: datetime.datetime | None = None
    ) -> dict[str, int]:
        followers = FollowService.get_organization_followers(db, organization_id)
        return FollowService.build_follower_stats(followers, now)

    @staticmethod
    def get_user_following(db: Client, user_id: str) -> list[dict[str, Any]]:
        """Return the organizations a user follows."""
        if not user_id:
            raise ValidationError("User ID is required.")
        user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
        if not user_doc.exists:
            return []
        user = User.from_snapshot(user_doc)

        organizations = []
        for organization_id in user.followed_organizations:
            try:
                org_doc = (
                    db.collection(ORGANIZATIONS_COLLECTION)
                    .document(organization_id)
                    .get()
                )
            except Exception as e:
                current_app.logger.error(
                    f"Error fetching organization {organization_id}: {e}"
                )
                continue
            if org_doc.exists:
                organizations.append({"id": org_doc.id, **(org_doc.to_dict() or {})})
        return organizations

    @staticmethod
    def is_following(db: Client, user_id: str, organization_id: str) -> bool:
        if not user_id or not organization_id:
            return False
        try:
            _, organization = _load_organization(db, organization_id)
        except NotFoundError:
            return False
        return organization.has_follower(user_id)

    @staticmethod
    def subscribe_to_organization_followers(
        db: Client, organization_id: str, callback: FollowersCallback
    ) -> Callable[[], None]:
        """Push follower lists and stats to ``callback`` on every change.

        The listener runs on a Firestore background thread, so it logs through
        the logger captured at subscription time. Returns an unsubscribe
        function.
        """
        if not organization_id:
            raise ValidationError("Organization ID is required.")
        logger = current_app.logger

        def on_snapshot(doc_snapshots, changes, read_time):
            try:
                snapshot = doc_snapshots[0] if doc_snapshots else None
                if snapshot is None or not snapshot.exists:
                    logger.error(f"Organization {organization_id} not found")
                    callback([], None)
                    return
                organization = Organization.from_snapshot(snapshot)
                followers = FollowService.collect_followers(db, organization, logger)
                callback(followers, FollowService.build_follower_stats(followers))
            except Exception as e:
                logger.error(f"Error in followers listener: {e}")
                callback([], None)

        watch = (
            db.collection(ORGANIZATIONS_COLLECTION)
            .document(organization_id)
            .on_snapshot(on_snapshot)
        )
        return watch.unsubscribe
