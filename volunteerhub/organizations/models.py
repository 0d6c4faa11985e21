"""Data models for organizations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from volunteerhub.errors import ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot


@dataclass
class Organization:
    """An organization document in Firestore, validated on read."""

    id: str
    name: str = ""
    followers: list[str] = field(default_factory=list)
    follower_count: int = 0
    follower_dates: dict[str, Any] = field(default_factory=dict)
    events: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, organization_id: str, data: dict[str, Any]) -> Organization:
        for key in ("followers", "events"):
            if not isinstance(data.get(key) or [], list):
                raise ValidationError(
                    f"Organization {organization_id} has a malformed '{key}'."
                )
        follower_dates = data.get("followerDates") or {}
        if not isinstance(follower_dates, dict):
            raise ValidationError(
                f"Organization {organization_id} has malformed follower dates."
            )
        follower_count = data.get("followerCount") or 0
        if isinstance(follower_count, bool) or not isinstance(follower_count, int):
            raise ValidationError("Field 'followerCount' must be an integer.")

        return cls(
            id=organization_id,
            name=data.get("name") or data.get("displayName") or "",
            followers=list(data.get("followers") or []),
            follower_count=follower_count,
            follower_dates=dict(follower_dates),
            events=list(data.get("events") or []),
        )

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> Organization:
        return cls.from_dict(snapshot.id, snapshot.to_dict() or {})

    def has_follower(self, user_id: str) -> bool:
        return user_id in self.followers
