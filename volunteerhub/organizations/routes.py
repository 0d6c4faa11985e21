"""Routes for the organizations blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import g, jsonify

from volunteerhub.auth.decorators import login_required
from volunteerhub.errors import PermissionDeniedError
from volunteerhub.user.models import UserRole

from . import bp
from .services import FollowService


@bp.route("/organizations/<string:organization_id>/follow", methods=["POST"])
@login_required
def follow(organization_id: str) -> Any:
    db = firestore.client()
    FollowService.follow_organization(db, g.app_session.uid, organization_id)
    return jsonify({"success": True, "following": True})


@bp.route("/organizations/<string:organization_id>/follow", methods=["DELETE"])
@login_required
def unfollow(organization_id: str) -> Any:
    db = firestore.client()
    FollowService.unfollow_organization(db, g.app_session.uid, organization_id)
    return jsonify({"success": True, "following": False})


@bp.route("/organizations/<string:organization_id>/follow", methods=["GET"])
@login_required
def following_status(organization_id: str) -> Any:
    db = firestore.client()
    following = FollowService.is_following(db, g.app_session.uid, organization_id)
    return jsonify({"success": True, "following": following})


@bp.route("/organizations/<string:organization_id>/followers", methods=["GET"])
@login_required
def list_followers(organization_id: str) -> Any:
    db = firestore.client()
    followers = FollowService.get_organization_followers(db, organization_id)
    return jsonify({"success": True, "followers": followers})


@bp.route("/organizations/<string:organization_id>/followers/stats", methods=["GET"])
@login_required
def follower_stats(organization_id: str) -> Any:
    db = firestore.client()
    stats = FollowService.get_follower_stats(db, organization_id)
    return jsonify({"success": True, "stats": stats})


@bp.route(
    "/organizations/<string:organization_id>/followers/<string:follower_id>",
    methods=["DELETE"],
)
@login_required(role=UserRole.ORGANIZATION)
def remove_follower(organization_id: str, follower_id: str) -> Any:
    if g.app_session.organization_id != organization_id:
        raise PermissionDeniedError("You can only manage your own followers.")
    db = firestore.client()
    FollowService.remove_follower(db, organization_id, follower_id)
    return jsonify({"success": True, "message": "Follower removed"})


@bp.route("/users/me/following", methods=["GET"])
@login_required
def my_following() -> Any:
    """List the organizations the caller follows."""
    db = firestore.client()
    organizations = FollowService.get_user_following(db, g.app_session.uid)
    return jsonify({"success": True, "organizations": organizations})
