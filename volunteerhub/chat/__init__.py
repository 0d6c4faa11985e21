"""The chat blueprint: room membership, mentions and moderation."""

from flask import Blueprint

bp = Blueprint("chat", __name__, url_prefix="/api")

from . import routes  # noqa: E402

__all__ = ["routes"]
