"""The triggers blueprint: document-write and scheduled entry points."""

from flask import Blueprint

bp = Blueprint("triggers", __name__, url_prefix="/triggers")

from . import routes  # noqa: E402

__all__ = ["routes"]
