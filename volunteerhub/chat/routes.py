"""Routes for the chat blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from volunteerhub.auth.decorators import login_required
from volunteerhub.errors import AppError, InternalError, ValidationError

from . import bp
from .forms import ModerationForm
from .moderation import moderate


@bp.route("/moderation", methods=["POST"])
@login_required
def moderation() -> Any:
    """Callable moderation endpoint for room admins."""
    form = ModerationForm()
    if not form.validate():
        errors = "; ".join(
            f"{name}: {', '.join(messages)}" for name, messages in form.errors.items()
        )
        raise ValidationError(errors or "Invalid moderation request.")

    try:
        result = moderate(
            firestore.client(),
            g.app_session.uid,
            form.operation.data,
            form.chatRoomId.data,
            message_id=form.messageId.data or None,
            participant_id=form.participantId.data or None,
        )
    except AppError:
        raise
    except Exception as e:
        current_app.logger.error(f"Unexpected moderation failure: {e}")
        raise InternalError("Moderation failed.") from e
    return jsonify(result)
