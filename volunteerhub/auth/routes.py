"""Routes for the auth blueprint."""

from firebase_admin import auth, firestore
from flask import current_app, g, jsonify, session

from volunteerhub.errors import UnauthenticatedError, ValidationError

from . import bp
from .decorators import login_required
from .forms import SessionLoginForm
from .session import build_session


@bp.route("/session", methods=["POST"])
def session_login():
    """
    Called by the client after a successful Firebase sign-in.
    Verifies the ID token and creates a server-side session.
    """
    form = SessionLoginForm()
    if not form.validate():
        raise ValidationError("An ID token is required.")
    try:
        decoded_token = auth.verify_id_token(form.idToken.data)
    except Exception as e:
        current_app.logger.error(f"Error during session login: {e}")
        raise UnauthenticatedError("Invalid token.") from e

    uid = decoded_token["uid"]
    app_session = build_session(firestore.client(), uid, decoded_token)
    session["user_id"] = uid
    current_app.logger.info(f"Session created for {uid}")
    return jsonify({"success": True, "session": app_session.to_dict()})


@bp.route("/session", methods=["GET"])
@login_required
def get_session():
    """Describe the current caller."""
    return jsonify({"success": True, "session": g.app_session.to_dict()})


@bp.route("/logout", methods=["POST"])
def logout():
    """Clear server-side session info. Firebase sign-out happens on the client."""
    session.clear()
    return jsonify({"success": True})
