from firebase_admin import firestore
from flask import Blueprint, current_app, g, jsonify, request

from .core.constants import ERROR_LOGS_COLLECTION
from .errors import (
    AppError,
    DuplicateResourceError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def record_error(error, code):
    """Persist a server-side failure to the error log collection.

    Best effort: a failing write is logged and otherwise ignored.
    """
    app_session = g.get("app_session")
    try:
        firestore.client().collection(ERROR_LOGS_COLLECTION).add(
            {
                "userId": app_session.uid if app_session else None,
                "error": str(error),
                "code": code,
                "context": {"path": request.path, "method": request.method},
                "timestamp": firestore.SERVER_TIMESTAMP,
                "userAgent": request.headers.get("User-Agent", "unknown"),
            }
        )
    except Exception as e:
        current_app.logger.error(f"Failed to log error: {e}")


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(UnauthenticatedError)
def handle_unauthenticated_error(error):
    """Handles requests made without a valid identity."""
    current_app.logger.warning(f"Unauthenticated: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(PermissionDeniedError)
def handle_permission_denied_error(error):
    """Handles ownership and role failures."""
    current_app.logger.warning(f"Permission Denied: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(InvalidStateError)
def handle_invalid_state_error(error):
    """Handles operations rejected because of the resource's current state."""
    current_app.logger.warning(f"Invalid State Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    record_error(error.message, error.code)
    return jsonify(error.to_dict()), error.status_code


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return (
        jsonify({"success": False, "error": "not-found", "message": "Not found."}),
        404,
    )


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    record_error(getattr(e, "original_exception", None) or e, "internal")
    # Avoid exposing raw store error details to the caller
    return (
        jsonify(
            {
                "success": False,
                "error": "internal",
                "message": "Internal server error. Please try again later.",
            }
        ),
        500,
    )
