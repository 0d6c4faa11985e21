"""Initialize the Flask app and Firebase."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import MESSAGE_RETENTION_DAYS


def _env_flag(name, default="false"):
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env JSON, a local file, or ADC."""
    cred = None
    project_id = app.config.get("FIREBASE_PROJECT_ID")

    # First, try to load from environment variable (for production)
    cred_json = app.config.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id") or project_id
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            storage_bucket = app.config.get("FIREBASE_STORAGE_BUCKET")
            if not storage_bucket and project_id:
                storage_bucket = f"{project_id}.firebasestorage.app"

            firebase_options = {"storageBucket": storage_bucket}
            if project_id:
                firebase_options["projectId"] = project_id

            firebase_admin.initialize_app(cred, firebase_options)
        except ValueError:
            # Raised when the default app already exists.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FIREBASE_CREDENTIALS_JSON=os.environ.get("FIREBASE_CREDENTIALS_JSON"),
        FIREBASE_PROJECT_ID=os.environ.get("FIREBASE_PROJECT_ID"),
        FIREBASE_STORAGE_BUCKET=os.environ.get("FIREBASE_STORAGE_BUCKET"),
        TRIGGER_SECRET=os.environ.get("TRIGGER_SECRET"),
        MESSAGE_RETENTION_DAYS=int(
            os.environ.get("MESSAGE_RETENTION_DAYS") or MESSAGE_RETENTION_DAYS
        ),
        SCHEDULER_ENABLED=_env_flag("SCHEDULER_ENABLED"),
    )

    if test_config:
        app.config.update(test_config)

    # Firebase is mocked in tests
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Register blueprints
    from . import auth as auth_bp

    app.register_blueprint(auth_bp.bp)

    from . import participants as participants_bp

    app.register_blueprint(participants_bp.bp)

    from . import events as events_bp

    app.register_blueprint(events_bp.bp)

    from . import organizations as organizations_bp

    app.register_blueprint(organizations_bp.bp)

    from . import chat as chat_bp

    app.register_blueprint(chat_bp.bp)

    from . import triggers as triggers_bp

    app.register_blueprint(triggers_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    from .auth.session import load_app_session

    app.before_request(load_app_session)

    if app.config.get("SCHEDULER_ENABLED") and not app.config.get("TESTING"):
        from .triggers.scheduler import init_scheduler

        init_scheduler(app)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
