"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import (
    DEFAULT_PROVIDER_TIMEOUT,
    DEFAULT_STORE_MAX_ATTEMPTS,
    DEFAULT_VERIFY_DEADLINE,
    DEFAULT_VERIFY_MAX_ATTEMPTS,
    FCM_GROUP_URL,
    INSTANCE_ID_URL,
)
from .extensions import messaging


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from the best available credentials."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
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
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except ValueError as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__)

    # Load configuration
    app.config.from_mapping(
        FCM_SERVER_KEY=os.environ.get("FCM_SERVER_KEY") or "",
        FCM_PROJECT_NUMBER=os.environ.get("FCM_PROJECT_NUMBER") or "",
        FCM_GROUP_URL=os.environ.get("FCM_GROUP_URL") or FCM_GROUP_URL,
        FCM_REQUEST_TIMEOUT=float(
            os.environ.get("FCM_REQUEST_TIMEOUT") or DEFAULT_PROVIDER_TIMEOUT
        ),
        INSTANCE_ID_URL=os.environ.get("INSTANCE_ID_URL") or INSTANCE_ID_URL,
        APP_NAMESPACE=os.environ.get("APP_NAMESPACE") or "",
        IDENTITY_VERIFY_MAX_ATTEMPTS=int(
            os.environ.get("IDENTITY_VERIFY_MAX_ATTEMPTS") or DEFAULT_VERIFY_MAX_ATTEMPTS
        ),
        IDENTITY_VERIFY_DEADLINE=float(
            os.environ.get("IDENTITY_VERIFY_DEADLINE") or DEFAULT_VERIFY_DEADLINE
        ),
        STORE_MAX_ATTEMPTS=int(
            os.environ.get("STORE_MAX_ATTEMPTS") or DEFAULT_STORE_MAX_ATTEMPTS
        ),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)
        if not app.config["FCM_SERVER_KEY"]:
            app.logger.warning("FCM_SERVER_KEY is not set; group operations will fail.")

    # Initialize extensions
    messaging.init_app(app)

    # Register blueprints
    from . import user as user_bp

    app.register_blueprint(user_bp.bp)

    from . import item as item_bp

    app.register_blueprint(item_bp.bp)

    from . import group as group_bp

    app.register_blueprint(group_bp.bp)

    from . import message as message_bp

    app.register_blueprint(message_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
