"""Routes for the user blueprint."""

from firebase_admin import firestore
from flask import current_app, jsonify, request

from meetup.core.constants import INSTANCE_ID_HEADER
from meetup.errors import ValidationError
from meetup.extensions import messaging

from . import bp
from .services import UserService


@bp.route("/me", methods=["PUT"])
def register_device():
    """Register the calling app instance and its registration token."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("The request body must be a JSON object.")

    instance_id = request.headers.get(INSTANCE_ID_HEADER) or data.get("instanceId", "")
    token = data.get("registrationToken", "")
    user_id = UserService.register(
        firestore.client(), instance_id, token, messaging.verifier
    )
    current_app.logger.info(f"Instance {instance_id} registered as user {user_id}")
    return jsonify({"userId": user_id})
