"""Routes for the group blueprint."""

from firebase_admin import firestore
from flask import current_app, g, request

from meetup.auth.decorators import identity_required
from meetup.errors import ValidationError
from meetup.extensions import messaging

from . import bp
from .services import GroupService


@bp.route("", methods=["PUT"])
@identity_required
def join_group():
    """Join a named group, creating it when it does not exist."""
    data = request.get_json(silent=True) or {}
    group_name = data.get("groupName")
    if not isinstance(group_name, str) or not group_name:
        raise ValidationError("groupName is required.")

    GroupService.join(
        firestore.client(),
        g.identity,
        group_name,
        group_client=messaging.group_client,
        directory=g.directory,
    )
    current_app.logger.info(f"User {g.identity.key} joined group {group_name}")
    return "", 204


@bp.route("/<string:group_name>", methods=["DELETE"])
@identity_required
def leave_group(group_name):
    """Leave a named group. The owner leaving deletes the group."""
    GroupService.leave(
        firestore.client(),
        g.identity,
        group_name,
        group_client=messaging.group_client,
        directory=g.directory,
    )
    return "", 204
