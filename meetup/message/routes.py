"""Routes for the message blueprint."""

from firebase_admin import firestore
from flask import g, request

from meetup.auth.decorators import identity_required
from meetup.errors import ValidationError
from meetup.extensions import messaging

from . import bp
from .services import MessageService


def _body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("The request body must be a JSON object.")
    return data


@bp.route("/user-messages", methods=["POST"])
@identity_required
def send_user_message():
    """Send a message to one user."""
    data = _body()
    MessageService.send_user_message(
        g.identity,
        data.get("userId", ""),
        data.get("message", ""),
        notifier=messaging.notifier,
        directory=g.directory,
    )
    return "", 204


@bp.route("/topic-messages", methods=["POST"])
@identity_required
def send_topic_message():
    """Send a message to a topic."""
    data = _body()
    MessageService.send_topic_message(
        g.identity,
        data.get("topic", ""),
        data.get("message", ""),
        notifier=messaging.notifier,
    )
    return "", 204


@bp.route("/group-messages", methods=["POST"])
@identity_required
def send_group_message():
    """Send a message to a named group."""
    data = _body()
    MessageService.send_group_message(
        firestore.client(),
        g.identity,
        data.get("groupName", ""),
        data.get("message", ""),
        notifier=messaging.notifier,
    )
    return "", 204
