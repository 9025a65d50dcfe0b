"""Service layer for direct, topic and group messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from meetup.errors import NotFoundError, ValidationError
from meetup.group.services import GroupService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from meetup.messaging.notifier import Notifier
    from meetup.user.models import Identity
    from meetup.user.services import IdentityDirectory

logger = logging.getLogger(__name__)


def _payload(sender: Identity, message: str) -> dict[str, str]:
    if not message:
        raise ValidationError("A message is required.")
    return {"message": message, "requestUserId": sender.key}


class MessageService:
    """Send data messages on behalf of a known caller."""

    @staticmethod
    def send_user_message(
        sender: Identity,
        user_key: str,
        message: str,
        *,
        notifier: Notifier,
        directory: IdentityDirectory,
    ) -> str:
        """Send a message to a single user's device."""
        if not user_key:
            raise ValidationError("A target user is required.")
        data = _payload(sender, message)
        address = directory.address_of(user_key)
        if not address:
            raise NotFoundError(f"User {user_key} not found.")
        message_id = notifier.send(data, token=address)
        logger.info(f"Message {message_id} sent from {sender.key} to user {user_key}")
        return message_id

    @staticmethod
    def send_topic_message(
        sender: Identity, topic: str, message: str, *, notifier: Notifier
    ) -> str:
        """Send a message to every device subscribed to a topic."""
        if not topic:
            raise ValidationError("A topic is required.")
        data = _payload(sender, message)
        message_id = notifier.send(data, topic=topic)
        logger.info(f"Message {message_id} sent from {sender.key} to topic {topic}")
        return message_id

    @staticmethod
    def send_group_message(
        db: Client,
        sender: Identity,
        group_name: str,
        message: str,
        *,
        notifier: Notifier,
    ) -> str:
        """Send a message to every device in a named group."""
        if not group_name:
            raise ValidationError("A group name is required.")
        data = _payload(sender, message)
        group = GroupService.find_group(db, group_name)
        if group is None or not group.notification_key:
            raise NotFoundError(f"Group {group_name} not found.")
        message_id = notifier.send(data, token=group.notification_key)
        logger.info(
            f"Message {message_id} sent from {sender.key} to group {group_name}"
        )
        return message_id
