"""Data messages delivered through Firebase Cloud Messaging."""

from __future__ import annotations

import logging
from typing import Any, Optional

from firebase_admin import exceptions, messaging

from meetup.errors import ProviderRejectedError, ProviderUnavailableError

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    exceptions.UnavailableError,
    exceptions.DeadlineExceededError,
    exceptions.InternalError,
)


class Notifier:
    """Send data messages to a device, a device group or a topic."""

    def __init__(self, app: Optional[Any] = None) -> None:
        """Initialize the notifier for a firebase_admin app (default app if None)."""
        self.app = app

    def send(
        self,
        data: dict[str, str],
        token: Optional[str] = None,
        topic: Optional[str] = None,
    ) -> str:
        """Send a message and return its message ID.

        ``token`` may be a registration token or a device group key.
        """
        message = messaging.Message(
            data={k: str(v) for k, v in data.items()}, token=token, topic=topic
        )
        try:
            return messaging.send(message, app=self.app)
        except _TRANSIENT_ERRORS as e:
            raise ProviderUnavailableError(f"Message delivery failed: {e}") from e
        except exceptions.FirebaseError as e:
            raise ProviderRejectedError(f"Message rejected: {e}") from e
        except ValueError as e:
            raise ProviderRejectedError(f"Invalid message: {e}") from e

    def broadcast(self, group_key: str, data: dict[str, str]) -> bool:
        """Send to a device group without ever raising.

        Delivery is at most once; failures are logged and reported as False.
        """
        if not group_key:
            logger.warning("Skipping broadcast to a group without a key")
            return False
        try:
            message_id = self.send(data, token=group_key)
        except (ProviderUnavailableError, ProviderRejectedError) as e:
            logger.warning(f"Broadcast to group {group_key} failed: {e.message}")
            return False
        logger.info(f"Broadcast {message_id} sent to group {group_key}")
        return True
