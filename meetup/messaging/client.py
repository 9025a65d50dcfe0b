"""Client for the device-group management endpoint of the messaging provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from meetup.errors import (
    ProviderBadResponseError,
    ProviderRejectedError,
    ProviderUnavailableError,
)

from .models import CREATE

if TYPE_CHECKING:
    from .config import MessagingConfig
    from .models import GroupOperation

logger = logging.getLogger(__name__)


class GroupOperationClient:
    """Send create/add/remove operations and return the group key.

    The client never retries: whether a ``ProviderUnavailableError`` is worth
    another attempt is decided by the caller.
    """

    def __init__(
        self, config: MessagingConfig, http_client: Optional[httpx.Client] = None
    ) -> None:
        """Initialize the client with explicit provider settings."""
        self.config = config
        self._http = http_client or httpx.Client(timeout=config.timeout)

    def send(self, operation: GroupOperation) -> str:
        """Send one operation and return the provider's notification key."""
        logger.debug(
            f"Sending {operation.operation} for group {operation.notification_key_name} "
            f"with {len(operation.registration_ids)} address(es)"
        )
        try:
            response = self._http.post(
                self.config.group_url,
                json=operation.to_payload(),
                headers=self.config.auth_headers,
                timeout=self.config.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"Group operation {operation.operation} timed out: {e}")
            raise ProviderUnavailableError("The messaging provider timed out.") from e
        except httpx.TransportError as e:
            logger.warning(f"Group operation {operation.operation} failed to send: {e}")
            raise ProviderUnavailableError() from e

        if response.status_code >= 500:
            logger.warning(
                f"Messaging provider replied {response.status_code} to {operation.operation}"
            )
            raise ProviderUnavailableError(
                f"The messaging provider replied {response.status_code}."
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Undecodable reply from messaging provider: {response.text!r}")
            if response.status_code >= 400:
                raise ProviderRejectedError(
                    provider_status=response.status_code
                ) from e
            raise ProviderBadResponseError() from e

        if response.status_code >= 400:
            reason = body.get("error") if isinstance(body, dict) else None
            reason = reason or "unknown error"
            logger.error(
                f"Messaging provider rejected {operation.operation} for group "
                f"{operation.notification_key_name}: {reason}"
            )
            raise ProviderRejectedError(
                f"The messaging provider rejected the request: {reason}",
                provider_status=response.status_code,
            )

        if not isinstance(body, dict):
            raise ProviderBadResponseError()

        key = body.get("notification_key")
        if not key:
            raise ProviderBadResponseError(
                "The messaging provider did not return a notification key."
            )
        if operation.operation == CREATE:
            logger.info(f"Device group {operation.notification_key_name} created")
        return str(key)
