"""Settings for the messaging provider, built once from the app config."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from meetup.core.constants import (
    DEFAULT_PROVIDER_TIMEOUT,
    DEFAULT_VERIFY_DEADLINE,
    DEFAULT_VERIFY_MAX_ATTEMPTS,
    FCM_GROUP_URL,
    INSTANCE_ID_URL,
)


@dataclass(frozen=True)
class MessagingConfig:
    """Credentials and endpoints used to talk to the messaging provider."""

    server_key: str
    project_number: str
    app_namespace: str = ""
    group_url: str = FCM_GROUP_URL
    instance_id_url: str = INSTANCE_ID_URL
    timeout: float = DEFAULT_PROVIDER_TIMEOUT
    verify_max_attempts: int = DEFAULT_VERIFY_MAX_ATTEMPTS
    verify_deadline: float = DEFAULT_VERIFY_DEADLINE

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> MessagingConfig:
        """Build the settings from a Flask config (or any mapping)."""
        return cls(
            server_key=config.get("FCM_SERVER_KEY") or "",
            project_number=str(config.get("FCM_PROJECT_NUMBER") or ""),
            app_namespace=config.get("APP_NAMESPACE") or "",
            group_url=config.get("FCM_GROUP_URL") or FCM_GROUP_URL,
            instance_id_url=config.get("INSTANCE_ID_URL") or INSTANCE_ID_URL,
            timeout=float(config.get("FCM_REQUEST_TIMEOUT") or DEFAULT_PROVIDER_TIMEOUT),
            verify_max_attempts=int(
                config.get("IDENTITY_VERIFY_MAX_ATTEMPTS") or DEFAULT_VERIFY_MAX_ATTEMPTS
            ),
            verify_deadline=float(
                config.get("IDENTITY_VERIFY_DEADLINE") or DEFAULT_VERIFY_DEADLINE
            ),
        )

    @property
    def auth_headers(self) -> dict[str, str]:
        """Headers authenticating a request against the provider."""
        return {
            "Authorization": f"key={self.server_key}",
            "project_id": self.project_number,
        }
