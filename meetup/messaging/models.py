"""Data models for device-group operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

CREATE = "create"
ADD = "add"
REMOVE = "remove"

OPERATIONS = (CREATE, ADD, REMOVE)


@dataclass(frozen=True)
class GroupOperation:
    """A create/add/remove command for the device-group provider."""

    operation: str
    notification_key_name: str
    registration_ids: list[str] = field(default_factory=list)
    notification_key: Optional[str] = None

    def __post_init__(self) -> None:
        """Reject unknown operations and keyless add/remove commands."""
        if self.operation not in OPERATIONS:
            raise ValueError(f"Unknown group operation {self.operation!r}.")
        if self.operation != CREATE and not self.notification_key:
            raise ValueError(f"A {self.operation} operation needs a notification key.")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to the provider."""
        payload: dict[str, Any] = {
            "operation": self.operation,
            "notification_key_name": self.notification_key_name,
            "registration_ids": list(self.registration_ids),
        }
        if self.notification_key:
            payload["notification_key"] = self.notification_key
        return payload
