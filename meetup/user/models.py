"""Data models for the user blueprint."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """A known caller: storage key plus messaging address."""

    key: str
    instance_id: str
    registration_token: str

    @property
    def messaging_address(self) -> str:
        """The address device-group operations are sent for."""
        return self.registration_token
