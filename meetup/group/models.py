"""Data models for the group blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from meetup.membership import Member


@dataclass
class Group:
    """A user-named notification group."""

    name: str
    owner: str
    members: list[str] = field(default_factory=list)
    notification_key: str = ""
    id: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> Group:
        """Build a group from a Firestore document snapshot."""
        data = snapshot.to_dict() or {}
        return cls(
            name=data.get("name", ""),
            owner=data.get("owner", ""),
            members=list(data.get("members", [])),
            notification_key=data.get("notificationKey", ""),
            id=snapshot.id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the Firestore representation (without the document ID)."""
        return {
            "name": self.name,
            "owner": self.owner,
            "members": list(self.members),
            "notificationKey": self.notification_key,
        }

    def roster(self) -> list[Member]:
        """Members as a roster where everyone contributes one attendant."""
        return [Member(key, 1) for key in self.members]
