"""Data models for the item blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from meetup.core.constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from meetup.core.types import FirestoreDocument
from meetup.errors import ValidationError
from meetup.membership import Member


class ItemDocument(FirestoreDocument, total=False):
    """An item document in Firestore."""

    image: str
    people: int
    attendant: int
    latitude: float
    longitude: float
    members: list[dict[str, Any]]
    groupName: str
    groupKey: str


@dataclass
class Item:
    """A meetup record with a target and a current attendance."""

    image: str
    people: int
    attendant: int
    latitude: float
    longitude: float
    create_time: Optional[datetime.datetime] = None
    members: list[Member] = field(default_factory=list)
    group_name: str = ""
    group_key: str = ""
    id: Optional[str] = None

    @property
    def owner_key(self) -> Optional[str]:
        """Identity key of the owner, the first member."""
        return self.members[0].user_key if self.members else None

    @property
    def is_full(self) -> bool:
        """True when every seat is taken."""
        return self.attendant == self.people

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> Item:
        """Build an item from a Firestore document snapshot."""
        item = cls.from_dict(snapshot.to_dict() or {})
        item.id = snapshot.id
        return item

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Build an item from its Firestore representation."""
        return cls(
            image=data.get("image", ""),
            people=int(data.get("people", 0)),
            attendant=int(data.get("attendant", 0)),
            latitude=float(data.get("latitude", 0.0)),
            longitude=float(data.get("longitude", 0.0)),
            create_time=data.get("createTime"),
            members=[Member.from_dict(m) for m in data.get("members", [])],
            group_name=data.get("groupName", ""),
            group_key=data.get("groupKey", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the Firestore representation (without the document ID)."""
        return {
            "image": self.image,
            "people": self.people,
            "attendant": self.attendant,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "createTime": self.create_time,
            "members": [m.to_dict() for m in self.members],
            "groupName": self.group_name,
            "groupKey": self.group_key,
        }

    def to_json(self) -> ItemDocument:
        """Return the API representation."""
        data = self.to_dict()
        create_time = data["createTime"]
        if isinstance(create_time, datetime.datetime):
            data["createTime"] = create_time.isoformat()
        return ItemDocument(id=self.id or "", **data)  # type: ignore[typeddict-item]


@dataclass
class ItemSubmission:
    """Dataclass for a new item posted by its owner."""

    image: str
    people: int
    attendant: int
    latitude: float
    longitude: float

    @classmethod
    def from_json(cls, data: Any) -> ItemSubmission:
        """Parse a request body, raising ValidationError on bad input."""
        if not isinstance(data, dict):
            raise ValidationError("The request body must be a JSON object.")
        try:
            return cls(
                image=str(data.get("image") or ""),
                people=_whole_number("people", data.get("people", 0)),
                attendant=_whole_number("attendant", data.get("attendant", 0)),
                latitude=float(data.get("latitude", 0.0)),
                longitude=float(data.get("longitude", 0.0)),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed item: {e}") from e

    def validate(self) -> None:
        """Validate the submission for obvious errors."""
        if not self.image:
            raise ValidationError("The item image URL is required.")
        if self.attendant <= 0:
            raise ValidationError(f"Item attendant {self.attendant} must be > 0.")
        if self.attendant >= self.people:
            raise ValidationError(
                f"Item attendant {self.attendant} must be less than people {self.people}."
            )
        if not MIN_LATITUDE <= self.latitude <= MAX_LATITUDE:
            raise ValidationError(f"Latitude {self.latitude} should be -90~90.")
        if not MIN_LONGITUDE <= self.longitude <= MAX_LONGITUDE:
            raise ValidationError(f"Longitude {self.longitude} should be -180~180.")


@dataclass
class AttendanceUpdate:
    """An attendance delta plus optional owner-only field updates."""

    delta: int
    image: Optional[str] = None
    people: Optional[int] = None

    @classmethod
    def from_json(cls, data: Any) -> AttendanceUpdate:
        """Parse a request body, raising ValidationError on bad input."""
        if not isinstance(data, dict):
            raise ValidationError("The request body must be a JSON object.")
        people = data.get("people")
        return cls(
            delta=_whole_number("attendant", data.get("attendant", 0)),
            image=data.get("image") or None,
            people=None if people is None else _whole_number("people", people),
        )

    @property
    def has_field_updates(self) -> bool:
        """True when the update also changes item fields."""
        return self.image is not None or self.people is not None


def _whole_number(name: str, value: Any) -> int:
    """Parse an integer field, rejecting fractions and booleans."""
    if isinstance(value, bool):
        raise ValidationError(f"Item {name} must be a whole number, not {value!r}.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"Item {name} must be a whole number, not {value!r}.")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Item {name} must be a whole number, not {value!r}.") from e
