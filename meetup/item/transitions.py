"""Attendance transitions for a single item."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional

from meetup.errors import ValidationError
from meetup.membership import MembershipTransition, Outcome, transition
from meetup.utils import now_to_the_second

from .models import AttendanceUpdate, Item


@dataclass
class ItemTransition:
    """The next state of an item and what changed to get there."""

    item: Item
    change: MembershipTransition
    fields_updated: bool
    message: str

    @property
    def outcome(self) -> Outcome:
        """Shortcut to the membership outcome."""
        return self.change.outcome

    @property
    def item_full(self) -> bool:
        """True when the item reached its capacity."""
        return self.change.item_full

    @property
    def closes_item(self) -> bool:
        """True when the item must be deleted."""
        return self.change.outcome == Outcome.CLOSE


def transition_item(
    item: Item, member_key: str, update: AttendanceUpdate
) -> ItemTransition:
    """Apply an attendance update by ``member_key`` to ``item``.

    The given item is left untouched; the returned transition carries a copy.
    """
    change = transition(
        item.members, item.attendant, item.people, member_key, update.delta
    )
    next_item = copy.deepcopy(item)
    next_item.members = change.members
    next_item.attendant = change.attendant

    messages = [_describe(change, next_item)]

    fields_updated = False
    if change.is_owner and not change.is_departure and update.has_field_updates:
        fields_updated = _apply_owner_updates(next_item, update)
        if fields_updated:
            messages.append("Item information updated.")

    change.item_full = not change.is_departure and next_item.is_full
    if change.item_full:
        messages.append("Item is finished. Please get together!")

    return ItemTransition(
        item=next_item,
        change=change,
        fields_updated=fields_updated,
        message=" ".join(m for m in messages if m),
    )


def _apply_owner_updates(item: Item, update: AttendanceUpdate) -> bool:
    """Apply image/capacity changes. Location never changes after creation."""
    modified = False
    if update.image is not None and update.image != item.image:
        item.image = update.image
        modified = True
    if update.people is not None and update.people != item.people:
        if update.people <= 0:
            raise ValidationError(f"Item people {update.people} must be > 0.")
        if update.people < item.attendant:
            raise ValidationError(
                f"Item people {update.people} cannot be less than attendant {item.attendant}."
            )
        item.people = update.people
        modified = True
    if modified:
        item.create_time = now_to_the_second()
    return modified


def _describe(change: MembershipTransition, item: Item) -> Optional[str]:
    """Compose the notification text for a membership change."""
    progress = f"{item.attendant}/{item.people}"
    if change.outcome == Outcome.APPEND_MEMBER:
        return f"A new user attended and now item reaches {progress}."
    if change.outcome == Outcome.ADD_ATTENDANT:
        if change.delta == 0:
            return None
        return f"Member attended {change.delta} more and now item reaches {progress}."
    if change.outcome == Outcome.REMOVE_MEMBER:
        return f"A member left and item is now {progress}."
    if change.outcome == Outcome.CLOSE:
        return "Item is closed because its owner left."
    return None
