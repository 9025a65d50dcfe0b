"""Membership state machine shared by items and named groups.

A roster is an ordered list of members, each with an attendant
contribution. The first member is the owner. Named groups use the same
rules with a contribution of one per member and no capacity.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from meetup.errors import CapacityError
from meetup.messaging.models import ADD, REMOVE, GroupOperation

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    """What a membership change did to the roster."""

    APPEND_MEMBER = "append_member"
    ADD_ATTENDANT = "add_attendant"
    REMOVE_MEMBER = "remove_member"
    CLOSE = "close"
    NO_OP = "no_op"


@dataclass
class Member:
    """A participant and their attendant contribution."""

    user_key: str
    attendant: int = 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Member:
        """Build a member from its Firestore representation."""
        return cls(user_key=data["userKey"], attendant=int(data.get("attendant", 0)))

    def to_dict(self) -> dict[str, Any]:
        """Return the Firestore representation."""
        return {"userKey": self.user_key, "attendant": self.attendant}


@dataclass
class MembershipTransition:
    """Result of applying one attendance delta to a roster."""

    outcome: Outcome
    members: list[Member]
    attendant: int
    member_key: str
    member_index: int
    prior_contribution: int
    delta: int
    item_full: bool = False
    # Members present before the change; a close dissolves all of them.
    previous_members: list[Member] = field(default_factory=list)

    @property
    def is_owner(self) -> bool:
        """True when the acting member is the roster owner."""
        return self.member_index == 0

    @property
    def is_departure(self) -> bool:
        """True when the acting member left the roster."""
        return self.outcome in (Outcome.REMOVE_MEMBER, Outcome.CLOSE)


def find_member(members: list[Member], user_key: str) -> int:
    """Return the index of ``user_key`` in ``members`` or -1."""
    for i, member in enumerate(members):
        if member.user_key == user_key:
            return i
    return -1


def transition(
    members: list[Member],
    attendant: int,
    people: Optional[int],
    member_key: str,
    delta: int,
) -> MembershipTransition:
    """Apply ``delta`` attendants for ``member_key`` and derive the outcome.

    The input list is not modified. Raises ``CapacityError`` when the change
    would push the total past ``people`` or below zero, or would leave the
    member with a negative contribution.
    """
    total = attendant + delta
    if people is not None and total > people:
        raise CapacityError(f"Too many attendants. {attendant} + {delta} > {people}.")
    if total < 0:
        raise CapacityError(f"Too few attendants. {attendant} + {delta} < 0.")

    previous = [Member(m.user_key, m.attendant) for m in members]
    roster = [Member(m.user_key, m.attendant) for m in members]
    index = find_member(roster, member_key)

    if index < 0:
        if delta < 0:
            raise CapacityError(f"User {member_key} has no attendants to withdraw.")
        if delta == 0:
            return MembershipTransition(
                outcome=Outcome.NO_OP,
                members=roster,
                attendant=attendant,
                member_key=member_key,
                member_index=-1,
                prior_contribution=0,
                delta=0,
                item_full=people is not None and attendant == people,
                previous_members=previous,
            )
        roster.append(Member(member_key, delta))
        index = len(roster) - 1
        prior = 0
        outcome = Outcome.APPEND_MEMBER
    else:
        prior = roster[index].attendant
        if prior + delta < 0:
            raise CapacityError(
                f"User {member_key} attends {prior} and cannot withdraw {-delta}."
            )
        roster[index].attendant = prior + delta
        # A stored zero contribution means the member already left the group.
        outcome = (
            Outcome.APPEND_MEMBER if prior == 0 and delta > 0 else Outcome.ADD_ATTENDANT
        )

    if delta < 0 and roster[index].attendant == 0:
        if index == 0:
            outcome = Outcome.CLOSE
        else:
            outcome = Outcome.REMOVE_MEMBER
            roster[index] = roster[-1]
            roster.pop()

    return MembershipTransition(
        outcome=outcome,
        members=roster,
        attendant=total,
        member_key=member_key,
        member_index=index,
        prior_contribution=prior,
        delta=delta,
        item_full=people is not None and total == people,
        previous_members=previous,
    )


def group_operations(
    change: MembershipTransition,
    key_name: str,
    key: str,
    address_of: Callable[[str], Optional[str]],
) -> list[GroupOperation]:
    """Return the device-group operations that realise ``change``.

    A close yields one ``remove`` per previous member so the provider drops
    the whole group. Identity keys without a messaging address are skipped.
    """
    if change.outcome == Outcome.APPEND_MEMBER:
        keys, operation = [change.member_key], ADD
    elif change.outcome == Outcome.REMOVE_MEMBER:
        keys, operation = [change.member_key], REMOVE
    elif change.outcome == Outcome.CLOSE:
        keys, operation = [m.user_key for m in change.previous_members], REMOVE
    else:
        return []
    if not key:
        logger.error(f"Group {key_name} has no notification key; skipping {operation}")
        return []

    operations = []
    for user_key in keys:
        address = address_of(user_key)
        if not address:
            logger.warning(f"No messaging address for user {user_key} in group {key_name}")
            continue
        operations.append(
            GroupOperation(
                operation=operation,
                notification_key_name=key_name,
                notification_key=key,
                registration_ids=[address],
            )
        )
    return operations
