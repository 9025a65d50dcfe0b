"""Service layer for named groups."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from firebase_admin import firestore

from meetup.core.constants import GROUPS_COLLECTION
from meetup.errors import NotFoundError, ValidationError
from meetup.item.services import dissolve_group
from meetup.membership import Outcome, group_operations, transition
from meetup.messaging.models import CREATE, GroupOperation

from .models import Group

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from meetup.messaging.client import GroupOperationClient
    from meetup.user.models import Identity
    from meetup.user.services import IdentityDirectory

logger = logging.getLogger(__name__)


class GroupService:
    """Join and leave named groups while keeping the device group in sync."""

    @staticmethod
    def find_group(db: Client, name: str) -> Optional[Group]:
        """Return the group with this name, or None."""
        query = (
            db.collection(GROUPS_COLLECTION)
            .where(filter=firestore.FieldFilter("name", "==", name))
            .limit(1)
        )
        docs = list(query.stream())
        return Group.from_snapshot(docs[0]) if docs else None

    @staticmethod
    def join(
        db: Client,
        identity: Identity,
        group_name: str,
        *,
        group_client: GroupOperationClient,
        directory: IdentityDirectory,
    ) -> Group:
        """Join a group, creating it with the caller as owner if needed."""
        if not group_name:
            raise ValidationError("A group name is required.")

        group = GroupService.find_group(db, group_name)
        if group is None:
            key = group_client.send(
                GroupOperation(
                    operation=CREATE,
                    notification_key_name=group_name,
                    registration_ids=[identity.messaging_address],
                )
            )
            group = Group(
                name=group_name,
                owner=identity.key,
                members=[identity.key],
                notification_key=key,
            )
            _, group_ref = db.collection(GROUPS_COLLECTION).add(group.to_dict())
            group.id = group_ref.id
            logger.info(f"Create group {group_name} owned by {identity.key}")
            return group

        if identity.key in group.members:
            logger.info(f"User {identity.key} is already in group {group_name}")
            return group

        roster = group.roster()
        change = transition(roster, len(roster), None, identity.key, 1)
        for operation in group_operations(
            change, group.name, group.notification_key, directory.address_of
        ):
            group_client.send(operation)

        group.members = [m.user_key for m in change.members]
        # Concurrent joins must not overwrite each other.
        db.collection(GROUPS_COLLECTION).document(group.id).update(
            {"members": firestore.ArrayUnion([identity.key])}
        )
        logger.info(f"Add user {identity.key} to group {group_name}")
        return group

    @staticmethod
    def leave(
        db: Client,
        identity: Identity,
        group_name: str,
        *,
        group_client: GroupOperationClient,
        directory: IdentityDirectory,
    ) -> Optional[Group]:
        """Leave a group. The owner leaving deletes it for everyone.

        Returns the remaining group, or None when it was deleted.
        """
        group = GroupService.find_group(db, group_name)
        if group is None:
            raise NotFoundError(f"Group {group_name} not found.")
        if identity.key not in group.members:
            raise NotFoundError(f"User {identity.key} is not in group {group_name}.")

        roster = group.roster()
        change = transition(roster, len(roster), None, identity.key, -1)
        operations = group_operations(
            change, group.name, group.notification_key, directory.address_of
        )
        group_ref = db.collection(GROUPS_COLLECTION).document(group.id)

        if change.outcome == Outcome.CLOSE:
            dissolve_group(group_client, operations)
            group_ref.delete()
            logger.info(f"User {identity.key} removed group {group_name}")
            return None

        for operation in operations:
            group_client.send(operation)
        group.members = [m.user_key for m in change.members]
        group_ref.update({"members": firestore.ArrayRemove([identity.key])})
        logger.info(f"Remove user {identity.key} from group {group_name}")
        return group
