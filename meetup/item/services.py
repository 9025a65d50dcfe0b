"""Service layer for items and the attendance transaction."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from meetup.core.constants import (
    DEFAULT_STORE_MAX_ATTEMPTS,
    ITEM_SEARCH_FIELDS,
    ITEMS_COLLECTION,
)
from meetup.errors import (
    ForbiddenError,
    NotFoundError,
    ProviderError,
    StoreConflictError,
    StoreUnavailableError,
)
from meetup.membership import Member, Outcome, group_operations
from meetup.messaging.models import CREATE, REMOVE, GroupOperation
from meetup.utils import now_to_the_second

from .models import AttendanceUpdate, Item, ItemSubmission
from .transitions import ItemTransition, transition_item

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from meetup.messaging.client import GroupOperationClient
    from meetup.messaging.notifier import Notifier
    from meetup.user.models import Identity
    from meetup.user.services import IdentityDirectory

logger = logging.getLogger(__name__)

# Message prefix of the ValueError firestore.transactional raises once every
# attempt conflicted.
TRANSACTION_EXHAUSTED = "Failed to commit transaction"


def group_name_for(owner_key: str, create_time: Any) -> str:
    """Derive a unique device group name from the owner and creation time."""
    nanoseconds = int(create_time.timestamp()) * 1_000_000_000
    return f"{owner_key}{nanoseconds:x}"


def load_item(snapshot: Any) -> Item:
    """Parse a stored item, treating an unreadable record as a store failure."""
    try:
        return Item.from_snapshot(snapshot)
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Item {snapshot.id} is malformed: {e}")
        raise StoreUnavailableError(f"Item {snapshot.id} cannot be read.") from e


def dissolve_group(
    group_client: GroupOperationClient, operations: list[GroupOperation]
) -> int:
    """Send cascade removals, logging failures instead of raising.

    Returns the number of removals the provider refused or never received.
    """
    failures = 0
    for operation in operations:
        try:
            group_client.send(operation)
        except ProviderError as e:
            failures += 1
            logger.warning(
                f"Could not remove {operation.registration_ids} from group "
                f"{operation.notification_key_name}: {e.message}"
            )
    if failures:
        logger.warning(f"{failures} cascade removal(s) failed; deleting the record anyway")
    return failures


class ItemService:
    """Service class for item-related operations."""

    @staticmethod
    def create_item(
        db: Client,
        submission: ItemSubmission,
        owner: Identity,
        group_client: GroupOperationClient,
    ) -> Item:
        """Validate and store a new item together with its device group."""
        submission.validate()

        create_time = now_to_the_second()
        group_name = group_name_for(owner.key, create_time)
        group_key = group_client.send(
            GroupOperation(
                operation=CREATE,
                notification_key_name=group_name,
                registration_ids=[owner.messaging_address],
            )
        )
        logger.info(f"Device group {group_name} is created")

        item = Item(
            image=submission.image,
            people=submission.people,
            attendant=submission.attendant,
            latitude=submission.latitude,
            longitude=submission.longitude,
            create_time=create_time,
            members=[Member(owner.key, submission.attendant)],
            group_name=group_name,
            group_key=group_key,
        )
        try:
            _, item_ref = db.collection(ITEMS_COLLECTION).add(item.to_dict())
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"{e} in storing item; device group {group_name} is orphaned")
            raise StoreUnavailableError() from e
        item.id = item_ref.id
        logger.info(f"Item {item.id} created by user {owner.key}")
        return item

    @staticmethod
    def get_item(db: Client, item_id: str) -> Item:
        """Fetch a single item."""
        snapshot = db.collection(ITEMS_COLLECTION).document(item_id).get()
        if not snapshot.exists:
            raise NotFoundError(f"Item {item_id} not found.")
        return load_item(snapshot)

    @staticmethod
    def list_items(db: Client) -> list[Item]:
        """Return every item, newest first."""
        query = db.collection(ITEMS_COLLECTION).order_by(
            "createTime", direction=firestore.Query.DESCENDING
        )
        items = [load_item(doc) for doc in query.stream()]
        logger.info(f"Listing {len(items)} items")
        return items

    @staticmethod
    def search_items(db: Client, filters: Mapping[str, str]) -> list[Item]:
        """Return items matching every recognised equality filter."""
        query: Any = db.collection(ITEMS_COLLECTION)
        for name, raw in filters.items():
            field_type = ITEM_SEARCH_FIELDS.get(name)
            if field_type is None:
                logger.info(f"{name} is a wrong query property")
                continue
            try:
                value = field_type(raw)
            except ValueError:
                logger.warning(f"Cannot convert {name}={raw!r} to {field_type.__name__}")
                continue
            query = query.where(filter=firestore.FieldFilter(name, "==", value))
        return [load_item(doc) for doc in query.stream()]

    @staticmethod
    def _attend_in_transaction(  # noqa: PLR0913
        transaction: Transaction,
        item_ref: DocumentReference,
        identity: Identity,
        update: AttendanceUpdate,
        group_client: GroupOperationClient,
        directory: IdentityDirectory,
    ) -> ItemTransition:
        """Read, transition and write one item inside a transaction.

        Group operations run before the write so a refused operation leaves
        the item untouched. Firestore re-runs this whole function on conflict.
        """
        snapshot = item_ref.get(transaction=transaction)
        if not snapshot.exists:
            raise NotFoundError(f"Item {item_ref.id} not found.")
        item = load_item(snapshot)

        result = transition_item(item, identity.key, update)
        operations = group_operations(
            result.change, item.group_name, item.group_key, directory.address_of
        )

        if result.closes_item:
            dissolve_group(group_client, operations)
            transaction.delete(item_ref)
            logger.info(f"Item {item.id} is closed because its owner {identity.key} left")
        else:
            for operation in operations:
                group_client.send(operation)
            transaction.set(item_ref, result.item.to_dict())
            logger.info(
                f"Item {item.id} {result.outcome.value} by {identity.key}: "
                f"{result.item.attendant}/{result.item.people}"
            )
        return result

    @staticmethod
    def apply_attendance(  # noqa: PLR0913
        db: Client,
        item_id: str,
        identity: Identity,
        update: AttendanceUpdate,
        *,
        group_client: GroupOperationClient,
        notifier: Notifier,
        directory: IdentityDirectory,
        max_attempts: int = DEFAULT_STORE_MAX_ATTEMPTS,
    ) -> ItemTransition:
        """Join, attend, leave or close an item and notify its group."""
        item_ref = db.collection(ITEMS_COLLECTION).document(item_id)
        transaction = db.transaction(max_attempts=max_attempts)
        attend = firestore.transactional(ItemService._attend_in_transaction)
        try:
            result = attend(
                transaction, item_ref, identity, update, group_client, directory
            )
        except ValueError as e:
            if not str(e).startswith(TRANSACTION_EXHAUSTED):
                raise
            logger.warning(f"Item {item_id} kept conflicting: {e}")
            raise StoreConflictError() from e
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"{e} in updating item {item_id}")
            raise StoreUnavailableError() from e

        if result.outcome != Outcome.NO_OP and result.message:
            notifier.broadcast(
                result.item.group_key,
                {
                    "message": result.message,
                    "itemId": item_id,
                    "requestUserId": identity.key,
                },
            )
        return result

    @staticmethod
    def delete_item(
        db: Client,
        item_id: str,
        identity: Identity,
        *,
        group_client: GroupOperationClient,
        directory: IdentityDirectory,
    ) -> None:
        """Delete an item on its owner's request, dissolving its group first."""
        item_ref = db.collection(ITEMS_COLLECTION).document(item_id)
        snapshot = item_ref.get()
        if not snapshot.exists:
            raise NotFoundError(f"Item {item_id} not found.")
        item = load_item(snapshot)
        if item.owner_key != identity.key:
            raise ForbiddenError("Only the owner can delete an item.")

        operations = []
        for member in item.members:
            address = directory.address_of(member.user_key)
            if address and item.group_key:
                operations.append(
                    GroupOperation(
                        operation=REMOVE,
                        notification_key_name=item.group_name,
                        notification_key=item.group_key,
                        registration_ids=[address],
                    )
                )
        dissolve_group(group_client, operations)
        item_ref.delete()
        logger.info(f"Item {item_id} is deleted by its owner")
