"""Service layer for users: identity lookup and device registration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from firebase_admin import firestore

from meetup.core.constants import USERS_COLLECTION
from meetup.errors import ForbiddenError, ValidationError
from meetup.utils import now_to_the_second

from .models import Identity

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from meetup.messaging.verifier import TokenVerifier

logger = logging.getLogger(__name__)


class IdentityDirectory:
    """Resolve callers and members to their messaging addresses."""

    def __init__(self, db: Client) -> None:
        """Initialize the directory over a Firestore client."""
        self.db = db
        self._addresses: dict[str, Optional[str]] = {}

    def resolve(self, instance_id: str) -> Optional[Identity]:
        """Look up a caller by app instance ID."""
        if not instance_id:
            return None
        query = (
            self.db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("instanceId", "==", instance_id))
            .limit(1)
        )
        docs = list(query.stream())
        if not docs:
            return None
        data = docs[0].to_dict() or {}
        identity = Identity(
            key=docs[0].id,
            instance_id=instance_id,
            registration_token=data.get("registrationToken", ""),
        )
        self._addresses[identity.key] = identity.registration_token
        return identity

    def require(self, instance_id: str) -> Identity:
        """Like resolve, but unknown callers raise ForbiddenError."""
        identity = self.resolve(instance_id)
        if identity is None:
            logger.warning(f"Unknown instance ID {instance_id}. Ignore the request.")
            raise ForbiddenError("Unknown caller.")
        return identity

    def address_of(self, user_key: str) -> Optional[str]:
        """Return the registration token stored for a user key."""
        if user_key in self._addresses:
            return self._addresses[user_key]
        doc = self.db.collection(USERS_COLLECTION).document(user_key).get()
        address = None
        if doc.exists:
            address = (doc.to_dict() or {}).get("registrationToken") or None
        else:
            logger.error(f"User {user_key} is a member but has no user record")
        self._addresses[user_key] = address
        return address


class UserService:
    """Service class for user-related operations."""

    @staticmethod
    def register(
        db: Client, instance_id: str, registration_token: str, verifier: TokenVerifier
    ) -> str:
        """Create or refresh the user for an app instance; return its key."""
        if not instance_id or not registration_token:
            raise ValidationError("Instance ID and registration token are required.")
        if not registration_token.startswith(instance_id):
            raise ValidationError(f"Instance ID {instance_id} does not match its token.")
        if not verifier.is_valid(registration_token):
            raise ValidationError(f"Instance ID {instance_id} is invalid.")

        users_ref = db.collection(USERS_COLLECTION)
        docs = list(
            users_ref.where(filter=firestore.FieldFilter("instanceId", "==", instance_id))
            .limit(1)
            .stream()
        )
        user_data = {
            "instanceId": instance_id,
            "registrationToken": registration_token,
            "lastUpdateTime": now_to_the_second(),
        }
        if not docs:
            _, user_ref = users_ref.add(user_data)
            logger.info(f"Add user {user_ref.id} for instance {instance_id}")
            return str(user_ref.id)

        existing = docs[0]
        if (existing.to_dict() or {}).get("registrationToken") != registration_token:
            users_ref.document(existing.id).set(user_data)
            logger.info(f"Update registration token of user {existing.id}")
        return str(existing.id)
