"""Core data types for the meetup application."""

from typing import Any, TypedDict


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    path: str
    createTime: Any


class ErrorResponse(TypedDict):
    """JSON body of every error response."""

    error: str
    retryable: bool
