"""Core module for the meetup application."""

from .types import ErrorResponse, FirestoreDocument

__all__ = ["FirestoreDocument", "ErrorResponse"]
