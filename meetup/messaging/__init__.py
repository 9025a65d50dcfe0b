"""Device-group messaging: provider clients, broadcast notifier and settings."""

from .client import GroupOperationClient
from .config import MessagingConfig
from .models import GroupOperation
from .notifier import Notifier
from .verifier import TokenVerifier

__all__ = [
    "GroupOperation",
    "GroupOperationClient",
    "MessagingConfig",
    "Notifier",
    "TokenVerifier",
]
