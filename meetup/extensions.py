"""Flask extensions for the application."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from flask import Flask, current_app

from meetup.messaging import (
    GroupOperationClient,
    MessagingConfig,
    Notifier,
    TokenVerifier,
)


@dataclass
class _MessagingState:
    config: MessagingConfig
    group_client: GroupOperationClient
    notifier: Notifier
    verifier: TokenVerifier


class Messaging:
    """Per-app holder of the messaging provider clients."""

    def __init__(self, app: Optional[Flask] = None) -> None:
        """Initialize the extension, binding it to ``app`` if given."""
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask, firebase_app: Optional[Any] = None) -> None:
        """Build the clients from the app config."""
        config = MessagingConfig.from_mapping(app.config)
        app.extensions["messaging"] = _MessagingState(
            config=config,
            group_client=GroupOperationClient(config),
            notifier=Notifier(firebase_app),
            verifier=TokenVerifier(config),
        )

    @property
    def _state(self) -> _MessagingState:
        return current_app.extensions["messaging"]

    @property
    def config(self) -> MessagingConfig:
        """Settings of the current app."""
        return self._state.config

    @property
    def group_client(self) -> GroupOperationClient:
        """Device-group client of the current app."""
        return self._state.group_client

    @property
    def notifier(self) -> Notifier:
        """Broadcast notifier of the current app."""
        return self._state.notifier

    @property
    def verifier(self) -> TokenVerifier:
        """Registration token verifier of the current app."""
        return self._state.verifier


messaging = Messaging()
