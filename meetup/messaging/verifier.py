"""Registration token checks against the Instance ID service."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from .config import MessagingConfig

logger = logging.getLogger(__name__)

INITIAL_BACKOFF = 1.0
MAX_BACKOFF = 16.0


class TokenVerifier:
    """Check registration tokens against the Instance ID service."""

    def __init__(
        self,
        config: MessagingConfig,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the verifier with explicit provider settings."""
        self.config = config
        self._http = http_client or httpx.Client(timeout=config.timeout)
        self._sleep = sleep
        self._clock = clock

    def _fetch(self, token: str) -> Optional[httpx.Response]:
        """Query token info, backing off while the service answers 503."""
        deadline = self._clock() + self.config.verify_deadline
        backoff = INITIAL_BACKOFF
        response = None
        for attempt in range(1, self.config.verify_max_attempts + 1):
            try:
                response = self._http.get(
                    self.config.instance_id_url + token,
                    headers={"Authorization": f"key={self.config.server_key}"},
                    timeout=self.config.timeout,
                )
            except httpx.HTTPError as e:
                logger.error(f"{e} in verifying instance ID token")
                return None
            if response.status_code != httpx.codes.SERVICE_UNAVAILABLE:
                return response
            remaining = deadline - self._clock()
            if attempt == self.config.verify_max_attempts or remaining <= 0:
                break
            wait = min(backoff, MAX_BACKOFF, remaining)
            logger.info(f"Instance ID service unavailable, retrying in {wait:.1f}s")
            self._sleep(wait)
            backoff *= 2
        return response

    def is_valid(self, token: str) -> bool:
        """Return True if the token belongs to this application and project."""
        if not token:
            logger.warning("Registration token is empty")
            return False

        response = self._fetch(token)
        if response is None:
            return False
        if response.status_code != httpx.codes.OK:
            logger.warning(f"Invalid registration token, response {response.status_code}")
            return False
        try:
            info = response.json()
        except ValueError:
            logger.warning(f"Undecodable token info {response.text!r}")
            return False
        if (
            info.get("application") != self.config.app_namespace
            or info.get("authorizedEntity") != self.config.project_number
        ):
            logger.warning(
                f"Token issued to application {info.get('application')} "
                f"and entity {info.get('authorizedEntity')}"
            )
            return False
        return True
