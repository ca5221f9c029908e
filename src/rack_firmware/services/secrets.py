"""Credential storage for artifact repository tokens."""

import logging
import threading
from typing import Optional, Protocol

from pydantic import SecretStr

from rack_firmware.models.firmware import Credentials


class SecretStore(Protocol):
    """Credential vault keyed by firmware id."""

    def set_credentials(self, key: str, username: str, token: str) -> None: ...

    def get_credentials(self, key: str) -> Optional[Credentials]: ...


class InMemorySecretStore:
    """Process-local SecretStore.

    Credentials do not survive a restart; a download run started after a
    restart falls back to anonymous access.
    """

    def __init__(self):
        self.logger = logging.getLogger("rack_firmware.secrets")
        self._credentials: dict[str, Credentials] = {}
        self._lock = threading.Lock()

    def set_credentials(self, key: str, username: str, token: str) -> None:
        with self._lock:
            self._credentials[key] = Credentials(username=username, token=SecretStr(token))
        self.logger.info(f"Stored credentials for {key}")

    def get_credentials(self, key: str) -> Optional[Credentials]:
        with self._lock:
            return self._credentials.get(key)
