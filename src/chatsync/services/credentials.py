"""Credential store: persists the session token and display name.

The store is a passive mirror of the session controller's state. Any storage
failure is logged and treated as "nothing persisted"; it never propagates.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

from ..models import Session
from ..settings import Settings, get_settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USERNAME_KEY = "username"


def session_from_record(record: Dict[str, Any]) -> Session:
    """Build a Session from a stored record; partial records load as absent."""
    token = record.get(TOKEN_KEY)
    username = record.get(USERNAME_KEY)
    if not token or not username:
        return Session.absent()
    return Session(token=str(token), display_name=str(username))


class CredentialStore(ABC):
    """Durable key/value persistence for the current session."""

    @abstractmethod
    def load(self) -> Session:
        """Return the persisted session, or an absent session."""

    @abstractmethod
    def save(self, session: Session) -> None:
        """Persist the given session."""

    @abstractmethod
    def clear(self) -> None:
        """Remove any persisted session."""


class InMemoryCredentialStore(CredentialStore):
    """Process-local store; used for ephemeral sessions and in tests."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session or Session.absent()

    def load(self) -> Session:
        return self._session

    def save(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = Session.absent()


class FileCredentialStore(CredentialStore):
    """JSON document in the user's profile directory."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Session:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Session.absent()
        except OSError as e:
            logger.warning("Credential file %s unreadable: %s", self._path, e)
            return Session.absent()
        try:
            record = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Credential file %s is not valid JSON: %s", self._path, e)
            return Session.absent()
        if not isinstance(record, dict):
            return Session.absent()
        return session_from_record(record)

    def save(self, session: Session) -> None:
        if not session.is_present:
            self.clear()
            return
        payload = json.dumps({TOKEN_KEY: session.token, USERNAME_KEY: session.display_name})
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(payload, encoding="utf-8")
        except OSError as e:
            logger.warning("Could not write credential file %s: %s", self._path, e)

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove credential file %s: %s", self._path, e)


def create_credential_store(settings: Settings | None = None) -> CredentialStore:
    """Build the credential store selected by ``credential_backend``.

    Raises:
        ValueError: If the backend name is not supported.
    """
    settings = settings or get_settings()
    backend = settings.credential_backend

    if backend == "memory":
        return InMemoryCredentialStore()

    if backend == "redis":
        from .redis import get_redis_credential_store

        store = get_redis_credential_store(settings)
        if store is not None:
            return store
        logger.warning("credential_backend=redis but REDIS_URL is not set; using file store")
        return FileCredentialStore(settings.credential_path)

    if backend == "file":
        return FileCredentialStore(settings.credential_path)

    raise ValueError(
        f"Unsupported credential backend: {backend}. "
        f"Supported backends: memory, file, redis"
    )
