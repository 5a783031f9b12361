"""
Storage contract for the client (get / set / remove) and the non-persistent adapters.
Values are JSON-compatible so any backend (cookie session, SQL row, key-value cache) can hold them.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Any

logger = logging.getLogger(__name__)


class Storage(ABC):
    """Key-value store used for the sign-in session, tokens, and (as a cache) metadata and JWKS."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStorage(Storage):
    """
    Process-local dict. Fine for tests and as the default cache; not suitable for per-user state
    in production since nothing survives a restart or is shared between workers.
    """

    def __init__(self, warn: bool = False):
        self._store: dict[str, Any] = {}
        if warn:
            logger.warning(
                "MemoryStorage is not suitable for production use; replace it with a persistent storage"
            )

    def get(self, key: str) -> Any | None:
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value

    def remove(self, key: str) -> None:
        self._store.pop(key, None)


class SessionStorage(Storage):
    """Wraps a framework session (any mutable mapping). Keys are namespaced per application."""

    def __init__(self, session: MutableMapping, app_id: str | None = None):
        self._session = session
        self._app_id = app_id

    def _session_key(self, key: str) -> str:
        return f"oidc_{self._app_id or 'default'}_{key}"

    def get(self, key: str) -> Any | None:
        return self._session.get(self._session_key(key))

    def set(self, key: str, value: Any) -> None:
        self._session[self._session_key(key)] = value

    def remove(self, key: str) -> None:
        self._session.pop(self._session_key(key), None)
