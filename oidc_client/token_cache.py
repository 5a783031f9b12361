"""
Token storage: refresh token, ID token and the access token map keyed by (resource, organization).
Storage is the source of truth; nothing is held in memory between calls except per-key refresh locks.
"""
import logging
import threading
import time

from oidc_client.constants import (
    ACCESS_TOKEN_LEEWAY_SECONDS,
    STORAGE_ACCESS_TOKEN_MAP,
    STORAGE_ID_TOKEN,
    STORAGE_REFRESH_TOKEN,
)
from oidc_client.models import AccessToken, TokenResponse
from oidc_client.storage import Storage

logger = logging.getLogger(__name__)


class TokenCache:
    def __init__(self, storage: Storage):
        self.storage = storage
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def refresh_token(self) -> str | None:
        return self.storage.get(STORAGE_REFRESH_TOKEN)

    @property
    def id_token(self) -> str | None:
        return self.storage.get(STORAGE_ID_TOKEN)

    def _access_token_map(self) -> dict[str, dict]:
        return dict(self.storage.get(STORAGE_ACCESS_TOKEN_MAP) or {})

    def get(self, key: str) -> AccessToken | None:
        """Cached entry for key if it is still valid for more than the leeway, else None."""
        entry = self._access_token_map().get(key)
        if entry is None:
            return None
        token = AccessToken.from_dict(entry)
        if token.expires_at > time.time() + ACCESS_TOKEN_LEEWAY_SECONDS:
            return token
        return None

    def evict(self, key: str) -> None:
        token_map = self._access_token_map()
        if token_map.pop(key, None) is not None:
            self.storage.set(STORAGE_ACCESS_TOKEN_MAP, token_map)

    def save_token_response(self, response: TokenResponse, key: str) -> None:
        """
        Persist a token endpoint response. Refresh and ID tokens are only overwritten when the
        response carries them (rotation is optional per exchange).
        """
        if response.refresh_token:
            self.storage.set(STORAGE_REFRESH_TOKEN, response.refresh_token)
        if response.id_token:
            self.storage.set(STORAGE_ID_TOKEN, response.id_token)
        if response.access_token:
            token = AccessToken(
                token=response.access_token,
                scope=response.scope,
                expires_at=time.time() + int(response.expires_in or 0),
            )
            token_map = self._access_token_map()
            token_map[key] = token.to_dict()
            self.storage.set(STORAGE_ACCESS_TOKEN_MAP, token_map)
            logger.debug("Stored access token for key %s (expires_in=%s)", key, response.expires_in)

    def clear(self) -> None:
        self.storage.remove(STORAGE_ACCESS_TOKEN_MAP)
        self.storage.remove(STORAGE_ID_TOKEN)
        self.storage.remove(STORAGE_REFRESH_TOKEN)

    def lock_for(self, key: str) -> threading.Lock:
        """Lock serializing refresh attempts for one access token key."""
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock
