"""
JWKS caching and ID token verification.
Keys are cached (raw document + fetch time) in the client cache. A token signed with an unknown kid
forces one refetch, but only when the cached set is older than JWKS_REFETCH_TTL_SECONDS, and one retry.
"""
import logging
import threading
import time
from typing import Any

import httpx
import jwt

from oidc_client.constants import (
    CACHE_JWKS,
    CACHE_JWKS_LAST_UPDATE,
    ID_TOKEN_LEEWAY_SECONDS,
    JWKS_REFETCH_TTL_SECONDS,
    SUPPORTED_ALGORITHMS,
)
from oidc_client.errors import JwksError, JwtVerificationError
from oidc_client.storage import Storage

logger = logging.getLogger(__name__)


class _UnknownKeyId(Exception):
    def __init__(self, kid: str):
        super().__init__(kid)
        self.kid = kid


class KeySetVerifier:
    def __init__(
        self,
        jwks_uri: str,
        issuer: str,
        audience: str,
        http_client: httpx.Client,
        cache: Storage,
    ):
        self.jwks_uri = jwks_uri
        self.issuer = issuer
        self.audience = audience
        self.http_client = http_client
        self.cache = cache
        self._fetch_lock = threading.Lock()

    def fetch_jwks(self, kid_not_found: bool = False) -> list[jwt.PyJWK]:
        """
        Signing keys (use == "sig") from cache, fetching when absent.
        kid_not_found evicts the cached set if it is older than the refetch TTL.
        """
        with self._fetch_lock:
            if kid_not_found:
                last_update = self.cache.get(CACHE_JWKS_LAST_UPDATE) or 0
                if last_update < time.time() - JWKS_REFETCH_TTL_SECONDS:
                    logger.info("Unknown key id and JWKS older than %ss; evicting cached key set", JWKS_REFETCH_TTL_SECONDS)
                    self.cache.remove(CACHE_JWKS)

            jwks = self.cache.get(CACHE_JWKS)
            if jwks is None:
                logger.debug("Fetching JWKS from %s", self.jwks_uri)
                r = self.http_client.get(self.jwks_uri, headers={"Accept": "application/json"})
                if not r.is_success:
                    raise JwksError.from_response(r)
                jwks = r.json()
                self.cache.set(CACHE_JWKS, jwks)
                self.cache.set(CACHE_JWKS_LAST_UPDATE, int(time.time()))
                logger.info("JWKS refreshed (%d keys)", len(jwks.get("keys", [])))

        return _signing_keys(jwks)

    def verify_jwt(self, token: str) -> dict[str, Any]:
        """Verify signature, iss, aud (and exp when present). Returns the claims."""
        if not isinstance(token, str) or not token:
            raise JwtVerificationError("Token must be a non-empty string")
        try:
            return self._decode(token, self.fetch_jwks())
        except _UnknownKeyId as e:
            logger.info("Key id %s not in cached JWKS; refetching once", e.kid)
        try:
            return self._decode(token, self.fetch_jwks(kid_not_found=True))
        except _UnknownKeyId as e:
            raise JwtVerificationError(f"No signing key found for kid {e.kid}")

    def _decode(self, token: str, keys: list[jwt.PyJWK]) -> dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError as e:
            raise JwtVerificationError(f"Malformed token: {e}")

        kid = header.get("kid")
        if kid:
            candidates = [k for k in keys if k.key_id == kid]
            if not candidates:
                raise _UnknownKeyId(kid)
        else:
            candidates = keys
        if not candidates:
            raise JwtVerificationError("No signing keys available")

        for signing_key in candidates:
            try:
                return jwt.decode(
                    token,
                    signing_key.key,
                    algorithms=SUPPORTED_ALGORITHMS,
                    audience=self.audience,
                    issuer=self.issuer,
                    leeway=ID_TOKEN_LEEWAY_SECONDS,
                    options={"verify_aud": True, "verify_iss": True},
                )
            except (jwt.InvalidSignatureError, jwt.InvalidKeyError, TypeError):
                # Wrong key for this token; try the next candidate
                continue
            except jwt.ExpiredSignatureError:
                raise JwtVerificationError("Token expired")
            except jwt.InvalidAudienceError:
                raise JwtVerificationError("Invalid audience")
            except jwt.InvalidIssuerError:
                raise JwtVerificationError("Invalid issuer")
            except jwt.InvalidTokenError as e:
                logger.debug("JWT verification failed: %s", e)
                raise JwtVerificationError(f"Token verification failed: {e}")
        raise JwtVerificationError("Signature verification failed")


def _signing_keys(jwks: dict) -> list[jwt.PyJWK]:
    keys = []
    for jwk in jwks.get("keys", []):
        if jwk.get("use") != "sig":
            continue
        try:
            keys.append(jwt.PyJWK(jwk))
        except (jwt.PyJWKError, jwt.InvalidKeyError) as e:
            logger.warning("Skipping unusable JWK kid=%s: %s", jwk.get("kid"), e)
    return keys
