"""
OidcClient: the public surface. Composes discovery, protocol core, sign-in session manager,
token cache and key verifier around host-provided storage, cache and navigate callback.
"""
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx
import jwt

from oidc_client.config import Config
from oidc_client.core import OidcCore
from oidc_client.errors import NotAuthenticatedError, RevocationError
from oidc_client.jwks import KeySetVerifier
from oidc_client.models import AccessTokenClaims, IdTokenClaims, UserInfoResponse, parse_json_safe
from oidc_client.pkce import build_access_token_key
from oidc_client.session import SignInSessionManager
from oidc_client.storage import MemoryStorage, Storage
from oidc_client.token_cache import TokenCache

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 10.0


def _decode_unverified(token: str) -> dict[str, Any]:
    return jwt.decode(token, options={"verify_signature": False})


class OidcClient:
    """
    config: validated Config
    navigate: called with a URI whenever the user agent must be redirected (sign-in, sign-out,
        post-callback). In a web framework this usually records a redirect response.
    storage: per-user/session Storage for the sign-in session and tokens
    cache: shared Storage for provider metadata and JWKS; a private MemoryStorage when omitted
    http_client: httpx.Client used for every provider call (the transport owns timeouts)
    """

    def __init__(
        self,
        config: Config,
        navigate: Callable[[str], object],
        storage: Storage,
        cache: Storage | None = None,
        http_client: httpx.Client | None = None,
    ):
        if not isinstance(config, Config):
            raise TypeError("config must be an oidc_client.config.Config")
        if not callable(navigate):
            raise TypeError("navigate must be callable")
        if not isinstance(storage, Storage):
            raise TypeError("storage must be an oidc_client.storage.Storage")

        self.config = config
        self.storage = storage
        self.cache = cache if cache is not None else MemoryStorage()
        self.http_client = http_client or httpx.Client(timeout=DEFAULT_HTTP_TIMEOUT)
        self._navigate = navigate

        self.core = OidcCore(config.endpoint, self.http_client, self.cache)
        self.tokens = TokenCache(storage)
        self.verifier = KeySetVerifier(
            jwks_uri=self.core.oidc_config.jwks_uri,
            issuer=self.core.oidc_config.issuer,
            audience=config.app_id,
            http_client=self.http_client,
            cache=self.cache,
        )
        self.sessions = SignInSessionManager(
            config=config,
            core=self.core,
            storage=storage,
            tokens=self.tokens,
            verifier=self.verifier,
            navigate=navigate,
        )

    # --- sign-in / sign-out ---

    def sign_in(
        self,
        redirect_uri: str,
        *,
        first_screen: str | None = None,
        interaction_mode: str | None = None,
        login_hint: str | None = None,
        direct_sign_in: Mapping[str, str] | None = None,
        identifiers: Sequence[str] | None = None,
        post_redirect_uri: str | None = None,
        extra_params: Mapping[str, str] | None = None,
    ) -> str:
        """
        Start the sign-in flow and navigate to the provider.
        first_screen: e.g. "signIn" or "register"; takes precedence over interaction_mode.
        direct_sign_in: {"method": ..., "target": ...}, e.g. {"method": "social", "target": "github"}.
        post_redirect_uri: where to navigate once the callback has been handled.
        """
        return self.sessions.sign_in(
            redirect_uri,
            first_screen=first_screen,
            interaction_mode=interaction_mode,
            login_hint=login_hint,
            direct_sign_in=direct_sign_in,
            identifiers=identifiers,
            post_redirect_uri=post_redirect_uri,
            extra_params=extra_params,
        )

    def handle_sign_in_callback(self, url: str) -> str | None:
        """Handle the redirect back from the provider. url must include the query string."""
        return self.sessions.handle_sign_in_callback(url)

    def sign_out(self, post_logout_redirect_uri: str | None = None) -> str:
        """
        Revoke the refresh token (if any), clear local tokens and navigate to the end-session URI.
        Local tokens are cleared and navigation happens even if revocation fails (provider error or
        transport error); that error is re-raised afterwards.
        """
        revocation_error = None
        refresh_token = self.refresh_token
        if refresh_token:
            try:
                self.core.revoke_token(
                    client_id=self.config.app_id,
                    client_secret=self.config.app_secret,
                    token=refresh_token,
                )
            except (RevocationError, httpx.HTTPError) as e:
                logger.warning("Refresh token revocation failed: %s", e)
                revocation_error = e

        uri = self.core.generate_sign_out_uri(
            client_id=self.config.app_id,
            post_logout_redirect_uri=post_logout_redirect_uri,
        )
        self.clear_all_tokens()
        self._navigate(uri)
        if revocation_error is not None:
            raise revocation_error
        return uri

    # --- tokens and claims ---

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id_token)

    @property
    def id_token(self) -> str | None:
        return self.tokens.id_token

    @property
    def refresh_token(self) -> str | None:
        return self.tokens.refresh_token

    def id_token_claims(self) -> IdTokenClaims | None:
        """Claims of the stored ID token (verified when it was received), or None."""
        token = self.id_token
        if not token:
            return None
        return parse_json_safe(_decode_unverified(token), IdTokenClaims)

    def access_token(self, resource: str | None = None, organization_id: str | None = None) -> str | None:
        """
        Access token for (resource, organization_id); both None means the token for the UserInfo
        endpoint. Uses the cached token while it is valid for more than the leeway, otherwise
        refreshes. Returns None when no refresh token is available (sign in again).
        """
        if not self.is_authenticated:
            raise NotAuthenticatedError()
        key = build_access_token_key(resource, organization_id)

        cached = self.tokens.get(key)
        if cached is not None:
            return cached.token

        with self.tokens.lock_for(key):
            # Another caller may have refreshed while we waited
            cached = self.tokens.get(key)
            if cached is not None:
                return cached.token

            self.tokens.evict(key)
            refresh_token = self.refresh_token
            if not refresh_token:
                return None

            token_response = self.core.fetch_token_by_refresh_token(
                client_id=self.config.app_id,
                client_secret=self.config.app_secret,
                refresh_token=refresh_token,
                resource=resource,
                organization_id=organization_id,
            )
            self.tokens.save_token_response(token_response, key)
            logger.info("Access token refreshed for key %s", key)
            return token_response.access_token

    def access_token_claims(
        self, resource: str | None = None, organization_id: str | None = None
    ) -> AccessTokenClaims | None:
        """Decoded claims of a JWT access token. At least one of resource/organization_id is required."""
        if resource is None and organization_id is None:
            raise ValueError("Resource and organization ID cannot be None at the same time")
        token = self.access_token(resource=resource, organization_id=organization_id)
        if not token:
            return None
        return parse_json_safe(_decode_unverified(token), AccessTokenClaims)

    def fetch_user_info(self) -> UserInfoResponse:
        token = self.access_token()
        if not token:
            raise NotAuthenticatedError("No access token available; sign in again")
        return self.core.fetch_user_info(access_token=token)

    def clear_all_tokens(self) -> None:
        self.tokens.clear()

    # --- verification ---

    def verify_jwt(self, token: str) -> dict[str, Any]:
        return self.verifier.verify_jwt(token)

    def fetch_jwks(self, kid_not_found: bool = False) -> list[jwt.PyJWK]:
        return self.verifier.fetch_jwks(kid_not_found=kid_not_found)
