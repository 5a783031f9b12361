"""
Sign-in session state machine: absent -> pending (sign_in) -> consumed | failed (callback).
The pending session binds the callback to this browser via state and to the code exchange via
the PKCE verifier. It is single use.
"""
import logging
import secrets
from collections.abc import Callable, Mapping, Sequence
from urllib.parse import parse_qs, urlsplit

from oidc_client.config import Config
from oidc_client.constants import (
    QUERY_CODE,
    QUERY_ERROR,
    QUERY_ERROR_DESCRIPTION,
    QUERY_STATE,
    STORAGE_SIGN_IN_SESSION,
)
from oidc_client.core import OidcCore
from oidc_client.errors import (
    CallbackFailure,
    JwtVerificationError,
    ServerCallbackError,
    SessionMismatchError,
    SessionNotFoundError,
    TokenError,
)
from oidc_client.jwks import KeySetVerifier
from oidc_client.models import SignInSession
from oidc_client.pkce import build_access_token_key, generate_code_challenge, generate_code_verifier, generate_state
from oidc_client.storage import Storage
from oidc_client.token_cache import TokenCache

logger = logging.getLogger(__name__)


def _first(params: dict[str, list[str]], key: str) -> str | None:
    values = params.get(key)
    return values[0] if values else None


class SignInSessionManager:
    def __init__(
        self,
        config: Config,
        core: OidcCore,
        storage: Storage,
        tokens: TokenCache,
        verifier: KeySetVerifier,
        navigate: Callable[[str], object],
    ):
        self.config = config
        self.core = core
        self.storage = storage
        self.tokens = tokens
        self.verifier = verifier
        self.navigate = navigate

    @property
    def pending_session(self) -> SignInSession | None:
        data = self.storage.get(STORAGE_SIGN_IN_SESSION)
        return SignInSession.from_dict(data) if data else None

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
        Start a new flow: fresh verifier/challenge/state, pending session persisted, previous tokens
        cleared, then navigate to the authorization URI (also returned).
        """
        code_verifier = generate_code_verifier()
        code_challenge = generate_code_challenge(code_verifier)
        state = generate_state()

        sign_in_uri = self.core.generate_sign_in_uri(
            client_id=self.config.app_id,
            redirect_uri=redirect_uri,
            code_challenge=code_challenge,
            state=state,
            scopes=self.config.scopes,
            resources=self.config.resources,
            prompt=self.config.prompt,
            first_screen=first_screen,
            interaction_mode=interaction_mode,
            login_hint=login_hint,
            direct_sign_in=direct_sign_in,
            identifiers=identifiers,
            extra_params=extra_params,
            include_reserved_scopes=self.config.include_reserved_scopes,
        )

        session = SignInSession(
            redirect_uri=redirect_uri,
            code_verifier=code_verifier,
            state=state,
            post_redirect_uri=post_redirect_uri,
        )
        self.storage.set(STORAGE_SIGN_IN_SESSION, session.to_dict())
        self.tokens.clear()
        logger.info("Sign-in started for client_id=%s", self.config.app_id)

        self.navigate(sign_in_uri)
        return sign_in_uri

    def handle_sign_in_callback(self, url: str) -> str | None:
        """
        Validate the callback URL against the pending session, exchange the code, verify the
        ID token and persist tokens. Returns the post-redirect URI recorded at sign-in, if any.
        """
        params = parse_qs(urlsplit(url).query, keep_blank_values=False)

        session = self.pending_session
        if session is None:
            raise SessionNotFoundError()

        error = _first(params, QUERY_ERROR)
        if error:
            self.clear_session()
            raise ServerCallbackError(error, _first(params, QUERY_ERROR_DESCRIPTION))

        # Loose check: the callback may carry its own query string
        if not session.redirect_uri or not url.startswith(session.redirect_uri):
            raise SessionMismatchError("Redirect URI mismatch", CallbackFailure.REDIRECT_URI_MISMATCH)

        state = _first(params, QUERY_STATE)
        if not state:
            self.clear_session()
            raise SessionMismatchError("No state found in query parameters", CallbackFailure.STATE_MISSING)
        if not secrets.compare_digest(state.encode(), session.state.encode()):
            self.clear_session()
            raise SessionMismatchError("Session state mismatch", CallbackFailure.STATE_MISMATCH)

        code = _first(params, QUERY_CODE)
        if not code:
            self.clear_session()
            raise SessionMismatchError("No code found in query parameters", CallbackFailure.CODE_MISSING)

        try:
            token_response = self.core.fetch_token_by_authorization_code(
                client_id=self.config.app_id,
                client_secret=self.config.app_secret,
                redirect_uri=session.redirect_uri,
                code_verifier=session.code_verifier,
                code=code,
            )
            claims = self.verifier.verify_jwt(token_response.id_token)
        except (TokenError, JwtVerificationError) as e:
            logger.warning("Sign-in callback failed: %s", e)
            self.clear_session()
            raise

        self.tokens.save_token_response(token_response, build_access_token_key())
        self.clear_session()
        logger.info("Sign-in completed for sub=%s", claims.get("sub"))

        if session.post_redirect_uri:
            self.navigate(session.post_redirect_uri)
        return session.post_redirect_uri

    def clear_session(self) -> None:
        self.storage.remove(STORAGE_SIGN_IN_SESSION)
