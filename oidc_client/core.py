"""
Protocol core: authorization and end-session URIs, token endpoint grants, revocation (RFC 7009)
and UserInfo. Stateless apart from the provider metadata resolved at construction.
"""
import logging
from collections.abc import Mapping, Sequence
from urllib.parse import urlencode

import httpx

from oidc_client.config import with_reserved_scopes
from oidc_client.constants import (
    CODE_CHALLENGE_METHOD_S256,
    GRANT_AUTHORIZATION_CODE,
    GRANT_REFRESH_TOKEN,
    PROMPT_CONSENT,
    QUERY_CLIENT_ID,
    QUERY_CLIENT_SECRET,
    QUERY_CODE,
    QUERY_CODE_CHALLENGE,
    QUERY_CODE_CHALLENGE_METHOD,
    QUERY_CODE_VERIFIER,
    QUERY_DIRECT_SIGN_IN,
    QUERY_FIRST_SCREEN,
    QUERY_GRANT_TYPE,
    QUERY_IDENTIFIER,
    QUERY_INTERACTION_MODE,
    QUERY_LOGIN_HINT,
    QUERY_ORGANIZATION_ID,
    QUERY_POST_LOGOUT_REDIRECT_URI,
    QUERY_PROMPT,
    QUERY_REDIRECT_URI,
    QUERY_REFRESH_TOKEN,
    QUERY_RESOURCE,
    QUERY_RESPONSE_TYPE,
    QUERY_SCOPE,
    QUERY_STATE,
    QUERY_TOKEN,
)
from oidc_client.discovery import fetch_provider_metadata
from oidc_client.errors import ConfigurationError, RevocationError, TokenError, UserInfoError
from oidc_client.models import ProviderMetadata, TokenResponse, UserInfoResponse, parse_json_safe
from oidc_client.storage import Storage

logger = logging.getLogger(__name__)

_FORM_HEADERS = {"Accept": "application/json"}


class OidcCore:
    """
    Talks to the provider endpoints listed in the discovery document.
    Metadata is fetched once here and treated as immutable for the lifetime of the instance.
    """

    def __init__(self, endpoint: str, http_client: httpx.Client, cache: Storage | None = None):
        self.endpoint = endpoint
        self.http_client = http_client
        self.oidc_config: ProviderMetadata = fetch_provider_metadata(endpoint, http_client, cache)

    def generate_sign_in_uri(
        self,
        *,
        client_id: str,
        redirect_uri: str,
        code_challenge: str,
        state: str,
        scopes: Sequence[str] | None = None,
        resources: Sequence[str] | None = None,
        prompt: Sequence[str] | None = None,
        first_screen: str | None = None,
        interaction_mode: str | None = None,
        login_hint: str | None = None,
        direct_sign_in: Mapping[str, str] | None = None,
        identifiers: Sequence[str] | None = None,
        extra_params: Mapping[str, str] | None = None,
        include_reserved_scopes: bool = True,
    ) -> str:
        """
        Build the authorization request URI. first_screen wins over interaction_mode;
        extra_params are applied last and override anything they collide with.
        """
        params: dict = {
            QUERY_CLIENT_ID: client_id,
            QUERY_REDIRECT_URI: redirect_uri,
            QUERY_CODE_CHALLENGE: code_challenge,
            QUERY_CODE_CHALLENGE_METHOD: CODE_CHALLENGE_METHOD_S256,
            QUERY_STATE: state,
            QUERY_RESPONSE_TYPE: "code",
        }

        params[QUERY_PROMPT] = " ".join(prompt) if prompt else PROMPT_CONSENT

        if include_reserved_scopes:
            params[QUERY_SCOPE] = " ".join(with_reserved_scopes(scopes))
        elif scopes:
            params[QUERY_SCOPE] = " ".join(scopes)

        if login_hint:
            params[QUERY_LOGIN_HINT] = login_hint

        if direct_sign_in:
            if not direct_sign_in.get("method") or not direct_sign_in.get("target"):
                raise ConfigurationError("direct_sign_in requires both method and target")
            params[QUERY_DIRECT_SIGN_IN] = f"{direct_sign_in['method']}:{direct_sign_in['target']}"

        if resources:
            params[QUERY_RESOURCE] = list(resources)

        if first_screen:
            params[QUERY_FIRST_SCREEN] = first_screen
        elif interaction_mode:
            params[QUERY_INTERACTION_MODE] = interaction_mode

        if identifiers:
            params[QUERY_IDENTIFIER] = " ".join(identifiers)

        if extra_params:
            params.update(extra_params)

        for key, value in params.items():
            if key is None or value is None:
                raise ConfigurationError("Parameters contain nil key, please check the input")

        return f"{self.oidc_config.authorization_endpoint}?{urlencode(params, doseq=True)}"

    def generate_sign_out_uri(self, *, client_id: str, post_logout_redirect_uri: str | None = None) -> str:
        params = {QUERY_CLIENT_ID: client_id}
        if post_logout_redirect_uri:
            params[QUERY_POST_LOGOUT_REDIRECT_URI] = post_logout_redirect_uri
        return f"{self.oidc_config.end_session_endpoint}?{urlencode(params)}"

    def fetch_token_by_authorization_code(
        self,
        *,
        client_id: str,
        client_secret: str | None,
        redirect_uri: str,
        code_verifier: str,
        code: str,
        resource: str | None = None,
    ) -> TokenResponse:
        data = {
            QUERY_CLIENT_ID: client_id,
            QUERY_CLIENT_SECRET: client_secret,
            QUERY_CODE: code,
            QUERY_CODE_VERIFIER: code_verifier,
            QUERY_REDIRECT_URI: redirect_uri,
            QUERY_GRANT_TYPE: GRANT_AUTHORIZATION_CODE,
        }
        if resource:
            data[QUERY_RESOURCE] = resource
        return self._post_token(data)

    def fetch_token_by_refresh_token(
        self,
        *,
        client_id: str,
        client_secret: str | None,
        refresh_token: str,
        resource: str | None = None,
        organization_id: str | None = None,
        scopes: Sequence[str] | None = None,
    ) -> TokenResponse:
        if scopes is not None and (isinstance(scopes, str) or not isinstance(scopes, (list, tuple))):
            raise ValueError("Scopes must be a list")
        data = {
            QUERY_CLIENT_ID: client_id,
            QUERY_CLIENT_SECRET: client_secret,
            QUERY_REFRESH_TOKEN: refresh_token,
            QUERY_GRANT_TYPE: GRANT_REFRESH_TOKEN,
        }
        if resource:
            data[QUERY_RESOURCE] = resource
        if organization_id:
            data[QUERY_ORGANIZATION_ID] = organization_id
        if scopes:
            data[QUERY_SCOPE] = " ".join(scopes)
        return self._post_token(data)

    def _post_token(self, data: dict) -> TokenResponse:
        # Public clients have no secret; don't send an empty field
        if data.get(QUERY_CLIENT_SECRET) is None:
            data.pop(QUERY_CLIENT_SECRET, None)
        logger.debug("Token request grant_type=%s", data[QUERY_GRANT_TYPE])
        r = self.http_client.post(self.oidc_config.token_endpoint, data=data, headers=_FORM_HEADERS)
        if not r.is_success:
            raise TokenError.from_response(r)
        return parse_json_safe(r.text, TokenResponse)

    def revoke_token(self, *, client_id: str, client_secret: str | None, token: str) -> None:
        data = {QUERY_TOKEN: token, QUERY_CLIENT_ID: client_id}
        if client_secret is not None:
            data[QUERY_CLIENT_SECRET] = client_secret
        r = self.http_client.post(self.oidc_config.revocation_endpoint, data=data, headers=_FORM_HEADERS)
        if not r.is_success:
            raise RevocationError.from_response(r)

    def fetch_user_info(self, *, access_token: str) -> UserInfoResponse:
        r = self.http_client.get(
            self.oidc_config.userinfo_endpoint,
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        )
        if not r.is_success:
            raise UserInfoError.from_response(r)
        return parse_json_safe(r.text, UserInfoResponse)
