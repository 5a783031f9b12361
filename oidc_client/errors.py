"""
Error taxonomy for the OIDC client. Every failure surfaces to the caller of the client operation;
only the JWKS refetch on an unknown key id is retried internally.
"""
from enum import Enum

import httpx


class OidcClientError(Exception):
    """Base class for all client errors."""


class ConfigurationError(OidcClientError, ValueError):
    """Malformed client configuration or authorization request parameters."""


class CallbackFailure(str, Enum):
    """Why a sign-in callback was rejected, in the order the checks run."""

    SESSION_NOT_FOUND = "session_not_found"
    SERVER_ERROR = "server_error"
    REDIRECT_URI_MISMATCH = "redirect_uri_mismatch"
    STATE_MISSING = "state_missing"
    STATE_MISMATCH = "state_mismatch"
    CODE_MISSING = "code_missing"


class CallbackError(OidcClientError):
    """A sign-in callback failed validation. `reason` tells the sub-case apart."""

    def __init__(self, message: str, reason: CallbackFailure):
        super().__init__(message)
        self.reason = reason


class SessionNotFoundError(CallbackError):
    def __init__(self, message: str = "No sign-in session found"):
        super().__init__(message, CallbackFailure.SESSION_NOT_FOUND)


class SessionMismatchError(CallbackError):
    """Callback URL does not belong to the pending session (redirect URI, state or code)."""


class ServerCallbackError(CallbackError):
    """The identity provider redirected back with an `error` parameter."""

    def __init__(self, error: str, error_description: str | None = None):
        super().__init__(
            f"Error: {error}, Description: {error_description}",
            CallbackFailure.SERVER_ERROR,
        )
        self.error = error
        self.error_description = error_description


class ResponseError(OidcClientError):
    """Non-2xx response from the provider. Keeps the raw response for diagnostics."""

    def __init__(self, message: str, response: httpx.Response | None = None):
        super().__init__(message)
        self.response = response

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ResponseError":
        return cls(f"{response.status_code} {response.reason_phrase}".strip(), response=response)


class DiscoveryError(ResponseError):
    pass


class TokenError(ResponseError):
    pass


class RevocationError(ResponseError):
    pass


class UserInfoError(ResponseError):
    pass


class JwksError(ResponseError):
    pass


class NotAuthenticatedError(OidcClientError):
    """Operation requires a signed-in user (an ID token in storage)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class JwtVerificationError(OidcClientError):
    """ID token signature, issuer, audience or expiry check failed."""
