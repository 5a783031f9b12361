"""
PKCE (RFC 7636) helpers: code verifier, S256 challenge and anti-CSRF state.
Also the access token cache key builder.
"""
import hashlib
import secrets
from base64 import urlsafe_b64encode

from oidc_client.constants import DEFAULT_RESOURCE


def generate_code_verifier() -> str:
    """Random URL-safe verifier. 32 bytes -> 43 chars (256 bits entropy)."""
    return secrets.token_urlsafe(32)


def generate_code_challenge(code_verifier: str) -> str:
    """base64url(SHA256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    """Opaque value for CSRF protection; returned in callback. Independent of the verifier."""
    return secrets.token_urlsafe(32)


def build_access_token_key(resource: str | None = None, organization_id: str | None = None) -> str:
    """
    Cache key for an access token: "#<organization_id>:<resource>".
    No organization -> empty prefix; no resource -> "openid".
    """
    prefix = f"#{organization_id}" if organization_id else ""
    return f"{prefix}:{resource or DEFAULT_RESOURCE}"
