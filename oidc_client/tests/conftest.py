"""
Shared fixtures for oidc_client tests. A fake provider served through httpx.MockTransport stands in
for discovery, token, revocation, userinfo and JWKS endpoints; ID tokens are signed with a real RSA key.
"""
import json
import time
from urllib.parse import parse_qs

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric.rsa import generate_private_key

from oidc_client.client import OidcClient
from oidc_client.config import Config
from oidc_client.storage import MemoryStorage

ENDPOINT = "https://example.com"
ISSUER = "https://example.com/oidc"
APP_ID = "client_id"
APP_SECRET = "app_secret"
REDIRECT_URI = "https://example.com/callback"

DISCOVERY = {
    "issuer": ISSUER,
    "authorization_endpoint": "https://example.com/oidc/auth",
    "token_endpoint": "https://example.com/oidc/token",
    "userinfo_endpoint": "https://example.com/oidc/userinfo",
    "jwks_uri": "https://example.com/oidc/jwks",
    "revocation_endpoint": "https://example.com/oidc/revoke",
    "end_session_endpoint": "https://example.com/oidc/end",
    "response_types_supported": ["code"],
}


def _int_to_b64url(value: int) -> str:
    """Encode a positive int as base64url (JWK n/e)."""
    length = (value.bit_length() + 7) // 8
    s = jwt.utils.base64url_encode(value.to_bytes(length, "big"))
    return s.decode("utf-8") if isinstance(s, bytes) else s


def make_rsa_key(kid: str):
    """RSA private key and its public JWK (use=sig)."""
    key = generate_private_key(public_exponent=65537, key_size=2048)
    pub = key.public_key().public_numbers()
    jwk = {
        "kty": "RSA",
        "kid": kid,
        "use": "sig",
        "alg": "RS256",
        "n": _int_to_b64url(pub.n),
        "e": _int_to_b64url(pub.e),
    }
    return key, jwk


class FakeProvider:
    """
    Records every request. Token responses are served from `token_responses` (dicts or
    httpx.Response) in order, falling back to a fresh default response.
    """

    def __init__(self, key, jwk):
        self.key = key
        self.kid = jwk["kid"]
        self.jwks = {"keys": [jwk]}
        self.requests: list[httpx.Request] = []
        self.discovery_status = 200
        self.token_responses: list = []
        self.revoke_status = 200
        self.jwks_status = 200
        self.userinfo_status = 200
        self.userinfo = {"sub": "user1", "name": "Test User", "email": "user@example.com", "tenant": "t1"}

    def make_id_token(self, *, kid=None, key=None, **claims) -> str:
        now = int(time.time())
        payload = {
            "iss": ISSUER,
            "aud": APP_ID,
            "sub": "user1",
            "iat": now,
            "exp": now + 3600,
            "name": "Test User",
        }
        payload.update(claims)
        return jwt.encode(payload, key or self.key, algorithm="RS256", headers={"kid": kid or self.kid})

    def default_token_response(self) -> dict:
        return {
            "access_token": "access_token",
            "refresh_token": "refresh_token",
            "id_token": self.make_id_token(),
            "scope": "openid offline_access profile",
            "token_type": "Bearer",
            "expires_in": 3600,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/oidc/.well-known/openid-configuration":
            if self.discovery_status != 200:
                return httpx.Response(self.discovery_status, text="unavailable")
            return httpx.Response(200, text=json.dumps(DISCOVERY))
        if path == "/oidc/jwks":
            if self.jwks_status != 200:
                return httpx.Response(self.jwks_status)
            return httpx.Response(200, json=self.jwks)
        if path == "/oidc/token":
            body = self.token_responses.pop(0) if self.token_responses else self.default_token_response()
            if isinstance(body, httpx.Response):
                return body
            return httpx.Response(200, json=body)
        if path == "/oidc/revoke":
            return httpx.Response(self.revoke_status)
        if path == "/oidc/userinfo":
            if not request.headers.get("Authorization", "").startswith("Bearer "):
                return httpx.Response(401)
            return httpx.Response(self.userinfo_status, json=self.userinfo)
        return httpx.Response(404)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def form(self, request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    def http_client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture(scope="session")
def signing_key():
    return make_rsa_key("test-key")


@pytest.fixture(scope="session")
def rotated_key():
    return make_rsa_key("rotated-key")


@pytest.fixture
def provider(signing_key):
    key, jwk = signing_key
    return FakeProvider(key, jwk)


@pytest.fixture
def http_client(provider):
    with provider.http_client() as client:
        yield client


@pytest.fixture
def config():
    return Config(endpoint=ENDPOINT, app_id=APP_ID, app_secret=APP_SECRET)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def navigated():
    return []


@pytest.fixture
def client(config, storage, navigated, http_client):
    return OidcClient(config, navigate=navigated.append, storage=storage, http_client=http_client)
