"""
Typed records for provider responses, token claims and client state.
Provider payloads are tolerant: known fields map to attributes, everything else lands in unknown_keys.
"""
import json
from dataclasses import asdict, dataclass, field, fields
from typing import Any, TypeVar

T = TypeVar("T")


def parse_json_safe(data: str | bytes | dict, record_class: type[T]) -> T:
    """
    Map a JSON document (string or already-decoded dict) onto record_class.
    record_class must be a dataclass with an `unknown_keys` field; unrecognized keys are kept there.
    """
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object for {record_class.__name__}")
    known = {f.name for f in fields(record_class)} - {"unknown_keys"}
    known_data = {k: v for k, v in data.items() if k in known}
    unknown_data = {k: v for k, v in data.items() if k not in known}
    return record_class(**known_data, unknown_keys=unknown_data)


@dataclass(frozen=True)
class ProviderMetadata:
    """Non-exhaustive view of the OpenID Connect discovery document."""

    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    end_session_endpoint: str | None = None
    revocation_endpoint: str | None = None
    jwks_uri: str | None = None
    issuer: str | None = None
    unknown_keys: dict[str, Any] = field(default_factory=dict)


@dataclass
class TokenResponse:
    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    scope: str | None = None
    token_type: str | None = None
    expires_in: int | None = None
    unknown_keys: dict[str, Any] = field(default_factory=dict)


@dataclass
class UserInfoResponse:
    sub: str | None = None
    name: str | None = None
    username: str | None = None
    picture: str | None = None
    email: str | None = None
    email_verified: bool | None = None
    phone_number: str | None = None
    phone_number_verified: bool | None = None
    custom_data: Any = None
    identities: Any = None
    organizations: list[str] | None = None
    organization_roles: list[str] | None = None
    roles: list[str] | None = None
    unknown_keys: dict[str, Any] = field(default_factory=dict)


@dataclass
class IdTokenClaims:
    """
    Claims of the ID token. organization_roles entries have the form "<organization id>:<role name>".
    """

    iss: str | None = None
    sub: str | None = None
    aud: str | list[str] | None = None
    exp: int | None = None
    iat: int | None = None
    at_hash: str | None = None
    name: str | None = None
    username: str | None = None
    picture: str | None = None
    email: str | None = None
    email_verified: bool | None = None
    phone_number: str | None = None
    phone_number_verified: bool | None = None
    organizations: list[str] | None = None
    organization_roles: list[str] | None = None
    roles: list[str] | None = None
    unknown_keys: dict[str, Any] = field(default_factory=dict)


@dataclass
class AccessTokenClaims:
    iss: str | None = None
    sub: str | None = None
    aud: str | list[str] | None = None
    exp: int | None = None
    iat: int | None = None
    jti: str | None = None
    scope: str | None = None
    client_id: str | None = None
    organization_id: str | None = None
    unknown_keys: dict[str, Any] = field(default_factory=dict)


@dataclass
class AccessToken:
    """A cached access token. expires_at is epoch seconds."""

    token: str
    scope: str | None
    expires_at: float

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AccessToken":
        return cls(token=data["token"], scope=data.get("scope"), expires_at=float(data["expires_at"]))


@dataclass
class SignInSession:
    """Pending sign-in flow, stored between sign_in and the callback."""

    redirect_uri: str
    code_verifier: str
    state: str
    post_redirect_uri: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SignInSession":
        return cls(
            redirect_uri=data.get("redirect_uri") or "",
            code_verifier=data.get("code_verifier") or "",
            state=data.get("state") or "",
            post_redirect_uri=data.get("post_redirect_uri"),
        )
