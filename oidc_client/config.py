"""
Client configuration. Validated once at construction and immutable afterwards.
"""
from collections.abc import Sequence
from dataclasses import dataclass, field

from oidc_client.constants import PROMPT_CONSENT, RESERVED_SCOPES, RESOURCE_ORGANIZATION, SCOPE_ORGANIZATIONS
from oidc_client.errors import ConfigurationError


def with_reserved_scopes(scopes: Sequence[str] | None) -> list[str]:
    """Append openid, offline_access and profile; keep first occurrence order, drop duplicates."""
    return _unique([*(scopes or []), *RESERVED_SCOPES])


def _unique(values) -> list[str]:
    seen: set[str] = set()
    result = []
    for v in values:
        if v not in seen:
            seen.add(v)
            result.append(v)
    return result


def _require_list(name: str, value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{name} must be a list")
    for item in value:
        if not isinstance(item, str):
            raise ConfigurationError(f"{name} must contain strings only")
    return list(value)


@dataclass(frozen=True, init=False)
class Config:
    """
    endpoint: provider base URL, e.g. https://tenant.example.com
    app_id / app_secret: client credentials registered at the provider
    scopes: requested scopes; openid, offline_access and profile are added unless include_reserved_scopes is False
    resources: API resources; the organization resource is added when the organizations scope is requested
    prompt: one prompt value or a list of them (default "consent")
    """

    endpoint: str
    app_id: str
    app_secret: str | None = field(repr=False)
    scopes: tuple[str, ...]
    resources: tuple[str, ...]
    prompt: tuple[str, ...]
    include_reserved_scopes: bool

    def __init__(
        self,
        endpoint: str,
        app_id: str,
        app_secret: str | None = None,
        scopes: Sequence[str] | None = None,
        resources: Sequence[str] | None = None,
        prompt: str | Sequence[str] | None = PROMPT_CONSENT,
        include_reserved_scopes: bool = True,
    ):
        if not isinstance(endpoint, str) or not endpoint.strip():
            raise ConfigurationError("endpoint is required")
        if not isinstance(app_id, str) or not app_id.strip():
            raise ConfigurationError("app_id is required")
        scope_list = _require_list("scopes", scopes)
        resource_list = _require_list("resources", resources)

        if isinstance(prompt, str):
            prompt_list = [prompt]
        elif prompt is None:
            prompt_list = []
        else:
            prompt_list = _require_list("prompt", prompt)

        computed_scopes = with_reserved_scopes(scope_list) if include_reserved_scopes else _unique(scope_list)
        if SCOPE_ORGANIZATIONS in computed_scopes:
            resource_list = [RESOURCE_ORGANIZATION, *resource_list]

        object.__setattr__(self, "endpoint", endpoint.strip())
        object.__setattr__(self, "app_id", app_id)
        object.__setattr__(self, "app_secret", app_secret)
        object.__setattr__(self, "scopes", tuple(computed_scopes))
        object.__setattr__(self, "resources", tuple(_unique(resource_list)))
        object.__setattr__(self, "prompt", tuple(prompt_list))
        object.__setattr__(self, "include_reserved_scopes", bool(include_reserved_scopes))
