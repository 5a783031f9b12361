"""
OpenID Connect discovery: GET <endpoint>/oidc/.well-known/openid-configuration, once per client.
The raw document can be kept in an injected cache so other client instances skip the request.
"""
import logging

import httpx

from oidc_client.constants import CACHE_OIDC_CONFIG, DISCOVERY_PATH
from oidc_client.errors import DiscoveryError
from oidc_client.models import ProviderMetadata, parse_json_safe
from oidc_client.storage import Storage

logger = logging.getLogger(__name__)


def discovery_url(endpoint: str) -> str:
    return f"{endpoint.rstrip('/')}{DISCOVERY_PATH}"


def fetch_provider_metadata(
    endpoint: str,
    http_client: httpx.Client,
    cache: Storage | None = None,
) -> ProviderMetadata:
    """Resolve provider metadata, from cache when present. Non-2xx raises DiscoveryError (nothing cached)."""
    raw = cache.get(CACHE_OIDC_CONFIG) if cache is not None else None
    if raw is None:
        url = discovery_url(endpoint)
        logger.debug("Fetching OIDC discovery document from %s", url)
        r = http_client.get(url, headers={"Accept": "application/json"})
        if not r.is_success:
            raise DiscoveryError.from_response(r)
        raw = r.text
        if cache is not None:
            cache.set(CACHE_OIDC_CONFIG, raw)
    return parse_json_safe(raw, ProviderMetadata)
