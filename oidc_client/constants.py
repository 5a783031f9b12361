"""
Wire constants for the OIDC client: query keys, grant types, reserved scopes and resources,
storage and cache keys.
"""

DISCOVERY_PATH = "/oidc/.well-known/openid-configuration"

# Query / form keys used on the wire
QUERY_CLIENT_ID = "client_id"
QUERY_CLIENT_SECRET = "client_secret"
QUERY_TOKEN = "token"
QUERY_CODE = "code"
QUERY_CODE_VERIFIER = "code_verifier"
QUERY_CODE_CHALLENGE = "code_challenge"
QUERY_CODE_CHALLENGE_METHOD = "code_challenge_method"
QUERY_PROMPT = "prompt"
QUERY_REDIRECT_URI = "redirect_uri"
QUERY_POST_LOGOUT_REDIRECT_URI = "post_logout_redirect_uri"
QUERY_GRANT_TYPE = "grant_type"
QUERY_REFRESH_TOKEN = "refresh_token"
QUERY_SCOPE = "scope"
QUERY_STATE = "state"
QUERY_RESPONSE_TYPE = "response_type"
QUERY_RESOURCE = "resource"
QUERY_ORGANIZATION_ID = "organization_id"
QUERY_LOGIN_HINT = "login_hint"
QUERY_DIRECT_SIGN_IN = "direct_sign_in"
QUERY_FIRST_SCREEN = "first_screen"
QUERY_INTERACTION_MODE = "interaction_mode"
QUERY_IDENTIFIER = "identifier"
QUERY_ERROR = "error"
QUERY_ERROR_DESCRIPTION = "error_description"

GRANT_AUTHORIZATION_CODE = "authorization_code"
GRANT_REFRESH_TOKEN = "refresh_token"

CODE_CHALLENGE_METHOD_S256 = "S256"

PROMPT_LOGIN = "login"
PROMPT_NONE = "none"
PROMPT_CONSENT = "consent"
PROMPT_SELECT_ACCOUNT = "select_account"

# Added to every authorization request unless include_reserved_scopes is off
RESERVED_SCOPES = ("openid", "offline_access", "profile")

SCOPE_PROFILE = "profile"
SCOPE_EMAIL = "email"
SCOPE_PHONE = "phone"
SCOPE_CUSTOM_DATA = "custom_data"
SCOPE_IDENTITIES = "identities"
SCOPE_ROLES = "roles"
SCOPE_ORGANIZATIONS = "urn:logto:scope:organizations"
SCOPE_ORGANIZATION_ROLES = "urn:logto:scope:organization_roles"

# Organization template resource; requested automatically with the organizations scope
RESOURCE_ORGANIZATION = "urn:logto:resource:organizations"

# Default resource segment of an access token key
DEFAULT_RESOURCE = "openid"

# Signing algorithms accepted for ID tokens (no HMAC, no "none")
SUPPORTED_ALGORITHMS = ["RS256", "RS384", "RS512", "ES256", "ES384", "ES512", "ES256K"]

# Access tokens expiring within this many seconds are treated as expired
ACCESS_TOKEN_LEEWAY_SECONDS = 10

# Clock skew tolerated on ID token exp, nbf and iat
ID_TOKEN_LEEWAY_SECONDS = 60

# Minimum age of the cached JWKS before an unknown kid may force a refetch
JWKS_REFETCH_TTL_SECONDS = 300

STORAGE_SIGN_IN_SESSION = "sign_in_session"
STORAGE_REFRESH_TOKEN = "refresh_token"
STORAGE_ID_TOKEN = "id_token"
STORAGE_ACCESS_TOKEN_MAP = "access_token_map"

CACHE_OIDC_CONFIG = "oidc_config"
CACHE_JWKS = "jwks"
CACHE_JWKS_LAST_UPDATE = "jwks_last_update"
