"""
Client Web configuration. Read from the environment once at import.
"""
import os

# Identity provider base URL; discovery lives at <endpoint>/oidc/.well-known/openid-configuration
OIDC_ENDPOINT = os.environ.get("OIDC_ENDPOINT", "http://127.0.0.1:3001").rstrip("/")

# Application registered at the provider
OIDC_APP_ID = os.environ.get("OIDC_APP_ID", "sample-app")
OIDC_APP_SECRET = os.environ.get("OIDC_APP_SECRET") or None

# Callback URL the provider redirects to after sign-in (must be registered)
OIDC_REDIRECT_URI = os.environ.get("OIDC_REDIRECT_URI", "http://127.0.0.1:8000/callback")

# Where the provider sends the browser after sign-out
OIDC_POST_LOGOUT_REDIRECT_URI = os.environ.get("OIDC_POST_LOGOUT_REDIRECT_URI", "http://127.0.0.1:8000/")

# Space-separated; openid, offline_access and profile are always added
OIDC_SCOPES = os.environ.get("OIDC_SCOPES", "email").split()
OIDC_RESOURCES = os.environ.get("OIDC_RESOURCES", "").split()

# Token storage (one namespace per browser session) and the metadata/JWKS cache
OIDC_DATABASE_URL = os.environ.get("OIDC_DATABASE_URL", "sqlite:///./client_web.db")

SESSION_COOKIE = "oidc_session"
