"""
Pytest configuration for client_web. Point the app at a fake provider and in-memory SQLite
before client_web.main is imported.
"""
import os

os.environ["OIDC_ENDPOINT"] = "https://example.com"
os.environ["OIDC_APP_ID"] = "client_id"
os.environ["OIDC_APP_SECRET"] = "app_secret"
# TestClient requests are addressed to http://testserver
os.environ["OIDC_REDIRECT_URI"] = "http://testserver/callback"
os.environ["OIDC_POST_LOGOUT_REDIRECT_URI"] = "http://testserver/"
# In-memory SQLite; create_storage_engine uses StaticPool so all connections share the same DB
os.environ["OIDC_DATABASE_URL"] = "sqlite:///:memory:"
