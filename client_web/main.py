"""
Client Web sample app: sign-in with Authorization Code + PKCE through OidcClient.
GET /, /sign-in, /callback, /sign-out, /userinfo. Port 8000.
"""
import html
import json
import logging
import secrets
from dataclasses import asdict

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from client_web.config import (
    OIDC_APP_ID,
    OIDC_APP_SECRET,
    OIDC_DATABASE_URL,
    OIDC_ENDPOINT,
    OIDC_POST_LOGOUT_REDIRECT_URI,
    OIDC_REDIRECT_URI,
    OIDC_RESOURCES,
    OIDC_SCOPES,
    SESSION_COOKIE,
)
from oidc_client.client import OidcClient
from oidc_client.config import Config
from oidc_client.errors import (
    CallbackError,
    JwtVerificationError,
    NotAuthenticatedError,
    ResponseError,
    RevocationError,
    TokenError,
)
from oidc_client.sql_storage import SqlStorage, create_storage_engine, init_storage

logger = logging.getLogger(__name__)

app = FastAPI(title="Client Web", version="0.4.0")

oidc_config = Config(
    endpoint=OIDC_ENDPOINT,
    app_id=OIDC_APP_ID,
    app_secret=OIDC_APP_SECRET,
    scopes=OIDC_SCOPES,
    resources=OIDC_RESOURCES,
)

engine = create_storage_engine(OIDC_DATABASE_URL)
SessionLocal = init_storage(engine)
# Provider metadata and JWKS, shared by every browser session
provider_cache = SqlStorage(SessionLocal, namespace="__cache__")

_http_client = httpx.Client(timeout=10.0)


def get_http_client() -> httpx.Client:
    """Dependency: HTTP client for provider calls."""
    return _http_client


class Navigation:
    """navigate callback for OidcClient; remembers the last URI so the route can redirect to it."""

    def __init__(self):
        self.uri: str | None = None

    def __call__(self, uri: str) -> None:
        self.uri = uri


class BrowserSession:
    """OidcClient bound to one browser (cookie) plus the redirect it asked for."""

    def __init__(self, session_id: str, is_new: bool, http_client: httpx.Client):
        self.session_id = session_id
        self.is_new = is_new
        self.navigation = Navigation()
        self.storage = SqlStorage(SessionLocal, namespace=session_id)
        self.client = OidcClient(
            oidc_config,
            navigate=self.navigation,
            storage=self.storage,
            cache=provider_cache,
            http_client=http_client,
        )

    def redirect(self, fallback: str = "/") -> RedirectResponse:
        response = RedirectResponse(url=self.navigation.uri or fallback, status_code=302)
        if self.is_new:
            response.set_cookie(SESSION_COOKIE, self.session_id, httponly=True, samesite="lax")
        return response


def get_browser_session(request: Request, http_client: httpx.Client = Depends(get_http_client)) -> BrowserSession:
    """Dependency: OidcClient for the caller's session cookie (a new session if there is none)."""
    session_id = request.cookies.get(SESSION_COOKIE)
    is_new = not session_id
    if is_new:
        session_id = secrets.token_urlsafe(32)
    return BrowserSession(session_id, is_new, http_client)


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body>
  <h1>{html.escape(title)}</h1>
  {body}
  <p><a href="/">Home</a></p>
</body>
</html>""",
        status_code=status_code,
    )


@app.exception_handler(ResponseError)
def provider_error_handler(request: Request, exc: ResponseError):
    logger.warning("Provider returned an error on %s: %s", request.url.path, exc)
    return _page("Identity provider error", f"<p>{html.escape(str(exc))}</p>", status_code=502)


@app.exception_handler(httpx.HTTPError)
def transport_error_handler(request: Request, exc: httpx.HTTPError):
    logger.warning("Identity provider unreachable on %s: %s", request.url.path, exc)
    return _page("Identity provider unreachable", f"<p>{html.escape(str(exc))}</p>", status_code=502)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "client_web"}


@app.get("/", response_class=HTMLResponse)
def home(session: BrowserSession = Depends(get_browser_session)):
    """Home page: sign-in state and links."""
    claims = session.client.id_token_claims()
    if claims is None:
        return _page("OIDC Client", '<p><a href="/sign-in">Sign in</a></p>')
    who = html.escape(claims.name or claims.username or claims.sub or "")
    return _page(
        "OIDC Client",
        f"""<p>Signed in as <strong>{who}</strong></p>
  <p><a href="/userinfo">Fetch user info</a></p>
  <p><a href="/sign-out">Sign out</a></p>""",
    )


@app.get("/sign-in")
def sign_in(session: BrowserSession = Depends(get_browser_session)):
    """Start sign-in: store the pending session and redirect to the provider."""
    session.client.sign_in(OIDC_REDIRECT_URI, post_redirect_uri="/")
    return session.redirect()


@app.get("/callback")
def callback(request: Request, session: BrowserSession = Depends(get_browser_session)):
    """Handle the redirect from the provider: validate, exchange the code, store tokens."""
    try:
        session.client.handle_sign_in_callback(str(request.url))
    except CallbackError as e:
        return _page("Sign-in failed", f"<p>{html.escape(str(e))}</p>", status_code=400)
    except (TokenError, JwtVerificationError) as e:
        return _page("Sign-in failed", f"<p>Token exchange failed: {html.escape(str(e))}</p>", status_code=400)
    return session.redirect()


@app.get("/sign-out")
def sign_out(session: BrowserSession = Depends(get_browser_session)):
    """Revoke and clear tokens, then redirect to the provider's end-session endpoint."""
    try:
        session.client.sign_out(OIDC_POST_LOGOUT_REDIRECT_URI)
    except (RevocationError, httpx.HTTPError) as e:
        # Tokens are already cleared locally; still end the provider session
        logger.info("Continuing sign-out after revocation failure: %s", e)
    session.storage.clear()
    response = session.redirect()
    response.delete_cookie(SESSION_COOKIE)
    return response


@app.get("/userinfo", response_class=HTMLResponse)
def userinfo(session: BrowserSession = Depends(get_browser_session)):
    """Call the provider's UserInfo endpoint with the default access token (refreshing if needed)."""
    try:
        info = session.client.fetch_user_info()
    except NotAuthenticatedError:
        return _page("User info", '<p>Not signed in. <a href="/sign-in">Sign in</a> first.</p>')
    body = json.dumps(asdict(info), indent=2, default=str)
    return _page("User info", f"<pre>{html.escape(body)}</pre>")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "client_web.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
