"""Tests for the token cache."""
import time

from oidc_client.models import TokenResponse
from oidc_client.storage import MemoryStorage
from oidc_client.token_cache import TokenCache


def _response(**overrides):
    data = {
        "access_token": "at",
        "refresh_token": "rt",
        "id_token": "idt",
        "scope": "openid",
        "expires_in": 3600,
    }
    data.update(overrides)
    return TokenResponse(**data)


def test_save_and_get():
    tokens = TokenCache(MemoryStorage())
    tokens.save_token_response(_response(), ":openid")
    assert tokens.refresh_token == "rt"
    assert tokens.id_token == "idt"
    cached = tokens.get(":openid")
    assert cached.token == "at"
    assert cached.scope == "openid"
    assert cached.expires_at > time.time() + 3500


def test_token_inside_leeway_is_expired():
    tokens = TokenCache(MemoryStorage())
    tokens.save_token_response(_response(expires_in=5), ":openid")
    assert tokens.get(":openid") is None


def test_missing_key():
    tokens = TokenCache(MemoryStorage())
    assert tokens.get(":openid") is None


def test_refresh_and_id_token_kept_when_not_rotated():
    tokens = TokenCache(MemoryStorage())
    tokens.save_token_response(_response(), ":openid")
    tokens.save_token_response(_response(access_token="at2", refresh_token=None, id_token=None), ":api")
    assert tokens.refresh_token == "rt"
    assert tokens.id_token == "idt"
    assert tokens.get(":api").token == "at2"
    assert tokens.get(":openid").token == "at"


def test_evict():
    storage = MemoryStorage()
    tokens = TokenCache(storage)
    tokens.save_token_response(_response(), ":openid")
    tokens.save_token_response(_response(access_token="at2"), "#org:api")
    tokens.evict(":openid")
    assert tokens.get(":openid") is None
    assert list(storage.get("access_token_map")) == ["#org:api"]


def test_clear():
    storage = MemoryStorage()
    tokens = TokenCache(storage)
    tokens.save_token_response(_response(), ":openid")
    tokens.clear()
    assert tokens.refresh_token is None
    assert tokens.id_token is None
    assert storage.get("access_token_map") is None


def test_lock_per_key():
    tokens = TokenCache(MemoryStorage())
    assert tokens.lock_for(":openid") is tokens.lock_for(":openid")
    assert tokens.lock_for(":openid") is not tokens.lock_for(":api")
