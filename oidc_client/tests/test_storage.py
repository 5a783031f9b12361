"""Tests for storage adapters (in-memory, session mapping, SQLAlchemy)."""
import pytest

from oidc_client.sql_storage import SqlStorage, create_storage_engine, init_storage
from oidc_client.storage import MemoryStorage, SessionStorage


@pytest.fixture
def session_factory():
    engine = create_storage_engine("sqlite:///:memory:")
    yield init_storage(engine)
    engine.dispose()


def test_memory_storage():
    storage = MemoryStorage()
    assert storage.get("k") is None
    storage.set("k", {"a": 1})
    assert storage.get("k") == {"a": 1}
    storage.remove("k")
    storage.remove("k")
    assert storage.get("k") is None


def test_memory_storage_warning(caplog):
    with caplog.at_level("WARNING", logger="oidc_client.storage"):
        MemoryStorage(warn=True)
    assert "not suitable for production" in caplog.text


def test_session_storage_prefixes_keys():
    session = {}
    storage = SessionStorage(session, app_id="app1")
    storage.set("id_token", "idt")
    assert session == {"oidc_app1_id_token": "idt"}
    assert storage.get("id_token") == "idt"
    storage.remove("id_token")
    assert session == {}


def test_session_storage_default_prefix():
    session = {}
    SessionStorage(session).set("refresh_token", "rt")
    assert session == {"oidc_default_refresh_token": "rt"}


def test_sql_storage_round_trip(session_factory):
    storage = SqlStorage(session_factory, namespace="s1")
    assert storage.get("access_token_map") is None
    storage.set("access_token_map", {":openid": {"token": "at", "scope": None, "expires_at": 1.5}})
    assert storage.get("access_token_map") == {":openid": {"token": "at", "scope": None, "expires_at": 1.5}}
    storage.set("access_token_map", {})
    assert storage.get("access_token_map") == {}
    storage.remove("access_token_map")
    assert storage.get("access_token_map") is None


def test_sql_storage_namespaces_are_isolated(session_factory):
    first = SqlStorage(session_factory, namespace="s1")
    second = SqlStorage(session_factory, namespace="s2")
    first.set("id_token", "one")
    second.set("id_token", "two")
    assert first.get("id_token") == "one"
    assert second.get("id_token") == "two"

    first.clear()
    assert first.get("id_token") is None
    assert second.get("id_token") == "two"
