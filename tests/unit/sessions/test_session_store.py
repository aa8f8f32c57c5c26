import pytest
from flask import Flask, session

from riseup.sessions import MemorySessionStore, init_sessions
from riseup.utils.cache import TTLCache


class _Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.unit
def test_ttl_cache_expires_and_evicts_lru():
    clock = _Clock()
    cache = TTLCache(maxsize=2, ttl=10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1  # touch "a" so "b" is least recently used

    cache.set("c", 3)
    assert "b" not in cache
    assert len(cache) == 2

    clock.now += 11
    assert cache.get("a", None) is None
    assert len(cache) == 0


@pytest.mark.unit
def test_ttl_cache_rejects_non_positive_lifetimes():
    with pytest.raises(ValueError):
        TTLCache(maxsize=0)
    cache = TTLCache(maxsize=1, ttl=1)
    with pytest.raises(ValueError):
        cache.set("k", "v", ttl=0)


@pytest.mark.unit
def test_memory_store_round_trip_is_isolated_from_caller_mutation():
    store = MemorySessionStore(default_ttl=60)
    body = {"user_type": "fan", "nested": {"a": 1}}
    store.set("sid-1", body, 60)

    body["nested"]["a"] = 2
    loaded = store.get("sid-1")
    assert loaded == {"user_type": "fan", "nested": {"a": 1}}

    loaded["user_type"] = "creator"
    assert store.get("sid-1")["user_type"] == "fan"


@pytest.mark.unit
def test_memory_store_never_returns_expired_sessions():
    clock = _Clock()
    store = MemorySessionStore(default_ttl=60, clock=clock)
    store.set("sid-1", {"k": "v"}, 5)

    clock.now += 5
    assert store.get("sid-1") is None
    assert len(store) == 0


@pytest.mark.unit
def test_memory_store_destroy():
    store = MemorySessionStore()
    store.set("sid-1", {"k": "v"}, 60)
    store.destroy("sid-1")
    store.destroy("missing")
    assert store.get("sid-1") is None


def _session_app(ttl=3600):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "test"
    app.config["SESSION_COOKIE_NAME"] = "riseup.sid"
    app.config["SESSION_TTL_SECONDS"] = ttl
    store = init_sessions(app)

    @app.route("/set/<value>")
    def _set(value):
        session["value"] = value
        return "ok"

    @app.route("/get")
    def _get():
        return session.get("value", "none")

    @app.route("/clear")
    def _clear():
        session.clear()
        return "cleared"

    return app, store


def _cookie(client, name="riseup.sid"):
    return client.get_cookie(name)


@pytest.mark.unit
def test_session_interface_keeps_only_the_id_in_the_cookie():
    app, store = _session_app()
    client = app.test_client()

    client.get("/set/secret-value")
    cookie = _cookie(client)
    assert cookie is not None
    assert "secret-value" not in cookie.value
    assert cookie.http_only is True
    assert store.get(cookie.value) == {"value": "secret-value"}

    assert client.get("/get").get_data(as_text=True) == "secret-value"


@pytest.mark.unit
def test_session_cookie_max_age_matches_ttl():
    app, _ = _session_app(ttl=120)
    client = app.test_client()

    response = client.get("/set/x")
    assert "Max-Age=120" in response.headers["Set-Cookie"]


@pytest.mark.unit
def test_clearing_session_destroys_store_entry_and_cookie():
    app, store = _session_app()
    client = app.test_client()
    client.get("/set/x")
    sid = _cookie(client).value

    client.get("/clear")

    assert store.get(sid) is None
    assert _cookie(client) is None
    assert client.get("/get").get_data(as_text=True) == "none"


@pytest.mark.unit
def test_unknown_session_id_starts_a_fresh_session():
    app, _ = _session_app()
    client = app.test_client()
    client.set_cookie("riseup.sid", "forged-id")

    assert client.get("/get").get_data(as_text=True) == "none"
    client.get("/set/y")
    assert _cookie(client).value != "forged-id"


@pytest.mark.unit
def test_untouched_session_sets_no_cookie():
    app, store = _session_app()
    client = app.test_client()
    response = client.get("/get")
    assert "Set-Cookie" not in response.headers
    assert len(store) == 0
