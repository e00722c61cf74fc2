from datetime import timedelta

import pytest

from app.newsdesk import create_app
from app.newsdesk.db import create_all
from app.newsdesk.seed import seed_admin
from app.newsdesk.sessions import MemorySessionStore, SessionPruner, SqlSessionStore
from app.newsdesk.storage import SqlStorage
from app.newsdesk.utils import utcnow

COOKIE = "newsdesk_sid"


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemorySessionStore()
        return
    storage = SqlStorage.from_url(f"sqlite:///{tmp_path/'sessions.db'}")
    create_all(storage.engine)
    yield SqlSessionStore(storage.sm)
    storage.engine.dispose()


def test_store_roundtrip_and_delete(store):
    store.set("abc", {"user_id": 3}, utcnow() + timedelta(hours=1))
    assert store.get("abc") == {"user_id": 3}
    store.delete("abc")
    assert store.get("abc") is None


def test_expired_session_behaves_as_absent(store):
    store.set("old", {"user_id": 1}, utcnow() - timedelta(seconds=1))
    assert store.get("old") is None
    # Lazy expiry removed it, so there is nothing left to prune.
    assert store.prune() == 0


def test_prune_removes_only_expired(store):
    now = utcnow()
    store.set("fresh", {"user_id": 1}, now + timedelta(hours=24))
    store.set("stale-1", {"user_id": 2}, now - timedelta(minutes=5))
    store.set("stale-2", {"user_id": 3}, now - timedelta(hours=1))

    assert store.prune() == 2
    assert store.get("fresh") == {"user_id": 1}


def test_pruner_sweep_and_disabled_thread():
    store = MemorySessionStore()
    store.set("stale", {"user_id": 1}, utcnow() - timedelta(seconds=1))
    pruner = SessionPruner(store, interval=0)
    pruner.start()  # interval 0 disables the background thread
    assert pruner._thread is None
    assert pruner.sweep() == 1
    assert len(store) == 0


def test_pruner_thread_runs_and_stops():
    store = MemorySessionStore()
    store.set("stale", {"user_id": 1}, utcnow() - timedelta(seconds=1))
    pruner = SessionPruner(store, interval=0.01)
    pruner.start()
    try:
        for _ in range(200):
            if len(store) == 0:
                break
            pruner._stop.wait(0.01)
    finally:
        pruner.stop()
    assert len(store) == 0


@pytest.fixture(params=["memory", "sql"])
def app(request, tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", request.param)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("SESSION_PRUNE_INTERVAL", "0")
    monkeypatch.setenv("SEED_ON_START", "0")

    app = create_app()
    storage = app.extensions["storage"]
    if isinstance(storage, SqlStorage):
        create_all(storage.engine)
    seed_admin(storage, "admin@example.com", "adminpw")
    return app


def _login(client):
    return client.post("/api/login", json={"username": "admin@example.com", "password": "adminpw"})


def test_cookie_holds_signed_id_not_state(app):
    client = app.test_client()
    assert _login(client).status_code == 200
    cookie = client.get_cookie(COOKIE)
    assert cookie is not None
    assert "user_id" not in cookie.value
    assert client.get("/api/user").json["username"] == "admin@example.com"


def test_tampered_cookie_is_anonymous(app):
    client = app.test_client()
    _login(client)
    value = client.get_cookie(COOKIE).value
    client.set_cookie(COOKIE, value[:-2] + ("AA" if not value.endswith("AA") else "BB"))
    r = client.get("/api/user")
    assert r.status_code == 200
    assert r.json is None


def test_login_issues_new_session_id(app):
    client = app.test_client()
    client.post("/api/login", json={"username": "admin@example.com", "password": "wrong-pw"})
    _login(client)
    first = client.get_cookie(COOKIE).value
    client.post("/api/logout")
    _login(client)
    assert client.get_cookie(COOKIE).value != first


def test_logout_destroys_server_side_state(app):
    client = app.test_client()
    _login(client)
    stolen = client.get_cookie(COOKIE).value

    r = client.post("/api/logout")
    assert r.status_code == 200
    assert client.get_cookie(COOKIE) is None

    # Replaying the old cookie must not revive the session.
    client.set_cookie(COOKIE, stolen)
    assert client.get("/api/user").json is None


def test_pruned_session_logs_user_out(app):
    client = app.test_client()
    _login(client)
    store = app.extensions["session_store"]
    assert store.prune(now=utcnow() + timedelta(hours=25)) == 1
    assert client.get("/api/user").json is None
