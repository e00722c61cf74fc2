import logging

import pytest

from app.newsdesk import create_app
from app.newsdesk.db import create_all
from app.newsdesk.seed import seed_admin
from app.newsdesk.storage import SqlStorage


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

    @app.get("/api/_explode")
    def _explode():
        raise RuntimeError("db password is hunter2")

    return app


@pytest.fixture()
def client(app):
    c = app.test_client()
    r = c.post("/api/login", json={"username": "admin@example.com", "password": "adminpw"})
    assert r.status_code == 200
    return c


def _boom(*args, **kwargs):
    raise RuntimeError("backend unavailable")


def test_unhandled_exception_is_generic_500(client, caplog):
    with caplog.at_level(logging.ERROR):
        r = client.get("/api/_explode")
    assert r.status_code == 500
    assert r.json == {"message": "Internal Server Error"}
    assert b"hunter2" not in r.data
    assert any("Unhandled 500" in rec.getMessage() for rec in caplog.records)


def test_user_lookup_failure_is_anonymous(client, app, monkeypatch):
    assert client.get("/api/user").json["username"] == "admin@example.com"

    monkeypatch.setattr(type(app.extensions["storage"]), "get_user", _boom)

    r = client.get("/api/user")
    assert r.status_code == 200
    assert r.json is None
    assert client.get("/api/bookmarks").status_code == 401
    assert client.get("/api/admin/users").status_code == 403


def test_session_store_failure_is_anonymous(client, app, monkeypatch):
    monkeypatch.setattr(type(app.extensions["session_store"]), "get", _boom)

    r = client.get("/api/user")
    assert r.status_code == 200
    assert r.json is None
    assert client.get("/api/bookmarks").status_code == 401


def test_wrong_method_is_json(client):
    r = client.delete("/api/articles")
    assert r.status_code == 405
    assert "message" in r.json
