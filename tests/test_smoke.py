import pytest

from app.newsdesk import create_app


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("SESSION_PRUNE_INTERVAL", "0")
    monkeypatch.setenv("ADMIN_USERNAME", "admin@example.com")
    monkeypatch.setenv("ADMIN_PASSWORD", "adminpassword")
    monkeypatch.delenv("SEED_ON_START", raising=False)

    app = create_app()
    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").data == b"ok"


def test_memory_backend_boots_with_seeded_admin_and_samples(client):
    r = client.get("/api/articles")
    assert r.status_code == 200
    assert len(r.json) == 3

    r = client.post("/api/login", json={"username": "admin@example.com", "password": "adminpassword"})
    assert r.status_code == 200
    assert r.json["isAdmin"] is True
    assert "password" not in r.json

    r = client.get("/api/admin/users")
    assert r.status_code == 200


def test_unknown_route_is_json_404(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert "message" in r.json


def test_production_requires_real_secret(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    with pytest.raises(RuntimeError):
        create_app()


def test_production_refuses_memory_storage(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "a-long-random-secret")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    with pytest.raises(RuntimeError):
        create_app()
