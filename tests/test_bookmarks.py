import pytest

from app.newsdesk import create_app
from app.newsdesk.db import create_all
from app.newsdesk.schemas import InsertArticle
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
    admin = seed_admin(storage, "admin@example.com", "adminpw")
    app.config["TEST_PUBLISHED"] = storage.create_article(
        InsertArticle(title="Live", content="<p>a</p>", author_id=admin.id, category="Health", status="published")
    )
    app.config["TEST_DRAFT"] = storage.create_article(
        InsertArticle(title="Draft", content="<p>b</p>", author_id=admin.id, category="Health")
    )
    return app


@pytest.fixture()
def client(app):
    c = app.test_client()
    r = c.post("/api/register", json={"username": "reader@example.com", "password": "secret1"})
    assert r.status_code == 200
    return c


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/bookmarks"),
        ("post", "/api/bookmarks"),
        ("delete", "/api/bookmarks/1"),
        ("get", "/api/bookmarks/1"),
    ],
)
def test_bookmarks_require_login(app, method, path):
    anon = app.test_client()
    r = getattr(anon, method)(path, json={"articleId": 1})
    assert r.status_code == 401
    assert r.json["message"]


def test_create_bookmark_is_idempotent(client, app):
    article_id = app.config["TEST_PUBLISHED"].id
    first = client.post("/api/bookmarks", json={"articleId": article_id})
    second = client.post("/api/bookmarks", json={"articleId": article_id})
    assert first.status_code == second.status_code == 201
    assert first.json["id"] == second.json["id"]
    assert first.json["articleId"] == article_id
    assert len(client.get("/api/bookmarks").json) == 1


def test_create_bookmark_user_comes_from_session(client, app):
    me = client.get("/api/user").json
    r = client.post("/api/bookmarks", json={"articleId": app.config["TEST_PUBLISHED"].id, "userId": 999})
    assert r.json["userId"] == me["id"]


def test_cannot_bookmark_missing_or_unpublished(client, app):
    assert client.post("/api/bookmarks", json={"articleId": 9999}).status_code == 404
    assert client.post("/api/bookmarks", json={"articleId": app.config["TEST_DRAFT"].id}).status_code == 404


@pytest.mark.parametrize(
    "payload",
    [{}, {"articleId": "1"}, {"articleId": 0}, {"articleId": True}, {"articleId": 2**31}, {"articleId": 2**64}, []],
)
def test_create_bookmark_validation(client, payload):
    r = client.post("/api/bookmarks", json=payload)
    assert r.status_code == 400


def test_list_bookmarks_with_articles(client, app):
    article_id = app.config["TEST_PUBLISHED"].id
    client.post("/api/bookmarks", json={"articleId": article_id})

    r = client.get("/api/bookmarks")
    assert r.status_code == 200
    [item] = r.json
    assert item["bookmark"]["articleId"] == article_id
    assert item["article"]["title"] == "Live"


def test_delete_bookmark(client, app):
    article_id = app.config["TEST_PUBLISHED"].id
    client.post("/api/bookmarks", json={"articleId": article_id})

    r = client.delete(f"/api/bookmarks/{article_id}")
    assert r.status_code == 204
    r = client.delete(f"/api/bookmarks/{article_id}")
    assert r.status_code == 404
    assert r.json["message"] == "Bookmark not found"
    assert client.delete("/api/bookmarks/abc").status_code == 400


def test_bookmark_status(client, app):
    article_id = app.config["TEST_PUBLISHED"].id
    assert client.get(f"/api/bookmarks/{article_id}").json == {"bookmarked": False}
    client.post("/api/bookmarks", json={"articleId": article_id})
    assert client.get(f"/api/bookmarks/{article_id}").json == {"bookmarked": True}
    assert client.get("/api/bookmarks/xyz").status_code == 400
    assert client.get(f"/api/bookmarks/{2**64}").status_code == 400
    assert client.delete(f"/api/bookmarks/{2**64}").status_code == 400


def test_bookmarks_are_private(client, app):
    article_id = app.config["TEST_PUBLISHED"].id
    client.post("/api/bookmarks", json={"articleId": article_id})

    other = app.test_client()
    other.post("/api/register", json={"username": "other@example.com", "password": "secret2"})
    assert other.get("/api/bookmarks").json == []
    assert other.get(f"/api/bookmarks/{article_id}").json == {"bookmarked": False}
    assert other.delete(f"/api/bookmarks/{article_id}").status_code == 404
    assert client.get(f"/api/bookmarks/{article_id}").json == {"bookmarked": True}


def test_deleted_article_leaves_no_bookmark(client, app):
    article_id = app.config["TEST_PUBLISHED"].id
    client.post("/api/bookmarks", json={"articleId": article_id})

    admin = app.test_client()
    admin.post("/api/login", json={"username": "admin@example.com", "password": "adminpw"})
    assert admin.delete(f"/api/admin/articles/{article_id}").status_code == 204

    assert client.get("/api/bookmarks").json == []
    assert client.get(f"/api/bookmarks/{article_id}").json == {"bookmarked": False}
