"""
Plain records exchanged between the storage backends and the HTTP layer.

Storage hands out these frozen dataclasses rather than ORM rows, so callers
only ever see snapshots. The ``validate_*`` helpers turn a decoded JSON body
into an insert shape and return ``(record, [])`` or ``(None, errors)``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from app.newsdesk.constants import (
    ARTICLE_STATUSES,
    CATEGORY_ALL,
    MAX_ID,
    MIN_PASSWORD_LENGTH,
    STORED_CATEGORIES,
)
from app.newsdesk.utils import is_valid_id


@dataclass(frozen=True)
class User:
    id: int
    username: str
    password: str  # salted hash, never plaintext
    first_name: str | None
    last_name: str | None
    is_admin: bool
    created_at: datetime


@dataclass(frozen=True)
class Article:
    id: int
    title: str
    content: str
    summary: str | None
    author_id: int
    category: str
    featured_image_url: str | None
    status: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Bookmark:
    id: int
    user_id: int
    article_id: int
    created_at: datetime


@dataclass(frozen=True)
class BookmarkWithArticle:
    bookmark: Bookmark
    article: Article


@dataclass(frozen=True)
class InsertUser:
    username: str
    password: str
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True)
class InsertArticle:
    title: str
    content: str
    author_id: int
    category: str
    summary: str | None = None
    featured_image_url: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class ArticleUpdate:
    """Partial article edit. Only names listed in ``supplied`` are applied."""

    title: str | None = None
    content: str | None = None
    summary: str | None = None
    category: str | None = None
    featured_image_url: str | None = None
    status: str | None = None
    supplied: frozenset[str] = field(default_factory=frozenset)

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.supplied}


@dataclass(frozen=True)
class InsertBookmark:
    user_id: int
    article_id: int


# ---------- Validation ----------

# Wire name -> attribute name for article fields a client may send.
_ARTICLE_FIELDS = {
    "title": "title",
    "content": "content",
    "summary": "summary",
    "category": "category",
    "featuredImageUrl": "featured_image_url",
    "status": "status",
}


def _optional_str(payload: dict, key: str, errors: list[str]) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{key} must be a string.")
        return None
    return value.strip() or None


def _required_str(payload: dict, key: str, errors: list[str]) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{key} is required.")
        return ""
    return value.strip()


def _check_category(value: str | None, errors: list[str]) -> None:
    if value is None:
        return
    if value == CATEGORY_ALL or value not in STORED_CATEGORIES:
        errors.append(f"Invalid category. Must be one of: {', '.join(sorted(STORED_CATEGORIES))}")


def _check_status(value: str | None, errors: list[str]) -> None:
    if value is not None and value not in ARTICLE_STATUSES:
        errors.append(f"Invalid status. Must be one of: {', '.join(ARTICLE_STATUSES)}")


def _require_object(payload: Any) -> tuple[dict, list[str]]:
    if not isinstance(payload, dict):
        return {}, ["Request body must be a JSON object."]
    return payload, []


def validate_insert_user(payload: Any) -> tuple[InsertUser | None, list[str]]:
    """Validate a registration body. ``password`` is returned as plaintext."""
    payload, errors = _require_object(payload)
    if errors:
        return None, errors
    username = _required_str(payload, "username", errors)
    password = payload.get("password")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"password must be at least {MIN_PASSWORD_LENGTH} characters.")
    first_name = _optional_str(payload, "firstName", errors)
    last_name = _optional_str(payload, "lastName", errors)
    if errors:
        return None, errors
    return InsertUser(username=username, password=password, first_name=first_name, last_name=last_name), []


def validate_credentials(payload: Any) -> tuple[tuple[str, str] | None, list[str]]:
    payload, errors = _require_object(payload)
    if errors:
        return None, errors
    username = payload.get("username")
    password = payload.get("password")
    if not isinstance(username, str) or not username.strip():
        errors.append("username is required.")
    if not isinstance(password, str) or not password:
        errors.append("password is required.")
    if errors:
        return None, errors
    return (username.strip(), password), []


def validate_insert_article(payload: Any, author_id: int) -> tuple[InsertArticle | None, list[str]]:
    """Validate an article creation body; ``author_id`` comes from the session."""
    payload, errors = _require_object(payload)
    if errors:
        return None, errors
    title = _required_str(payload, "title", errors)
    content = _required_str(payload, "content", errors)
    category = _required_str(payload, "category", errors)
    if category:
        _check_category(category, errors)
    status = _optional_str(payload, "status", errors)
    _check_status(status, errors)
    summary = _optional_str(payload, "summary", errors)
    image = _optional_str(payload, "featuredImageUrl", errors)
    if errors:
        return None, errors
    return (
        InsertArticle(
            title=title,
            content=content,
            author_id=author_id,
            category=category,
            summary=summary,
            featured_image_url=image,
            status=status,
        ),
        [],
    )


def validate_article_update(payload: Any) -> tuple[ArticleUpdate | None, list[str]]:
    payload, errors = _require_object(payload)
    if errors:
        return None, errors
    values: dict[str, Any] = {}
    for wire, attr in _ARTICLE_FIELDS.items():
        if wire not in payload:
            continue
        if attr in ("title", "content", "category"):
            values[attr] = _required_str(payload, wire, errors)
        else:
            values[attr] = _optional_str(payload, wire, errors)
    if values.get("category"):
        _check_category(values["category"], errors)
    if "status" in values:
        if values["status"] is None:
            errors.append("status cannot be empty.")
        else:
            _check_status(values["status"], errors)
    if errors:
        return None, errors
    return ArticleUpdate(supplied=frozenset(values), **values), []


def validate_insert_bookmark(payload: Any, user_id: int) -> tuple[InsertBookmark | None, list[str]]:
    payload, errors = _require_object(payload)
    if errors:
        return None, errors
    article_id = payload.get("articleId")
    # bool is an int subclass; reject it explicitly.
    if isinstance(article_id, bool) or not isinstance(article_id, int) or not is_valid_id(article_id):
        return None, [f"articleId must be an integer from 1 to {MAX_ID}."]
    return InsertBookmark(user_id=user_id, article_id=article_id), []


# ---------- Serialization ----------

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def user_to_json(user: User | None) -> dict | None:
    """Serialize a user for clients. The password hash is never included."""
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "isAdmin": user.is_admin,
        "createdAt": _iso(user.created_at),
    }


def article_to_json(article: Article) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "summary": article.summary,
        "authorId": article.author_id,
        "category": article.category,
        "featuredImageUrl": article.featured_image_url,
        "status": article.status,
        "createdAt": _iso(article.created_at),
        "updatedAt": _iso(article.updated_at),
    }


def bookmark_to_json(bookmark: Bookmark) -> dict:
    return {
        "id": bookmark.id,
        "userId": bookmark.user_id,
        "articleId": bookmark.article_id,
        "createdAt": _iso(bookmark.created_at),
    }


def bookmark_with_article_to_json(item: BookmarkWithArticle) -> dict:
    return {"bookmark": bookmark_to_json(item.bookmark), "article": article_to_json(item.article)}


def field_names(record_type: type) -> tuple[str, ...]:
    return tuple(f.name for f in fields(record_type))
