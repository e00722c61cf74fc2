from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import TypeVar

from flask import current_app
from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.newsdesk.constants import CATEGORY_ALL, STATUS_DRAFT, STATUS_PUBLISHED
from app.newsdesk.db import create_db_engine, make_sessionmaker, session_scope
from app.newsdesk.models import ArticleRow, BookmarkRow, UserRow
from app.newsdesk.schemas import (
    Article,
    ArticleUpdate,
    Bookmark,
    BookmarkWithArticle,
    InsertArticle,
    InsertBookmark,
    InsertUser,
    User,
    field_names,
)
from app.newsdesk.utils import utcnow

R = TypeVar("R")


class StorageError(RuntimeError):
    pass


class Storage:
    """
    Entity storage for users, articles and bookmarks.

    Lookups return ``None`` when nothing matches; routes decide what that means
    over HTTP. Every backend must behave identically for identical call
    sequences (see tests/test_storage.py).
    """

    # Users
    def get_user(self, user_id: int) -> User | None:
        raise NotImplementedError

    def get_user_by_username(self, username: str) -> User | None:
        raise NotImplementedError

    def create_user(self, data: InsertUser) -> User:
        raise NotImplementedError

    def get_users(self) -> list[User]:
        raise NotImplementedError

    def set_admin(self, user_id: int, is_admin: bool) -> User | None:
        """Bootstrap-only privilege change; not reachable over HTTP."""
        raise NotImplementedError

    # Articles
    def get_articles(self, category: str | None = None, status: str | None = None) -> list[Article]:
        raise NotImplementedError

    def get_article(self, article_id: int) -> Article | None:
        raise NotImplementedError

    def create_article(self, data: InsertArticle) -> Article:
        raise NotImplementedError

    def update_article(self, article_id: int, update: ArticleUpdate) -> Article | None:
        raise NotImplementedError

    def delete_article(self, article_id: int) -> bool:
        raise NotImplementedError

    # Bookmarks
    def get_bookmarks(self, user_id: int) -> list[Bookmark]:
        raise NotImplementedError

    def get_bookmarks_by_user(self, user_id: int) -> list[BookmarkWithArticle]:
        raise NotImplementedError

    def get_bookmark(self, user_id: int, article_id: int) -> Bookmark | None:
        raise NotImplementedError

    def create_bookmark(self, data: InsertBookmark) -> Bookmark:
        raise NotImplementedError

    def delete_bookmark(self, user_id: int, article_id: int) -> bool:
        raise NotImplementedError


def _article_filter(category: str | None, status: str | None) -> tuple[str | None, str]:
    """Normalize list filters: "All" means any category, no status means published."""
    if category == CATEGORY_ALL or not category:
        category = None
    return category, (status or STATUS_PUBLISHED)


class MemoryStorage(Storage):
    """
    Map-backed storage for development and tests.
    Ids come from per-kind counters and are never reused.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._articles: dict[int, Article] = {}
        self._bookmarks: dict[int, Bookmark] = {}
        self._next_user_id = 1
        self._next_article_id = 1
        self._next_bookmark_id = 1

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def create_user(self, data: InsertUser) -> User:
        with self._lock:
            if self.get_user_by_username(data.username) is not None:
                raise StorageError(f"username already exists: {data.username}")
            user = User(
                id=self._next_user_id,
                username=data.username,
                password=data.password,
                first_name=data.first_name or None,
                last_name=data.last_name or None,
                is_admin=False,
                created_at=utcnow(),
            )
            self._next_user_id += 1
            self._users[user.id] = user
            return user

    def get_users(self) -> list[User]:
        with self._lock:
            return [self._users[k] for k in sorted(self._users)]

    def set_admin(self, user_id: int, is_admin: bool) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user = replace(user, is_admin=is_admin)
            self._users[user_id] = user
            return user

    def get_articles(self, category: str | None = None, status: str | None = None) -> list[Article]:
        category, status = _article_filter(category, status)
        with self._lock:
            articles = [a for a in self._articles.values() if a.status == status]
        if category is not None:
            articles = [a for a in articles if a.category == category]
        return sorted(articles, key=lambda a: (a.created_at, a.id), reverse=True)

    def get_article(self, article_id: int) -> Article | None:
        return self._articles.get(article_id)

    def create_article(self, data: InsertArticle) -> Article:
        now = utcnow()
        with self._lock:
            article = Article(
                id=self._next_article_id,
                title=data.title,
                content=data.content,
                summary=data.summary or None,
                author_id=data.author_id,
                category=data.category,
                featured_image_url=data.featured_image_url or None,
                status=data.status or STATUS_DRAFT,
                created_at=now,
                updated_at=now,
            )
            self._next_article_id += 1
            self._articles[article.id] = article
            return article

    def update_article(self, article_id: int, update: ArticleUpdate) -> Article | None:
        with self._lock:
            article = self._articles.get(article_id)
            if article is None:
                return None
            article = replace(article, **update.changes(), updated_at=utcnow())
            self._articles[article_id] = article
            return article

    def delete_article(self, article_id: int) -> bool:
        with self._lock:
            if self._articles.pop(article_id, None) is None:
                return False
            for bid in [b.id for b in self._bookmarks.values() if b.article_id == article_id]:
                del self._bookmarks[bid]
            return True

    def get_bookmarks(self, user_id: int) -> list[Bookmark]:
        with self._lock:
            return [b for _, b in sorted(self._bookmarks.items()) if b.user_id == user_id]

    def get_bookmarks_by_user(self, user_id: int) -> list[BookmarkWithArticle]:
        out: list[BookmarkWithArticle] = []
        with self._lock:
            for bookmark in self.get_bookmarks(user_id):
                article = self._articles.get(bookmark.article_id)
                if article is not None:
                    out.append(BookmarkWithArticle(bookmark=bookmark, article=article))
        return out

    def get_bookmark(self, user_id: int, article_id: int) -> Bookmark | None:
        with self._lock:
            return next(
                (b for b in self._bookmarks.values() if b.user_id == user_id and b.article_id == article_id),
                None,
            )

    def create_bookmark(self, data: InsertBookmark) -> Bookmark:
        with self._lock:
            existing = self.get_bookmark(data.user_id, data.article_id)
            if existing is not None:
                return existing
            bookmark = Bookmark(
                id=self._next_bookmark_id,
                user_id=data.user_id,
                article_id=data.article_id,
                created_at=utcnow(),
            )
            self._next_bookmark_id += 1
            self._bookmarks[bookmark.id] = bookmark
            return bookmark

    def delete_bookmark(self, user_id: int, article_id: int) -> bool:
        with self._lock:
            bookmark = self.get_bookmark(user_id, article_id)
            if bookmark is None:
                return False
            return self._bookmarks.pop(bookmark.id, None) is not None


def _record(row: object, record_type: type[R]) -> R:
    return record_type(**{name: getattr(row, name) for name in field_names(record_type)})  # type: ignore[arg-type]


@dataclass(frozen=True)
class SqlStorage(Storage):
    """
    Relational storage on SQLAlchemy. Each call runs in its own short
    transaction; nothing spans more than one operation.
    """

    engine: Engine
    sm: sessionmaker

    @classmethod
    def from_url(cls, db_url: str, *, debug_checkout: bool = False) -> "SqlStorage":
        engine = create_db_engine(db_url, debug_checkout=debug_checkout)
        return cls(engine=engine, sm=make_sessionmaker(engine))

    # Users
    def get_user(self, user_id: int) -> User | None:
        with session_scope(self.sm) as s:
            row = s.get(UserRow, user_id)
            return _record(row, User) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        with session_scope(self.sm) as s:
            row = s.execute(select(UserRow).where(UserRow.username == username).limit(1)).scalar_one_or_none()
            return _record(row, User) if row else None

    def create_user(self, data: InsertUser) -> User:
        try:
            with session_scope(self.sm) as s:
                row = UserRow(
                    username=data.username,
                    password=data.password,
                    first_name=data.first_name or None,
                    last_name=data.last_name or None,
                    is_admin=False,
                    created_at=utcnow(),
                )
                s.add(row)
                s.flush()
                return _record(row, User)
        except IntegrityError as e:
            raise StorageError(f"username already exists: {data.username}") from e

    def get_users(self) -> list[User]:
        with session_scope(self.sm) as s:
            rows = s.execute(select(UserRow).order_by(UserRow.id.asc())).scalars().all()
            return [_record(r, User) for r in rows]

    def set_admin(self, user_id: int, is_admin: bool) -> User | None:
        with session_scope(self.sm) as s:
            row = s.get(UserRow, user_id)
            if row is None:
                return None
            row.is_admin = is_admin
            s.flush()
            return _record(row, User)

    # Articles
    def get_articles(self, category: str | None = None, status: str | None = None) -> list[Article]:
        category, status = _article_filter(category, status)
        q = select(ArticleRow).where(ArticleRow.status == status)
        if category is not None:
            q = q.where(ArticleRow.category == category)
        q = q.order_by(ArticleRow.created_at.desc(), ArticleRow.id.desc())
        with session_scope(self.sm) as s:
            return [_record(r, Article) for r in s.execute(q).scalars().all()]

    def get_article(self, article_id: int) -> Article | None:
        with session_scope(self.sm) as s:
            row = s.get(ArticleRow, article_id)
            return _record(row, Article) if row else None

    def create_article(self, data: InsertArticle) -> Article:
        now = utcnow()
        with session_scope(self.sm) as s:
            row = ArticleRow(
                title=data.title,
                content=data.content,
                summary=data.summary or None,
                author_id=data.author_id,
                category=data.category,
                featured_image_url=data.featured_image_url or None,
                status=data.status or STATUS_DRAFT,
                created_at=now,
                updated_at=now,
            )
            s.add(row)
            s.flush()
            return _record(row, Article)

    def update_article(self, article_id: int, update: ArticleUpdate) -> Article | None:
        with session_scope(self.sm) as s:
            row = s.get(ArticleRow, article_id)
            if row is None:
                return None
            for name, value in update.changes().items():
                setattr(row, name, value)
            row.updated_at = utcnow()
            s.flush()
            return _record(row, Article)

    def delete_article(self, article_id: int) -> bool:
        with session_scope(self.sm) as s:
            # Bookmarks go with the article; sqlite does not enforce ON DELETE CASCADE by default.
            s.execute(delete(BookmarkRow).where(BookmarkRow.article_id == article_id))
            result = s.execute(delete(ArticleRow).where(ArticleRow.id == article_id))
            return (result.rowcount or 0) > 0

    # Bookmarks
    def get_bookmarks(self, user_id: int) -> list[Bookmark]:
        q = select(BookmarkRow).where(BookmarkRow.user_id == user_id).order_by(BookmarkRow.id.asc())
        with session_scope(self.sm) as s:
            return [_record(r, Bookmark) for r in s.execute(q).scalars().all()]

    def get_bookmarks_by_user(self, user_id: int) -> list[BookmarkWithArticle]:
        q = (
            select(BookmarkRow, ArticleRow)
            .join(ArticleRow, BookmarkRow.article_id == ArticleRow.id)
            .where(BookmarkRow.user_id == user_id)
            .order_by(BookmarkRow.id.asc())
        )
        with session_scope(self.sm) as s:
            return [
                BookmarkWithArticle(bookmark=_record(b, Bookmark), article=_record(a, Article))
                for b, a in s.execute(q).all()
            ]

    def get_bookmark(self, user_id: int, article_id: int) -> Bookmark | None:
        q = (
            select(BookmarkRow)
            .where(BookmarkRow.user_id == user_id, BookmarkRow.article_id == article_id)
            .limit(1)
        )
        with session_scope(self.sm) as s:
            row = s.execute(q).scalar_one_or_none()
            return _record(row, Bookmark) if row else None

    def create_bookmark(self, data: InsertBookmark) -> Bookmark:
        existing = self.get_bookmark(data.user_id, data.article_id)
        if existing is not None:
            return existing
        try:
            with session_scope(self.sm) as s:
                row = BookmarkRow(user_id=data.user_id, article_id=data.article_id, created_at=utcnow())
                s.add(row)
                s.flush()
                return _record(row, Bookmark)
        except IntegrityError:
            # Lost a race against a concurrent insert for the same pair.
            existing = self.get_bookmark(data.user_id, data.article_id)
            if existing is None:
                raise
            return existing

    def delete_bookmark(self, user_id: int, article_id: int) -> bool:
        bookmark = self.get_bookmark(user_id, article_id)
        if bookmark is None:
            return False
        with session_scope(self.sm) as s:
            result = s.execute(delete(BookmarkRow).where(BookmarkRow.id == bookmark.id))
            return (result.rowcount or 0) > 0


def storage_from_config(config: dict) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "memory").strip().lower()
    if backend == "sql":
        db_url = (config.get("DATABASE_URL") or "").strip()
        if not db_url:
            raise RuntimeError("DATABASE_URL is required when STORAGE_BACKEND=sql.")
        return SqlStorage.from_url(db_url, debug_checkout=config.get("ENV") == "development")
    if backend == "memory":
        return MemoryStorage()
    raise RuntimeError(f"Unknown STORAGE_BACKEND {backend!r} (expected 'memory' or 'sql').")


def get_storage() -> Storage:
    """The storage instance created for the running app."""
    return current_app.extensions["storage"]
