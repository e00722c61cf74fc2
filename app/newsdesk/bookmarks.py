from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.newsdesk.constants import STATUS_PUBLISHED
from app.newsdesk.errors import NotFound, ValidationError
from app.newsdesk.rbac import is_admin, require_login
from app.newsdesk.schemas import (
    User,
    bookmark_to_json,
    bookmark_with_article_to_json,
    validate_insert_bookmark,
)
from app.newsdesk.storage import get_storage
from app.newsdesk.utils import parse_id

bp = Blueprint("bookmarks", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _article_id(raw: str) -> int:
    aid = parse_id(raw)
    if aid is None:
        raise ValidationError("Invalid article ID")
    return aid


@bp.get("")
@require_login
def bookmarks_list():
    items = get_storage().get_bookmarks_by_user(_current_user().id)
    return jsonify([bookmark_with_article_to_json(i) for i in items])


@bp.post("")
@require_login
def bookmarks_create():
    u = _current_user()
    data, errors = validate_insert_bookmark(request.get_json(silent=True), user_id=u.id)
    if errors:
        raise ValidationError(errors)
    storage = get_storage()
    article = storage.get_article(data.article_id)
    if article is None or (article.status != STATUS_PUBLISHED and not is_admin(u)):
        raise NotFound("Article not found")
    bookmark = storage.create_bookmark(data)
    return jsonify(bookmark_to_json(bookmark)), 201


@bp.delete("/<article_id>")
@require_login
def bookmarks_delete(article_id: str):
    aid = _article_id(article_id)
    if not get_storage().delete_bookmark(_current_user().id, aid):
        raise NotFound("Bookmark not found")
    return "", 204


@bp.get("/<article_id>")
@require_login
def bookmarks_status(article_id: str):
    aid = _article_id(article_id)
    bookmark = get_storage().get_bookmark(_current_user().id, aid)
    return jsonify({"bookmarked": bookmark is not None})
