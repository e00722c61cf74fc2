from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.newsdesk.constants import ARTICLE_STATUSES
from app.newsdesk.errors import NotFound, ValidationError
from app.newsdesk.rbac import require_admin
from app.newsdesk.schemas import (
    User,
    article_to_json,
    user_to_json,
    validate_article_update,
    validate_insert_article,
)
from app.newsdesk.storage import get_storage
from app.newsdesk.utils import parse_id

bp = Blueprint("admin", __name__)


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


# ---------- Articles ----------
@bp.get("/articles")
@require_admin
def articles_list():
    category = (request.args.get("category") or "").strip() or None
    status = (request.args.get("status") or "").strip() or None
    if status is not None and status not in ARTICLE_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(ARTICLE_STATUSES)}")
    articles = get_storage().get_articles(category=category, status=status)
    return jsonify([article_to_json(a) for a in articles])


@bp.post("/articles")
@require_admin
def articles_create():
    u = _current_user()
    data, errors = validate_insert_article(request.get_json(silent=True), author_id=u.id)
    if errors:
        raise ValidationError(errors)
    article = get_storage().create_article(data)
    current_app.logger.info("article.create id=%s user_id=%s request_id=%s", article.id, u.id, g.request_id)
    return jsonify(article_to_json(article)), 201


@bp.put("/articles/<article_id>")
@require_admin
def articles_update(article_id: str):
    aid = _article_id(article_id)
    storage = get_storage()
    if storage.get_article(aid) is None:
        raise NotFound("Article not found")
    update, errors = validate_article_update(request.get_json(silent=True))
    if errors:
        raise ValidationError(errors)
    article = storage.update_article(aid, update)
    if article is None:
        # Deleted between the existence check and the update.
        raise NotFound("Article not found")
    current_app.logger.info(
        "article.edit id=%s fields=%s user_id=%s request_id=%s",
        aid,
        ",".join(sorted(update.supplied)),
        _current_user().id,
        g.request_id,
    )
    return jsonify(article_to_json(article))


@bp.delete("/articles/<article_id>")
@require_admin
def articles_delete(article_id: str):
    aid = _article_id(article_id)
    storage = get_storage()
    if storage.get_article(aid) is None:
        raise NotFound("Article not found")
    if not storage.delete_article(aid):
        raise NotFound("Article not found")
    current_app.logger.info("article.delete id=%s user_id=%s request_id=%s", aid, _current_user().id, g.request_id)
    return "", 204


# ---------- Users ----------
@bp.get("/users")
@require_admin
def users_list():
    return jsonify([user_to_json(u) for u in get_storage().get_users()])
