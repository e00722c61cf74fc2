from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.newsdesk.constants import STATUS_PUBLISHED
from app.newsdesk.errors import NotFound, ValidationError
from app.newsdesk.rbac import is_admin
from app.newsdesk.schemas import article_to_json
from app.newsdesk.storage import get_storage
from app.newsdesk.utils import parse_id

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for k8s/DO probes. No storage access, minimal overhead.
    """
    return "ok", 200


@bp.get("/api/articles")
def articles_list():
    category = (request.args.get("category") or "").strip() or None
    # Public listing never widens beyond published, whatever the query says.
    articles = get_storage().get_articles(category=category, status=STATUS_PUBLISHED)
    return jsonify([article_to_json(a) for a in articles])


@bp.get("/api/articles/<article_id>")
def article_detail(article_id: str):
    aid = parse_id(article_id)
    if aid is None:
        raise ValidationError("Invalid article ID")
    article = get_storage().get_article(aid)
    if article is None:
        raise NotFound("Article not found")
    # Unpublished articles are invisible to everyone but admins.
    if article.status != STATUS_PUBLISHED and not is_admin(getattr(g, "current_user", None)):
        raise NotFound("Article not found")
    return jsonify(article_to_json(article))
