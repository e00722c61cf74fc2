"""
Bootstrap data: the first administrator and a few sample articles.

No HTTP endpoint can grant admin rights; this module (via create_app for the
memory backend, or scripts/init_db.py and scripts/promote_admin.py for SQL) is
the only way the flag gets set.
"""
from __future__ import annotations

import logging

from app.newsdesk.constants import STATUS_ARCHIVED, STATUS_DRAFT, STATUS_PUBLISHED
from app.newsdesk.schemas import InsertArticle, InsertUser, User
from app.newsdesk.security import hash_password
from app.newsdesk.storage import Storage

logger = logging.getLogger(__name__)

SAMPLE_ARTICLES = (
    {
        "title": "Electric Vehicle Sales Surge as New Incentives Take Effect",
        "content": (
            "<p>Global sales of electric vehicles have increased by 43% year-over-year as government "
            "incentives and improved technology drive consumer adoption. Industry analysts predict this "
            "trend will continue as more manufacturers commit to electric vehicle production.</p>"
            "<p>The surge comes as several major economies introduced new tax incentives for electric "
            "vehicle purchases, making the switch from traditional combustion engines more financially "
            "attractive for consumers.</p>"
        ),
        "summary": (
            "Global sales of electric vehicles have increased by 43% year-over-year as government "
            "incentives and improved technology drive consumer adoption."
        ),
        "category": "Technology",
        "featured_image_url": "https://images.unsplash.com/photo-1557200134-90327ee9fafa?auto=format&fit=crop&w=800&h=500&q=80",
    },
    {
        "title": "AI Research Breakthrough Could Revolutionize Healthcare",
        "content": (
            "<p>New machine learning models achieve unprecedented accuracy in early disease detection, "
            "potentially saving millions of lives through preventative care.</p>"
            "<p>The technology is expected to be rolled out to select hospitals for testing within the "
            "next six months.</p>"
        ),
        "summary": "New machine learning models achieve unprecedented accuracy in early disease detection...",
        "category": "Technology",
        "featured_image_url": "https://images.unsplash.com/photo-1551836022-d5d88e9218df?auto=format&fit=crop&w=600&h=400&q=80",
    },
    {
        "title": "Global Markets React to New Economic Policy",
        "content": (
            "<p>Stock markets worldwide show volatility as central banks announce coordinated policy shift "
            "to address inflation concerns.</p>"
            "<p>Analysts remain divided on the long-term impact of these changes.</p>"
        ),
        "summary": "Stock markets worldwide show volatility as central banks announce coordinated policy shift...",
        "category": "Business",
        "featured_image_url": "https://images.unsplash.com/photo-1607944024060-0450380ddd33?auto=format&fit=crop&w=600&h=400&q=80",
    },
)


def seed_admin(
    storage: Storage,
    username: str,
    password: str,
    *,
    first_name: str | None = "Admin",
    last_name: str | None = "User",
) -> User:
    """
    Ensure ``username`` exists and is an admin (idempotent).
    Does NOT overwrite an existing user's password.
    """
    user = storage.get_user_by_username(username)
    if user is None:
        user = storage.create_user(
            InsertUser(
                username=username,
                password=hash_password(password),
                first_name=first_name,
                last_name=last_name,
            )
        )
        logger.info("Created bootstrap admin user id=%s", user.id)
    if not user.is_admin:
        user = storage.set_admin(user.id, True) or user
    return user


def promote_admin(storage: Storage, username: str) -> User | None:
    """Grant admin to an existing user. Returns None if the user doesn't exist."""
    user = storage.get_user_by_username(username)
    if user is None:
        return None
    if user.is_admin:
        return user
    return storage.set_admin(user.id, True)


def seed_sample_articles(storage: Storage, author_id: int) -> int:
    """Add the sample articles when the store has none. Returns how many were added."""
    if storage.get_articles() or any(storage.get_articles(status=s) for s in (STATUS_DRAFT, STATUS_ARCHIVED)):
        return 0
    for sample in SAMPLE_ARTICLES:
        storage.create_article(InsertArticle(author_id=author_id, status=STATUS_PUBLISHED, **sample))
    return len(SAMPLE_ARTICLES)
