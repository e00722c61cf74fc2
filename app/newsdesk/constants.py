"""
Central constants for the Newsdesk application.
"""
from __future__ import annotations

# "All" is a query-filter sentinel, never stored on an article.
CATEGORY_ALL = "All"

ARTICLE_CATEGORIES = (
    CATEGORY_ALL,
    "Politics",
    "Technology",
    "Business",
    "Entertainment",
    "Sports",
    "Health",
    "Science",
    "Education",
)

STORED_CATEGORIES = frozenset(c for c in ARTICLE_CATEGORIES if c != CATEGORY_ALL)

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
STATUS_ARCHIVED = "archived"

ARTICLE_STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED, STATUS_ARCHIVED)

MIN_PASSWORD_LENGTH = 6

DEFAULT_SESSION_TTL_HOURS = 24
DEFAULT_SESSION_PRUNE_INTERVAL = 24 * 60 * 60  # seconds

# Row ids fit a 32-bit signed INTEGER column on every backend.
MAX_ID = 2**31 - 1
