from __future__ import annotations

import re
from datetime import datetime, timezone

from app.newsdesk.constants import MAX_ID

_ID_RE = re.compile(r"^\d+$")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime(timezone=False)`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_id(value: int) -> bool:
    return 1 <= value <= MAX_ID


def parse_id(raw: str | None) -> int | None:
    """Parse a path id. Returns None unless it is an integer in 1..MAX_ID."""
    if raw is None:
        return None
    raw = raw.strip()
    if not _ID_RE.match(raw):
        return None
    value = int(raw)
    return value if is_valid_id(value) else None
