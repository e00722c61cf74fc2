#!/usr/bin/env python3
"""Grant the admin flag to an existing user (idempotent).

Usage:
  python scripts/promote_admin.py --username editor@example.com
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.newsdesk.seed import promote_admin
from app.newsdesk.storage import SqlStorage


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--username", required=True, help="Username of the user to promote")
    args = parser.parse_args(argv)

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///newsdesk.db").strip()
    storage = SqlStorage.from_url(db_url)
    try:
        user = promote_admin(storage, args.username)
    finally:
        storage.engine.dispose()
    if user is None:
        print(f"User not found: {args.username}")
        return 1
    print(f"Admin flag set for {args.username}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
