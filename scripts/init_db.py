"""
Create missing tables and seed the bootstrap admin (idempotent).

Usage:
  DATABASE_URL=postgresql://... ADMIN_PASSWORD=... python scripts/init_db.py [--samples]
"""

import argparse
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.newsdesk.db import create_all
from app.newsdesk.seed import seed_admin, seed_sample_articles
from app.newsdesk.storage import SqlStorage


def seed_only(*, database_url: str | None = None, samples: bool = False) -> None:
    """
    Seed the admin user (and optionally sample articles) in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_username = (os.environ.get("ADMIN_USERNAME") or "admin@example.com").strip()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "adminpassword"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///newsdesk.db").strip()

    # Direct storage (no create_app) so this can run during release without booting the web app.
    storage = SqlStorage.from_url(db_url)
    try:
        admin = seed_admin(storage, admin_username, admin_password)
        added = seed_sample_articles(storage, admin.id) if samples else 0
    finally:
        storage.engine.dispose()

    print("Initialized database (seed_only).")
    print(f"Admin username: {admin_username}")
    print("Admin password: (from ADMIN_PASSWORD)")
    if samples:
        print(f"Sample articles added: {added}")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--samples", action="store_true", help="Also add sample articles to an empty database")
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///newsdesk.db").strip()
    storage = SqlStorage.from_url(db_url)
    try:
        create_all(storage.engine)
    finally:
        storage.engine.dispose()
    seed_only(database_url=db_url, samples=args.samples)


if __name__ == "__main__":
    main()
