import logging
import os
from collections.abc import Mapping
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, g, request
from sqlalchemy import inspect as sa_inspect

from app.newsdesk.admin import bp as admin_bp
from app.newsdesk.auth import bp as auth_bp, load_current_user
from app.newsdesk.bookmarks import bp as bookmarks_bp
from app.newsdesk.config import load_config
from app.newsdesk.errors import register_error_handlers
from app.newsdesk.routes import bp as routes_bp
from app.newsdesk.seed import seed_admin, seed_sample_articles
from app.newsdesk.sessions import ServerSideSessionInterface, SessionPruner, session_store_for
from app.newsdesk.storage import SqlStorage, storage_from_config

logger = logging.getLogger(__name__)

EXPECTED_TABLES = ("users", "articles", "bookmarks", "sessions")


def create_app(overrides: Mapping | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    if overrides:
        app.config.from_mapping(overrides)
    ttl = timedelta(hours=int(app.config["SESSION_TTL_HOURS"]))
    app.config["PERMANENT_SESSION_LIFETIME"] = ttl

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if app.config.get("STORAGE_BACKEND") != "sql":
            raise RuntimeError("STORAGE_BACKEND must be 'sql' in production; memory storage is dev/test only.")
        if str(app.config.get("DATABASE_URL") or "").startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")

    storage = storage_from_config(app.config)
    app.extensions["storage"] = storage
    store = session_store_for(storage)
    app.extensions["session_store"] = store
    app.session_interface = ServerSideSessionInterface(store, ttl)

    if isinstance(storage, SqlStorage):
        app.extensions["sqlalchemy_engine"] = storage.engine

        def _dispose_engine_on_fork() -> None:
            if hasattr(os, "register_at_fork"):
                def _after_fork_child():
                    storage.engine.dispose(close=False)
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

                os.register_at_fork(after_in_child=_after_fork_child)

        _dispose_engine_on_fork()
        _run_schema_health_check(app, storage)

    if app.config.get("SEED_ON_START"):
        admin = seed_admin(storage, app.config["ADMIN_USERNAME"], app.config["ADMIN_PASSWORD"])
        added = seed_sample_articles(storage, admin.id)
        app.logger.info("Seeded admin user id=%s and %s sample article(s)", admin.id, added)

    pruner = SessionPruner(store, float(app.config["SESSION_PRUNE_INTERVAL"]))
    app.extensions["session_pruner"] = pruner
    pruner.start()

    register_error_handlers(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(bookmarks_bp, url_prefix="/api/bookmarks")

    def _load_user_wrapper():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            g.current_user = None
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)

    logger.info(
        "create_app() complete; storage=%s env=%s",
        type(storage).__name__,
        env or "(unset)",
    )
    return app


def _run_schema_health_check(app: Flask, storage: SqlStorage) -> None:
    """Detect missing tables early; run `alembic upgrade head` or scripts/init_db.py to fix."""
    try:
        insp = sa_inspect(storage.engine)
        missing = [t for t in EXPECTED_TABLES if not insp.has_table(t)]
    except Exception as e:
        app.logger.exception("Schema health check failed: %s", e)
        return
    if missing:
        app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))
