import os
from dataclasses import dataclass

from app.newsdesk.constants import DEFAULT_SESSION_PRUNE_INTERVAL, DEFAULT_SESSION_TTL_HOURS


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    storage_backend: str
    session_ttl_hours: int
    session_prune_interval: int

    admin_username: str
    admin_password: str
    seed_on_start: bool


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).") from e


def load_settings() -> Settings:
    backend = _getenv("STORAGE_BACKEND", "memory").lower()
    # In-memory state is empty on every boot, so seed it unless told otherwise.
    seed_default = "1" if backend == "memory" else "0"
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///newsdesk.db"),
        storage_backend=backend,
        session_ttl_hours=_getint("SESSION_TTL_HOURS", DEFAULT_SESSION_TTL_HOURS),
        session_prune_interval=_getint("SESSION_PRUNE_INTERVAL", DEFAULT_SESSION_PRUNE_INTERVAL),
        admin_username=_getenv("ADMIN_USERNAME", "admin@example.com"),
        admin_password=os.environ.get("ADMIN_PASSWORD") or "adminpassword",
        seed_on_start=_getenv("SEED_ON_START", seed_default) == "1",
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "STORAGE_BACKEND": s.storage_backend,
        "SESSION_TTL_HOURS": s.session_ttl_hours,
        "SESSION_PRUNE_INTERVAL": s.session_prune_interval,
        "ADMIN_USERNAME": s.admin_username,
        "ADMIN_PASSWORD": s.admin_password,
        "SEED_ON_START": s.seed_on_start,
        # security defaults
        "SESSION_COOKIE_NAME": "newsdesk_sid",
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # JSON bodies only; articles are the largest payload
        "MAX_CONTENT_LENGTH": 2 * 1024 * 1024,
    }
