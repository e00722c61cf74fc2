from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g, request

from app.newsdesk.errors import Forbidden, Unauthorized
from app.newsdesk.schemas import User


def is_admin(user: User | None) -> bool:
    return bool(user and user.is_admin)


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Unauthenticated → 401; the wrapped handler never runs."""

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if user is None:
            raise Unauthorized()
        return fn(*args, **kwargs)

    return wrapped


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Non-admin → 403. This checks the admin flag itself rather than stacking on
    require_login, so anonymous requests get 403 as well.
    """

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not is_admin(user):
            current_app.logger.warning(
                "Forbidden: admin required path=%s user_id=%s request_id=%s",
                request.path,
                user.id if user else None,
                getattr(g, "request_id", None),
            )
            raise Forbidden()
        return fn(*args, **kwargs)

    return wrapped
