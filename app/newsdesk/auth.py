from __future__ import annotations

import uuid
from dataclasses import replace

from flask import Blueprint, current_app, g, jsonify, request, session

from app.newsdesk.errors import Conflict, Unauthorized, ValidationError
from app.newsdesk.schemas import InsertUser, User, user_to_json, validate_credentials, validate_insert_user
from app.newsdesk.security import hash_password, verify_password
from app.newsdesk.sessions import regenerate_session
from app.newsdesk.storage import Storage, StorageError, get_storage

bp = Blueprint("auth", __name__)

INVALID_CREDENTIALS = "Invalid credentials"


def register_user(storage: Storage, data: InsertUser) -> User:
    """Create a user from a validated ``InsertUser`` carrying the plaintext password."""
    if storage.get_user_by_username(data.username) is not None:
        raise Conflict("Username already exists")
    hashed = replace(data, password=hash_password(data.password))
    try:
        return storage.create_user(hashed)
    except StorageError as e:
        # Someone registered the same name between the check and the insert.
        raise Conflict("Username already exists") from e


def authenticate(storage: Storage, username: str, password: str) -> User | None:
    """
    Returns the user for valid credentials, otherwise None. Unknown usernames
    and wrong passwords are indistinguishable to the caller.
    """
    user = storage.get_user_by_username(username)
    if user is None:
        verify_password(None, password)
        return None
    if not verify_password(user.password, password):
        return None
    return user


def _establish_session(user: User) -> None:
    regenerate_session()
    session.clear()
    session["user_id"] = user.id


def load_current_user() -> None:
    """
    Loads g.current_user from the server-side session.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    if request.path.startswith(("/static/", "/health", "/healthz")):
        return

    user_id = session.get("user_id")
    if not user_id:
        return

    try:
        user = get_storage().get_user(int(user_id))
    except Exception as e:
        current_app.logger.error("load_current_user storage error (treating as anonymous): %s", e)
        return
    if user is None:
        session.pop("user_id", None)
        return
    g.current_user = user


@bp.post("/register")
def register():
    data, errors = validate_insert_user(request.get_json(silent=True))
    if errors:
        raise ValidationError(errors)
    user = register_user(get_storage(), data)
    _establish_session(user)
    current_app.logger.info("auth.register user_id=%s request_id=%s", user.id, g.request_id)
    return jsonify(user_to_json(user))


@bp.post("/login")
def login():
    creds, errors = validate_credentials(request.get_json(silent=True))
    if errors:
        raise ValidationError(errors)
    username, password = creds
    user = authenticate(get_storage(), username, password)
    if user is None:
        current_app.logger.warning("auth.login_failed request_id=%s", g.request_id)
        raise Unauthorized(INVALID_CREDENTIALS)
    _establish_session(user)
    current_app.logger.info("auth.login user_id=%s request_id=%s", user.id, g.request_id)
    return jsonify(user_to_json(user))


@bp.post("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        current_app.logger.info("auth.logout user_id=%s request_id=%s", user.id, g.request_id)
    session.clear()
    return jsonify({"ok": True})


@bp.get("/user")
def current_user():
    return jsonify(user_to_json(getattr(g, "current_user", None)))
