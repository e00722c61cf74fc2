from werkzeug.security import check_password_hash, generate_password_hash

# Verified against when a username is unknown, so a miss costs the same as a
# wrong password.
_DUMMY_HASH = generate_password_hash("newsdesk-dummy-password")


def hash_password(plain: str) -> str:
    """Salted hash in werkzeug's ``method$salt$hash`` format."""
    return generate_password_hash(plain)


def verify_password(password_hash: str | None, plain: str) -> bool:
    """
    Recompute the hash with the stored salt and compare digests in constant
    time (werkzeug uses ``hmac.compare_digest``).
    """
    if not password_hash:
        check_password_hash(_DUMMY_HASH, plain)
        return False
    try:
        return check_password_hash(password_hash, plain)
    except ValueError:
        # Unknown method or malformed hash string.
        return False
