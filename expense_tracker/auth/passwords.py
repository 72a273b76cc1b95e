"""Password hashing with bcrypt."""

from typing import Optional

import bcrypt


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a password against a stored hash.

    OAuth-only accounts have no hash and never match. A malformed hash
    is treated as a mismatch rather than an error.
    """
    if not password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False
