# Overview: Service-layer operations for auth; encapsulates credential checks and database work.

"""
Authentication Service

WHY: The store has a single administrative account. Passwords are hashed with
bcrypt; the cost factor comes from BCRYPT_ROUNDS so tests can run cheaply.

SECURITY NOTES:
- login() only answers True/False and never says why it failed
- Unknown usernames are checked against a dummy hash so response time does
  not reveal whether the account exists
- The seeded admin/admin account is flagged must_change_password
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from .concurrency import serialized, atomic
from tillbook.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when a new password doesn't meet requirements."""
    pass


class UserNotFoundError(Exception):
    """Raised when a username does not exist."""
    pass


_DUMMY_HASH: str | None = None


def _rounds() -> int:
    return int(current_app.config.get("BCRYPT_ROUNDS", 12))


def _dummy_hash() -> str:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = bcrypt.hashpw(b"tillbook-dummy", bcrypt.gensalt(rounds=_rounds())).decode("utf-8")
    return _DUMMY_HASH


def validate_password_strength(password: str) -> None:
    """
    Validate a new password.

    Requirements:
    - Minimum MIN_PASSWORD_LENGTH characters (default 8)
    - Must not be the default bootstrap credential

    Raises PasswordValidationError if requirements not met.
    """
    min_length = int(current_app.config.get("MIN_PASSWORD_LENGTH", 8))
    if not isinstance(password, str) or len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long")

    if password == current_app.config.get("DEFAULT_ADMIN_PASSWORD"):
        raise PasswordValidationError("Password must not be the default credential")


def hash_password(password: str) -> str:
    """Hash password using bcrypt. No strength validation is applied here."""
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        current_app.logger.warning("Stored password hash is malformed")
        return False


def create_user(username: str, password: str, *, must_change_password: bool = False) -> User:
    """Create a user without password strength checks (bootstrap path)."""
    user = User(
        username=username,
        password_hash=hash_password(password),
        must_change_password=must_change_password,
    )
    db.session.add(user)
    db.session.flush()
    return user


def ensure_default_admin() -> bool:
    """
    Seed the default admin account if the users table is empty.

    Returns True if a user was created. Caller commits.
    """
    if db.session.query(User).count() > 0:
        return False

    username = current_app.config["DEFAULT_ADMIN_USERNAME"]
    create_user(
        username,
        current_app.config["DEFAULT_ADMIN_PASSWORD"],
        must_change_password=True,
    )
    current_app.logger.warning(
        "Seeded default user %r with the well-known default password; change it before use",
        username,
    )
    return True


@serialized
def login(username: str, password: str) -> bool:
    """Return True when username and password match a stored account."""
    user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        verify_password(password or "", _dummy_hash())
        return False

    if not verify_password(password or "", user.password_hash):
        return False

    with atomic():
        user.last_login_at = utcnow()
    return True


@serialized
def set_password(username: str, new_password: str) -> None:
    """
    Replace a user's password and clear the forced-change flag.

    Raises UserNotFoundError or PasswordValidationError; nothing is changed
    on failure.
    """
    validate_password_strength(new_password)

    user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        raise UserNotFoundError("User not found")

    with atomic():
        user.password_hash = hash_password(new_password)
        user.must_change_password = False

    current_app.logger.info("Password changed for user %r", username)


@serialized
def password_change_required(username: str) -> bool:
    user = db.session.query(User).filter_by(username=username).first()
    return bool(user and user.must_change_password)
