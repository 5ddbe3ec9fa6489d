# backend/tillbook/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process as pos.db
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pos.db", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Alembic tree used by `flask db` and by the startup revision stamp
    MIGRATIONS_DIR = os.environ.get(
        "TILLBOOK_MIGRATIONS_DIR",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations"),
    )

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Create tables and seed the admin user when the app starts
    AUTO_INITIALIZE = _env_bool("TILLBOOK_AUTO_INITIALIZE", True)

    # First-run bootstrap credential. Seeded users must change it.
    DEFAULT_ADMIN_USERNAME = "admin"
    DEFAULT_ADMIN_PASSWORD = "admin"

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    MIN_PASSWORD_LENGTH = 8

    # Reporting
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))

    # Checkout policy
    ALLOW_OVERSELL = _env_bool("TILLBOOK_ALLOW_OVERSELL", False)
    ENFORCE_CATALOG_PRICES = _env_bool("TILLBOOK_ENFORCE_CATALOG_PRICES", False)
