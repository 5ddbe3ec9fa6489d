# Overview: Service-layer operations for the storage engine; schema bootstrap and seeding.

from __future__ import annotations

import os

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from flask import current_app

from ..extensions import db
from ..models import Product, Sale, SaleLine, Setting, User
from .auth_service import ensure_default_admin
from .concurrency import serialized, atomic


def _stamp_schema_revision() -> str | None:
    """
    Record the migration head on a database whose schema came from create_all.

    Databases that already carry a revision are left alone, so `flask db
    upgrade` only ever applies revisions newer than the stamped one.
    Returns the revision stamped, or None.
    """
    directory = current_app.extensions["migrate"].directory
    if not os.path.isdir(os.path.join(directory, "versions")):
        return None

    script = ScriptDirectory(directory)
    with db.engine.begin() as connection:
        context = MigrationContext.configure(connection)
        if context.get_current_revision() is not None:
            return None
        context.stamp(script, "head")
        head = script.get_current_head()

    current_app.logger.info("Stamped schema at migration revision %s", head)
    return head


@serialized
def initialize() -> dict:
    """
    Create tables if absent, stamp the migration head on a fresh schema and
    seed the default admin account.

    Idempotent: safe to run on every startup.
    """
    # Import models so metadata is complete before create_all
    from .. import models  # noqa: F401

    db.create_all()
    _stamp_schema_revision()

    with atomic():
        seeded_admin = ensure_default_admin()

    current_app.logger.info("Storage initialized (%s)", db.engine.url.render_as_string(hide_password=True))
    return {"seeded_admin": seeded_admin}


@serialized
def reset() -> dict:
    """
    DEV/TEST only: drop and recreate all tables (deletes all data), then re-seed.
    """
    db.session.remove()
    db.drop_all()
    current_app.logger.warning("All tables dropped")
    return initialize()


@serialized
def table_counts() -> dict:
    """Row counts per table, used by the health endpoint."""
    return {
        "products": db.session.query(Product).count(),
        "sales": db.session.query(Sale).count(),
        "sale_items": db.session.query(SaleLine).count(),
        "settings": db.session.query(Setting).count(),
        "users": db.session.query(User).count(),
    }
