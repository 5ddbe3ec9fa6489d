"""
Schema migration path.

`flask db upgrade` must work on a fresh database whether or not the app has
already built the schema at startup.
"""
import os
import tempfile
import unittest

from alembic.runtime.migration import MigrationContext
from flask_migrate import upgrade

from tillbook import create_app
from tillbook.extensions import db
from tillbook.models import User
from tillbook.services import storage_service

HEAD_REVISION = "20261019_initial"


class MigrationPathTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db_uri = "sqlite:///" + os.path.join(self.tmpdir.name, "migrated.db")

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _make_app(self, auto_initialize: bool):
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": self.db_uri,
            "BCRYPT_ROUNDS": 4,
            "LOG_LEVEL": "WARNING",
            "AUTO_INITIALIZE": auto_initialize,
        })
        return self.app

    def _current_revision(self):
        with db.engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()

    def test_upgrade_builds_fresh_schema(self):
        app = self._make_app(auto_initialize=False)

        with app.app_context():
            upgrade()
            self.assertEqual(self._current_revision(), HEAD_REVISION)

            result = storage_service.initialize()

            self.assertTrue(result["seeded_admin"])
            self.assertEqual(self._current_revision(), HEAD_REVISION)

    def test_upgrade_after_startup_initialize(self):
        app = self._make_app(auto_initialize=True)

        with app.app_context():
            self.assertEqual(self._current_revision(), HEAD_REVISION)

            upgrade()

            self.assertEqual(self._current_revision(), HEAD_REVISION)
            self.assertEqual(db.session.query(User).count(), 1)

    def test_initialize_keeps_existing_revision(self):
        app = self._make_app(auto_initialize=True)

        with app.app_context():
            result = storage_service.initialize()

            self.assertFalse(result["seeded_admin"])
            self.assertEqual(self._current_revision(), HEAD_REVISION)


if __name__ == "__main__":
    unittest.main()
