"""Unit tests for app.services.user_store against an in-memory database."""

import unittest

from app.core.errors import ConflictError
from app.services import user_store
from tests.support import make_database


def _fields(**overrides: str) -> dict[str, str]:
    fields = {
        "full_name": "A B",
        "email": "a@b.com",
        "username": "ab",
        "password_hash": "hash",
        "avatar": "https://res.example.com/a.png",
    }
    fields.update(overrides)
    return fields


class TestUserStore(unittest.TestCase):
    def setUp(self) -> None:
        self.database = make_database()
        self.db = self.database.session()

    def tearDown(self) -> None:
        self.db.close()
        self.database.disconnect()

    def test_create_assigns_id_and_defaults(self) -> None:
        user = user_store.create_user(self.db, **_fields())
        self.assertIsNotNone(user.id)
        self.assertEqual(user.cover_image, "")
        self.assertIsNone(user.refresh_token)

    def test_find_by_username_or_email(self) -> None:
        user = user_store.create_user(self.db, **_fields())
        self.assertEqual(user_store.find_by_username_or_email(self.db, username="AB").id, user.id)
        self.assertEqual(user_store.find_by_username_or_email(self.db, email="a@b.com").id, user.id)
        self.assertEqual(
            user_store.find_by_username_or_email(self.db, username="zz", email="a@b.com").id,
            user.id,
        )
        self.assertIsNone(user_store.find_by_username_or_email(self.db, username="zz"))
        self.assertIsNone(user_store.find_by_username_or_email(self.db))

    def test_unique_violation_is_conflict(self) -> None:
        user_store.create_user(self.db, **_fields())
        with self.assertRaises(ConflictError):
            user_store.create_user(self.db, **_fields(email="other@b.com"))

    def test_update_fields(self) -> None:
        user = user_store.create_user(self.db, **_fields())
        self.assertEqual(user_store.update_fields(self.db, user.id, refresh_token="t"), 1)
        self.db.refresh(user)
        self.assertEqual(user.refresh_token, "t")
        self.assertEqual(user_store.update_fields(self.db, 999, refresh_token=None), 0)

    def test_update_rejects_protected_fields(self) -> None:
        user = user_store.create_user(self.db, **_fields())
        with self.assertRaises(ValueError):
            user_store.update_fields(self.db, user.id, password_hash="x")


if __name__ == "__main__":
    unittest.main()
