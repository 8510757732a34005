"""Unit tests for app.services.storage: Cloudinary upload client."""

import asyncio
import hashlib
import tempfile
import unittest
from pathlib import Path

import httpx

from app.services.storage import CloudinaryStorage, sign_params
from tests.support import make_settings, write_image


def _configured_settings(**overrides: object):
    values: dict[str, object] = {
        "CLOUDINARY_CLOUD_NAME": "demo",
        "CLOUDINARY_API_KEY": "key-123",
        "CLOUDINARY_API_SECRET": "shh",
    }
    values.update(overrides)
    return make_settings(**values)


class TestSignParams(unittest.TestCase):
    """sign_params hashes sorted non-empty params followed by the secret."""

    def test_signature(self) -> None:
        expected = hashlib.sha1(b"folder=avatars&timestamp=1700000000shh").hexdigest()
        self.assertEqual(
            sign_params({"timestamp": "1700000000", "folder": "avatars"}, "shh"), expected
        )

    def test_empty_values_skipped(self) -> None:
        self.assertEqual(
            sign_params({"timestamp": "1", "folder": ""}, "s"),
            sign_params({"timestamp": "1"}, "s"),
        )


class TestCloudinaryUpload(unittest.TestCase):
    """upload() returns a StoredFile or None, and always removes the local file."""

    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = write_image(self.tmp.name)
        self.requests: list[httpx.Request] = []

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def _storage(self, handler, **overrides: object) -> CloudinaryStorage:
        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        return CloudinaryStorage(
            _configured_settings(**overrides), transport=httpx.MockTransport(record)
        )

    def test_success_returns_secure_url(self) -> None:
        storage = self._storage(
            lambda r: httpx.Response(
                200,
                json={"secure_url": "https://res.cloudinary.com/demo/a.png", "public_id": "a"},
            )
        )
        stored = asyncio.run(storage.upload(self.path))
        self.assertIsNotNone(stored)
        self.assertEqual(stored.url, "https://res.cloudinary.com/demo/a.png")
        self.assertEqual(stored.public_id, "a")
        self.assertEqual(
            str(self.requests[0].url), "https://api.cloudinary.com/v1_1/demo/image/upload"
        )
        self.assertIn(b"key-123", self.requests[0].content)
        self.assertFalse(self.path.exists())

    def test_error_status_returns_none(self) -> None:
        storage = self._storage(lambda r: httpx.Response(401, json={"error": {"message": "bad"}}))
        self.assertIsNone(asyncio.run(storage.upload(self.path)))
        self.assertFalse(self.path.exists())

    def test_missing_url_returns_none(self) -> None:
        storage = self._storage(lambda r: httpx.Response(200, json={"public_id": "a"}))
        self.assertIsNone(asyncio.run(storage.upload(self.path)))

    def test_network_error_returns_none(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        storage = self._storage(fail)
        self.assertIsNone(asyncio.run(storage.upload(self.path)))
        self.assertFalse(self.path.exists())

    def test_not_configured_skips_request(self) -> None:
        storage = self._storage(
            lambda r: httpx.Response(200, json={"secure_url": "x"}),
            CLOUDINARY_API_SECRET=None,
        )
        self.assertFalse(storage.is_configured)
        self.assertIsNone(asyncio.run(storage.upload(self.path)))
        self.assertEqual(self.requests, [])
        self.assertFalse(self.path.exists())

    def test_no_path_returns_none(self) -> None:
        storage = self._storage(lambda r: httpx.Response(200, json={"secure_url": "x"}))
        self.assertIsNone(asyncio.run(storage.upload(None)))
        self.assertIsNone(asyncio.run(storage.upload(Path(self.tmp.name) / "missing.png")))


if __name__ == "__main__":
    unittest.main()
