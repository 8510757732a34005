"""Shared test doubles: in-memory database, fake object storage, test settings."""

from pathlib import Path

from app.core.config import Settings
from app.core.database import Database
from app.models import Base
from app.services.storage import StoredFile


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "ACCESS_TOKEN_SECRET": "test-access-secret",
        "REFRESH_TOKEN_SECRET": "test-refresh-secret",
        "ACCESS_TOKEN_EXPIRE_MINUTES": 15,
        "REFRESH_TOKEN_EXPIRE_MINUTES": 60,
        "CLOUDINARY_CLOUD_NAME": None,
        "CLOUDINARY_API_KEY": None,
        "CLOUDINARY_API_SECRET": None,
    }
    values.update(overrides)
    return Settings(**values)


def make_database() -> Database:
    """Connected in-memory SQLite database with all tables created."""
    database = Database("sqlite://")
    database.connect()
    Base.metadata.create_all(database.engine)
    return database


class FakeStorage:
    """Object storage double: records uploads, removes local files like the real client."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.uploaded: list[str] = []
        self.fail_for = fail_for or set()

    async def upload(self, local_path: str | Path | None) -> StoredFile | None:
        if not local_path:
            return None
        path = Path(local_path)
        self.uploaded.append(path.name)
        path.unlink(missing_ok=True)
        if path.name in self.fail_for or "*" in self.fail_for:
            return None
        return StoredFile(url=f"https://res.example.com/{path.name}", public_id=path.stem)


def write_image(directory: str | Path, name: str = "avatar.png") -> Path:
    path = Path(directory) / name
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return path
