"""Stage multipart image parts on local disk before they go to object storage."""

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile

from app.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})
CHUNK_SIZE = 1024 * 1024


def is_present(file: UploadFile | None) -> bool:
    """True if the form carried a real file (browsers send empty parts with no filename)."""
    return file is not None and bool(getattr(file, "filename", None))


async def stage_upload(
    file: UploadFile | None,
    temp_dir: str | Path,
    max_bytes: int,
    field: str,
) -> Path | None:
    """
    Write an uploaded image to temp_dir and return its path; None if no file was sent.

    Raises ValidationError for non-image files or files over max_bytes.
    """
    if not is_present(file):
        return None
    suffix = Path(file.filename).suffix.lower()
    content_type = (file.content_type or "").lower()
    if suffix not in ALLOWED_IMAGE_EXTENSIONS or not content_type.startswith("image/"):
        raise ValidationError(f"{field} must be an image file")

    directory = Path(temp_dir)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{uuid.uuid4().hex}{suffix}"
    written = 0
    try:
        with target.open("wb") as out:
            while chunk := await file.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise ValidationError(
                        f"{field} must not exceed {max_bytes // (1024 * 1024) or 1} MB"
                    )
                out.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise
    if written == 0:
        target.unlink(missing_ok=True)
        raise ValidationError(f"{field} file is empty")
    return target


def discard_staged(*paths: Path | None) -> None:
    """Remove staged files that are still on disk (storage removes the ones it uploaded)."""
    for path in paths:
        if path is None:
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove staged file", extra={"path": str(path), "reason": str(e)})
