"""Object storage: upload local image files to Cloudinary and return their URLs."""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    """A file accepted by object storage."""

    url: str
    public_id: str = ""


def _remove_local(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove staged file", extra={"path": str(path), "reason": str(e)})


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature: SHA-1 of sorted k=v pairs joined by & plus the secret."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] != "")
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryStorage:
    """
    Upload client for the Cloudinary image upload API.

    upload() never raises for storage failures: it logs and returns None, and
    always removes the local file afterwards.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.cloud_name = settings.CLOUDINARY_CLOUD_NAME
        self.api_key = settings.CLOUDINARY_API_KEY
        self.api_secret = (
            settings.CLOUDINARY_API_SECRET.get_secret_value()
            if settings.CLOUDINARY_API_SECRET is not None
            else None
        )
        self.folder = settings.CLOUDINARY_UPLOAD_FOLDER
        self.base_url = settings.CLOUDINARY_BASE_URL
        self.timeout = settings.CLOUDINARY_REQUEST_TIMEOUT_SEC
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(
            self.cloud_name
            and self.cloud_name.strip()
            and self.api_key
            and self.api_key.strip()
            and self.api_secret
            and self.api_secret.strip()
        )

    def _upload_url(self) -> str:
        return f"{self.base_url}/{self.cloud_name}/image/upload"

    async def upload(self, local_path: str | Path | None) -> StoredFile | None:
        """Upload one local file. Returns the stored file, or None on any failure."""
        if not local_path:
            return None
        path = Path(local_path)
        try:
            if not self.is_configured:
                logger.warning("Cloudinary is not configured; upload skipped")
                return None
            return await self._post(path)
        finally:
            _remove_local(path)

    async def _post(self, path: Path) -> StoredFile | None:
        params = {"timestamp": str(int(time.time()))}
        if self.folder:
            params["folder"] = self.folder
        params["signature"] = sign_params(params, self.api_secret or "")
        params["api_key"] = self.api_key or ""
        try:
            content = path.read_bytes()
        except OSError as e:
            logger.error("Staged file unreadable", extra={"path": str(path), "reason": str(e)})
            return None
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.post(
                    self._upload_url(),
                    data=params,
                    files={"file": (path.name, content)},
                )
        except httpx.HTTPError as e:
            logger.error(
                "Cloudinary upload failed",
                extra={"upload_status": "failure", "reason": str(e)[:500]},
            )
            return None
        if resp.status_code >= 400:
            logger.error(
                "Cloudinary upload rejected",
                extra={
                    "upload_status": "failure",
                    "status_code": resp.status_code,
                    "reason": (resp.text or "")[:500],
                },
            )
            return None
        try:
            body = resp.json()
        except ValueError:
            logger.error("Cloudinary returned a non-JSON response", extra={"upload_status": "failure"})
            return None
        url = body.get("secure_url") or body.get("url")
        if not url:
            logger.error("Cloudinary response missing url", extra={"upload_status": "failure"})
            return None
        logger.info(
            "Cloudinary upload completed",
            extra={"upload_status": "success", "public_id": body.get("public_id", "")},
        )
        return StoredFile(url=url, public_id=body.get("public_id", ""))
