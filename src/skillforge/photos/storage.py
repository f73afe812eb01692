"""File-backed photo storage: input normalization, content hashing, byte I/O."""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import logging
import os
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from skillforge.config import get_settings
from skillforge.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/photos"

_DATA_URL_RE = re.compile(r"^data:([A-Za-z0-9.+/-]+);base64,(.+)$", re.DOTALL)

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

# Leading bytes -> mime type, for inputs that arrive without one
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


@dataclass(frozen=True)
class NormalizedImage:
    data: bytes
    content_type: str | None = None

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.content_type or "", "jpg")


def sniff_content_type(data: bytes) -> str | None:
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def _decode_base64(payload: str) -> bytes:
    compact = "".join(payload.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "Image data is not valid base64"
        raise ValidationError(msg) from exc


def normalize_image(raw: object, max_bytes: int | None = None) -> NormalizedImage:
    """Turn a data URL, bare base64 string or binary buffer into raw bytes.

    Raises ``ValidationError`` for any other type, an undecodable payload,
    empty content or content over ``max_bytes``.
    """
    content_type: str | None = None

    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("data:"):
            match = _DATA_URL_RE.match(text)
            if match:
                content_type = match.group(1).lower()
                data = _decode_base64(match.group(2))
            elif "," in text:
                data = _decode_base64(text.split(",", 1)[1])
            else:
                msg = "Malformed data URL"
                raise ValidationError(msg)
        else:
            data = _decode_base64(text)
    elif isinstance(raw, (bytes, bytearray, memoryview)):
        data = bytes(raw)
    else:
        msg = f"Image data format not recognized: {type(raw).__name__}"
        raise ValidationError(msg)

    if not data:
        msg = "Image data is empty"
        raise ValidationError(msg)
    if max_bytes is not None and len(data) > max_bytes:
        msg = f"Image too large: {len(data)} bytes (max {max_bytes})"
        raise ValidationError(msg)

    return NormalizedImage(data=data, content_type=content_type or sniff_content_type(data))


def content_hash(data: bytes) -> str:
    """Hex digest identifying byte-identical uploads."""
    return hashlib.sha256(data).hexdigest()


class PhotoStorage:
    """Writes and removes photo files under a single upload directory."""

    def __init__(
        self,
        upload_dir: str | os.PathLike[str],
        write_timeout_seconds: float = 10.0,
        public_prefix: str = PUBLIC_PREFIX,
    ) -> None:
        self.upload_dir = Path(upload_dir)
        self.write_timeout_seconds = write_timeout_seconds
        self.public_prefix = public_prefix.rstrip("/")

    @staticmethod
    def new_filename(owner_id: int, extension: str) -> str:
        """``{owner_id}_{unique id}.{ext}``, unique per write."""
        return f"{owner_id}_{uuid.uuid4().hex}.{extension}"

    def public_path(self, filename: str) -> str:
        return f"{self.public_prefix}/{filename}"

    def path_for(self, filename: str) -> Path:
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir.resolve():
            msg = f"Invalid photo filename: {filename!r}"
            raise ValidationError(msg)
        return path

    @staticmethod
    def _tmp_path(path: Path) -> Path:
        return path.with_name(f".{path.name}.tmp")

    def _write_sync(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._tmp_path(path)
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def _discard_late_write(self, path: Path, task: asyncio.Future[None]) -> None:
        """Done-callback for a write that outlived its timeout: drop whatever it left."""
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Timed-out write of %s failed: %s", path.name, task.exception())
        for leftover in (path, self._tmp_path(path)):
            try:
                leftover.unlink(missing_ok=True)
            except OSError:
                logger.exception("Could not remove orphaned photo file %s", leftover)
        logger.info("Discarded timed-out photo write %s", path.name)

    async def write(self, filename: str, data: bytes) -> Path:
        """Write ``data`` to ``filename``, bounded by the write timeout.

        The worker thread cannot be interrupted, so on timeout it is left to
        finish and its file is removed once it does.

        Raises ``StorageError`` on I/O failure or timeout.
        """
        path = self.path_for(filename)
        task = asyncio.ensure_future(asyncio.to_thread(self._write_sync, path, data))
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.write_timeout_seconds)
        except asyncio.TimeoutError as exc:
            task.add_done_callback(lambda done: self._discard_late_write(path, done))
            msg = f"Timed out writing {filename} after {self.write_timeout_seconds}s"
            raise StorageError(msg) from exc
        except OSError as exc:
            msg = f"Failed to write {filename}: {exc}"
            raise StorageError(msg) from exc
        logger.info("New photo saved to %s (%d bytes)", path, len(data))
        return path

    async def remove(self, filename: str) -> bool:
        """Delete a stored file. Returns False if it was already gone."""
        path = self.path_for(filename)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as exc:
            msg = f"Failed to delete {filename}: {exc}"
            raise StorageError(msg) from exc
        logger.info("Deleted photo file %s", path)
        return True

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).exists()


@lru_cache
def get_photo_storage() -> PhotoStorage:
    """Storage rooted at the configured upload directory."""
    settings = get_settings()
    return PhotoStorage(
        settings.upload_dir,
        write_timeout_seconds=settings.storage_write_timeout_seconds,
    )
