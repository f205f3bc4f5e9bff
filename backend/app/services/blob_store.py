"""
Blob storage for photographic evidence (odometer photos, receipts, scale tickets).

The domain only keeps the reference returned by upload(); the bytes live
wherever the configured store puts them. LocalBlobStore writes to a
directory on disk and is what the application uses by default.
"""

import abc
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from backend.app.core.config import settings
from backend.app.core.exceptions import InputValidationError, StorageError
from backend.app.db.session import new_id

logger = logging.getLogger("freight.blobs")

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".heic", ".pdf"}


@dataclass(frozen=True)
class PhotoUpload:
    """A user-submitted file as received from the presentation layer."""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.content

    @property
    def extension(self) -> str:
        suffix = Path(self.filename or "").suffix.lower()
        return suffix if suffix in ALLOWED_EXTENSIONS else ".bin"


@dataclass(frozen=True)
class BlobRef:
    url: str


def has_photo(photo: Optional[PhotoUpload]) -> bool:
    return photo is not None and not photo.is_empty


class BlobStore(abc.ABC):
    """Interface of the blob collaborator."""

    @abc.abstractmethod
    async def upload(self, bucket: str, path: str, photo: PhotoUpload) -> BlobRef:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """
    Filesystem-backed blob store.

    Files are written below root/<bucket>/<path>; the returned url is
    base_url/<bucket>/<path>.
    """

    def __init__(
        self,
        root: Optional[str] = None,
        base_url: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ):
        self.root = Path(root or settings.blob_storage_root)
        self.base_url = (base_url if base_url is not None else settings.blob_base_url).rstrip("/")
        self.max_bytes = max_bytes or settings.max_photo_bytes

    async def upload(self, bucket: str, path: str, photo: PhotoUpload) -> BlobRef:
        if photo.is_empty:
            raise InputValidationError("Uploaded file is empty", details={"file": photo.filename})
        if len(photo.content) > self.max_bytes:
            raise InputValidationError(
                "Uploaded file is too large",
                details={"file": photo.filename, "max_bytes": self.max_bytes},
            )

        relative = f"{bucket}/{path}"
        target = self.root / bucket / path
        try:
            await asyncio.to_thread(self._write, target, photo.content)
        except OSError as exc:
            logger.error("Blob upload failed for %s: %s", relative, exc)
            raise StorageError("Could not store uploaded file", details={"path": relative}) from exc

        logger.debug("Stored blob %s (%d bytes)", relative, len(photo.content))
        return BlobRef(url=f"{self.base_url}/{relative}")

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)


def blob_path(owner_id: str, label: str, photo: PhotoUpload) -> str:
    """Build a collision-free object path for an upload."""
    return f"{owner_id}/{label}-{new_id()}{photo.extension}"


_blob_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the process-wide blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore()
    return _blob_store
