import logging
import secrets
from pathlib import Path
from typing import List, Optional, Sequence

import anyio
from fastapi import UploadFile

from trashapp.core.config import settings
from trashapp.core.errors import AppError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def check_photo_batch(files: Sequence[UploadFile], max_files: Optional[int] = None) -> None:
    max_files = max_files or settings.MAX_PHOTOS
    if not files:
        raise AppError("No photos uploaded", "NO_PHOTOS")
    if len(files) > max_files:
        raise AppError(f"At most {max_files} photos can be uploaded at once", "TOO_MANY_PHOTOS")
    for upload in files:
        if not (upload.content_type or "").startswith("image/"):
            raise AppError(
                "Only image files are allowed",
                "INVALID_FILE_TYPE",
                details={"filename": upload.filename},
            )


class PhotoStorage:
    """Stores pickup photos on disk and hands back public URLs."""

    def __init__(self, root: Optional[Path] = None, base_url: Optional[str] = None, folder: str = "pickups") -> None:
        self.root = Path(root or settings.UPLOAD_DIR)
        self.base_url = (base_url or settings.MEDIA_URL).rstrip("/")
        self.folder = folder

    async def save(self, upload: UploadFile, data: bytes) -> str:
        suffix = EXTENSIONS.get(upload.content_type or "", Path(upload.filename or "").suffix or ".bin")
        name = f"{secrets.token_hex(12)}{suffix}"
        target = anyio.Path(self.root / self.folder)
        await target.mkdir(parents=True, exist_ok=True)
        await (target / name).write_bytes(data)
        return f"{self.base_url}/{self.folder}/{name}"

    async def save_many(self, uploads: Sequence[UploadFile]) -> List[str]:
        check_photo_batch(uploads)
        # read everything first so an oversized file rejects the whole batch
        payloads = []
        for upload in uploads:
            data = await upload.read()
            if len(data) > settings.MAX_PHOTO_SIZE:
                raise AppError(
                    "Photo exceeds the 5MB limit",
                    "FILE_TOO_LARGE",
                    details={"filename": upload.filename},
                )
            payloads.append((upload, data))
        urls = [await self.save(upload, data) for upload, data in payloads]
        logger.info("Stored %d photo(s) under %s", len(urls), self.folder)
        return urls


photo_storage = PhotoStorage()
