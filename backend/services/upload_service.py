"""
Upload Service

Stores uploaded images under UPLOAD_DIR with a random name and returns the
public URL they are served from.
"""
from pathlib import Path
from typing import List, Optional
import logging

from fastapi import UploadFile

from config import app_config
from constants import UploadConfig
from exceptions import UploadError
from utils.ids import generate_uuid

logger = logging.getLogger(__name__)


class UploadService:

    def __init__(self, upload_dir: Optional[Path] = None, max_mb: Optional[int] = None):
        self.upload_dir = Path(upload_dir or app_config.UPLOAD_DIR)
        self.max_bytes = (max_mb if max_mb is not None else app_config.MAX_UPLOAD_MB) * 1024 * 1024

    def extension_for(self, upload: UploadFile) -> str:
        """
        Get the file extension for an accepted image type.

        Raises:
            UploadError: Content type is not an accepted image type
        """
        content_type = (upload.content_type or '').split(';')[0].strip().lower()
        extension = UploadConfig.IMAGE_TYPES.get(content_type)
        if extension is None:
            raise UploadError(
                upload.filename,
                f"Unsupported file type '{content_type or 'unknown'}'. Allowed: JPEG, PNG, GIF, WebP",
            )
        return extension

    async def save(self, upload: UploadFile) -> str:
        """
        Store one image and return its URL.

        The file is streamed to disk in chunks; a file over the size limit is
        removed and rejected.

        Raises:
            UploadError: Unsupported type (400) or too large (413)
        """
        extension = self.extension_for(upload)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        name = f"{generate_uuid()}{extension}"
        target = self.upload_dir / name

        written = 0
        too_large = False
        with open(target, 'wb') as out:
            while True:
                chunk = await upload.read(UploadConfig.CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_bytes:
                    too_large = True
                    break
                out.write(chunk)

        if too_large:
            target.unlink(missing_ok=True)
            raise UploadError(
                upload.filename,
                f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB",
                too_large=True,
            )
        if written == 0:
            target.unlink(missing_ok=True)
            raise UploadError(upload.filename, "Uploaded file is empty")

        logger.info(f"📤 Stored upload {upload.filename!r} as {name} ({written} bytes)")
        return f"{UploadConfig.URL_PREFIX}/{name}"

    async def save_all(self, uploads: List[UploadFile]) -> List[str]:
        """
        Store several images.

        Every file is checked for type before anything is written; if a later
        file fails, files already stored by this call are removed.
        """
        for upload in uploads:
            self.extension_for(upload)

        urls = []
        try:
            for upload in uploads:
                urls.append(await self.save(upload))
        except UploadError:
            for url in urls:
                self.remove(url)
            raise
        return urls

    def remove(self, url: str) -> bool:
        """Delete a stored upload by URL. Returns True if a file was removed."""
        if not url.startswith(UploadConfig.URL_PREFIX + '/'):
            return False
        path = self.upload_dir / Path(url).name
        if path.exists():
            path.unlink()
            return True
        return False
