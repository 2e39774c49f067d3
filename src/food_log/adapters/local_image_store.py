"""Local-disk storage for uploaded images."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from food_log.domain.errors import StorageFaultError
from food_log.services.entries import ImageStore

logger = logging.getLogger(__name__)


@dataclass
class LocalImageStore(ImageStore):
    """Writes images under a directory served at ``url_prefix``."""

    directory: Path
    url_prefix: str = "/uploads"

    async def save(self, filename: str | None, content: bytes) -> str:
        """Write the image under a unique name and return its URL path."""
        stored_name = f"{int(time.time() * 1000)}-{uuid4().hex}{_safe_suffix(filename)}"
        try:
            await asyncio.to_thread(self._write, stored_name, content)
        except OSError as exc:
            logger.exception("Failed to store image", extra={"image_name": stored_name})
            raise StorageFaultError(f"Cannot store image: {exc}") from exc
        return f"{self.url_prefix}/{stored_name}"

    def _write(self, stored_name: str, content: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / stored_name).write_bytes(content)

    def delete(self, image_path: str) -> None:
        """Remove a stored image by its URL path."""
        stored_name = image_path.rsplit("/", maxsplit=1)[-1]
        if not stored_name:
            return
        try:
            (self.directory / stored_name).unlink(missing_ok=True)
        except OSError:
            logger.exception("Failed to remove image", extra={"image_name": stored_name})


def _safe_suffix(filename: str | None) -> str:
    suffix = Path(filename or "").suffix.lower()
    if len(suffix) > 1 and suffix[1:].isalnum():
        return suffix
    return ""
