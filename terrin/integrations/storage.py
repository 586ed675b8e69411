"""Local file storage client.

Files land under ``STORAGE_LOCAL_PATH`` and are served by the app at
``STORAGE_PUBLIC_URL``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from terrin.common.exceptions import BadRequestError
from terrin.config import settings
from terrin.integrations.base import BaseIntegration


def safe_filename(name: str) -> str:
    """Reduce a client-supplied name to a single path component."""
    cleaned = PurePosixPath(name.replace("\\", "/")).name.strip()
    cleaned = "".join(c if c.isalnum() or c in "._-" else "_" for c in cleaned)
    return cleaned.lstrip(".") or "file"


class StorageClient(BaseIntegration):
    def __init__(self) -> None:
        super().__init__("storage")
        self._root = Path(settings.STORAGE_LOCAL_PATH)

    async def health_check(self) -> bool:
        self._root.mkdir(parents=True, exist_ok=True)
        self.logger.info("Storage: local mode (%s)", self._root)
        return True

    def _path_for(self, file_key: str) -> Path:
        parts = PurePosixPath(file_key).parts
        if not parts or any(p in ("..", "") or p.startswith("/") for p in parts):
            raise BadRequestError("Invalid file key")
        return self._root.joinpath(*parts)

    def public_url(self, file_key: str) -> str:
        return f"{settings.STORAGE_PUBLIC_URL.rstrip('/')}/{file_key}"

    async def put_object(
        self, file_key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> dict[str, Any]:
        path = self._path_for(file_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self.logger.info("Stored %s (%d bytes, %s)", file_key, len(data), content_type)
        return {
            "file_key": file_key,
            "content_type": content_type,
            "size_bytes": len(data),
            "url": self.public_url(file_key),
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
        }

    async def upload_file(
        self,
        file_content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
        folder: str = "uploads",
    ) -> dict[str, Any]:
        file_key = f"{folder}/{uuid.uuid4().hex}/{safe_filename(filename)}"
        record = await self.put_object(file_key, file_content, content_type)
        record["filename"] = filename
        return record

    async def exists(self, file_key: str) -> bool:
        return self._path_for(file_key).is_file()

    async def delete_file(self, file_key: str) -> bool:
        path = self._path_for(file_key)
        existed = path.is_file()
        if existed:
            path.unlink()
        self.logger.info("File deleted | key=%s | existed=%s", file_key, existed)
        return existed
