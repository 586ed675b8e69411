"""Validation for client-supplied files (multipart uploads and data URLs)."""

from __future__ import annotations

import base64
import binascii
import re

from fastapi import UploadFile

from terrin.common.exceptions import BadRequestError, PayloadTooLargeError

MB = 1024 * 1024
MAX_FILE_BYTES = 10 * MB
MAX_BATCH_BYTES = 50 * MB

ALLOWED_ATTACHMENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
}

_DATA_URL_RE = re.compile(r"^data:(image/[\w.+-]+)(;[\w=.-]+)*;base64,(.*)$", re.DOTALL)


def estimated_data_url_size(data_url: str) -> int:
    """Decoded byte size implied by the base64 payload length."""
    _, _, payload = data_url.partition(",")
    return len(payload) * 3 // 4


def validate_image_data_url(data_url: str, max_bytes: int = MAX_FILE_BYTES) -> int:
    if not data_url.startswith("data:image/"):
        raise BadRequestError("Invalid image data. Must be a data:image/ URL")
    size = estimated_data_url_size(data_url)
    if size > max_bytes:
        raise PayloadTooLargeError(f"Image exceeds max size of {max_bytes // MB} MB")
    return size


def decode_image_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a base64 image data URL into ``(content_type, raw bytes)``."""
    match = _DATA_URL_RE.match(data_url)
    if not match:
        raise BadRequestError("Invalid image data. Expected a base64 data URL")
    try:
        data = base64.b64decode(match.group(3), validate=True)
    except (binascii.Error, ValueError):
        raise BadRequestError("Invalid image data. Payload is not valid base64")
    return match.group(1), data


async def read_upload(
    file: UploadFile,
    allowed_types: set[str] = ALLOWED_ATTACHMENT_TYPES,
    max_bytes: int = MAX_FILE_BYTES,
) -> tuple[bytes, str]:
    content_type = file.content_type or "application/octet-stream"
    if content_type not in allowed_types:
        raise BadRequestError("Invalid file type. Only images and documents are allowed.")
    too_large = PayloadTooLargeError(f"File exceeds max size of {max_bytes // MB} MB")
    if file.size is not None and file.size > max_bytes:
        raise too_large
    # One byte past the limit is enough to know it is over
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise too_large
    return content, content_type
