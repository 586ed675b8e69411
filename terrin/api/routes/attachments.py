import time
import uuid

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from terrin.api.deps import get_current_user
from terrin.common.exceptions import BadRequestError, NotFoundError
from terrin.common.uploads import read_upload
from terrin.db.models.user import User
from terrin.integrations.storage import StorageClient, safe_filename

router = APIRouter(prefix="/messages", tags=["Messaging"])

ATTACHMENT_FOLDER = "messages"


class AttachmentResponse(BaseModel):
    url: str
    filename: str
    stored_name: str
    size: int
    type: str


@router.post("/upload-attachment", response_model=AttachmentResponse)
async def upload_attachment(
    attachment: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    content, content_type = await read_upload(attachment)

    original = attachment.filename or "attachment"
    name = safe_filename(original)
    stem, dot, ext = name.rpartition(".")
    if not dot:
        stem, ext = name, ""
    stored_name = f"{stem}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{dot}{ext}"

    stored = await StorageClient().put_object(
        f"{ATTACHMENT_FOLDER}/{stored_name}", content, content_type
    )
    return AttachmentResponse(
        url=stored["url"],
        filename=original,
        stored_name=stored_name,
        size=len(content),
        type=content_type,
    )


@router.delete("/attachments/{filename}")
async def delete_attachment(
    filename: str,
    current_user: User = Depends(get_current_user),
):
    if safe_filename(filename) != filename:
        raise BadRequestError("Invalid filename")

    deleted = await StorageClient().delete_file(f"{ATTACHMENT_FOLDER}/{filename}")
    if not deleted:
        raise NotFoundError("File")
    return {"message": "File deleted successfully"}
