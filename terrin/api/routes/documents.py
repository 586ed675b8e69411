import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db
from terrin.common.enums import UserRole
from terrin.common.exceptions import NotFoundError, PermissionDeniedError
from terrin.common.uploads import read_upload
from terrin.core.projects.access import get_project_or_404, verify_project_access
from terrin.db.models.project import ProjectDocument
from terrin.db.models.user import User
from terrin.integrations.storage import StorageClient

router = APIRouter(prefix="/projects", tags=["Documents"])


# ---------- Schemas ----------


class DocumentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    file_name: str
    file_url: str
    content_type: str
    document_type: str
    size_bytes: int | None
    created_at: str


# ---------- Endpoints ----------


@router.post("/{project_id}/documents", response_model=DocumentResponse, status_code=201)
async def upload_document(
    project_id: uuid.UUID,
    file: UploadFile = File(...),
    document_type: str = Form("general"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)

    content, content_type = await read_upload(file)

    storage = StorageClient()
    stored = await storage.upload_file(
        file_content=content,
        filename=file.filename or "unnamed",
        content_type=content_type,
        folder=f"projects/{project_id}/documents",
    )

    doc = ProjectDocument(
        project_id=project_id,
        user_id=current_user.id,
        file_name=file.filename or "unnamed",
        file_key=stored["file_key"],
        file_url=stored["url"],
        content_type=content_type,
        document_type=document_type or "general",
        size_bytes=len(content),
    )
    db.add(doc)
    await db.flush()
    await db.refresh(doc)
    return _document_response(doc)


@router.get("/{project_id}/documents", response_model=list[DocumentResponse])
async def list_documents(
    project_id: uuid.UUID,
    document_type: str | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)

    query = select(ProjectDocument).where(
        ProjectDocument.project_id == project_id, ProjectDocument.is_deleted.is_(False)
    )
    if document_type:
        query = query.where(ProjectDocument.document_type == document_type)
    result = await db.execute(query.order_by(ProjectDocument.created_at.desc()))
    return [_document_response(d) for d in result.scalars().all()]


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ProjectDocument).where(
            ProjectDocument.id == document_id, ProjectDocument.is_deleted.is_(False)
        )
    )
    doc = result.scalar_one_or_none()
    if not doc:
        raise NotFoundError("Document", str(document_id))

    project = await get_project_or_404(doc.project_id, db)
    if (
        current_user.role != UserRole.ADMIN.value
        and doc.user_id != current_user.id
        and project.owner_id != current_user.id
    ):
        raise PermissionDeniedError("You cannot delete this document")

    doc.soft_delete()
    await db.flush()
    await StorageClient().delete_file(doc.file_key)
    return {"message": "Document deleted successfully"}


def _document_response(doc: ProjectDocument) -> DocumentResponse:
    return DocumentResponse(
        id=doc.id,
        project_id=doc.project_id,
        user_id=doc.user_id,
        file_name=doc.file_name,
        file_url=doc.file_url,
        content_type=doc.content_type,
        document_type=doc.document_type,
        size_bytes=doc.size_bytes,
        created_at=doc.created_at.isoformat(),
    )
