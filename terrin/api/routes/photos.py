"""Project photo galleries backed by base64 data-URL uploads."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from terrin.api.deps import get_current_user, get_db
from terrin.common.enums import PhotoCategory, ProjectUpdateType, UserRole
from terrin.common.exceptions import NotFoundError, PayloadTooLargeError, PermissionDeniedError
from terrin.common.pagination import PaginatedResponse, PaginationParams, paginate
from terrin.common.uploads import (
    MAX_BATCH_BYTES,
    MB,
    decode_image_data_url,
    validate_image_data_url,
)
from terrin.core.projects.access import get_project_or_404, verify_project_access
from terrin.db.models.photo import ProjectPhoto
from terrin.db.models.project import Project, ProjectUpdate
from terrin.db.models.user import User
from terrin.integrations.storage import StorageClient

router = APIRouter(tags=["Photos"])

MAX_BATCH_PHOTOS = 20


# ---------- Schemas ----------


class PhotoUploadRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=500)
    data_url: str
    caption: str | None = None
    category: PhotoCategory = PhotoCategory.GENERAL


class PhotoBatchRequest(BaseModel):
    photos: list[PhotoUploadRequest] = Field(min_length=1, max_length=MAX_BATCH_PHOTOS)


class PhotoUpdateRequest(BaseModel):
    caption: str | None = None
    category: PhotoCategory | None = None


class PhotoResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    file_name: str
    file_url: str
    content_type: str
    size_bytes: int
    caption: str | None
    category: str
    created_at: str


class PhotoMetadata(BaseModel):
    id: uuid.UUID
    file_name: str
    content_type: str
    size_bytes: int
    caption: str | None
    category: str
    created_at: str


class PhotoGalleryResponse(PaginatedResponse[PhotoResponse]):
    pass


class PhotoBatchResponse(BaseModel):
    uploaded: int
    photos: list[PhotoResponse]


# ---------- Endpoints ----------


@router.post("/projects/{project_id}/photos", response_model=PhotoResponse, status_code=201)
async def upload_photo(
    project_id: uuid.UUID,
    body: PhotoUploadRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    validate_image_data_url(body.data_url)

    content_type, data = decode_image_data_url(body.data_url)
    photo = await _store_photo(project_id, body, content_type, data, current_user, db)
    db.add(ProjectUpdate(
        project_id=project_id,
        user_id=current_user.id,
        update_type=ProjectUpdateType.PHOTO.value,
        title="Photo uploaded",
        description=body.caption,
    ))
    await db.flush()
    await db.refresh(photo)
    return _photo_response(photo)


@router.post(
    "/projects/{project_id}/photos/batch", response_model=PhotoBatchResponse, status_code=201
)
async def upload_photo_batch(
    project_id: uuid.UUID,
    body: PhotoBatchRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)

    total = sum(validate_image_data_url(p.data_url) for p in body.photos)
    if total > MAX_BATCH_BYTES:
        raise PayloadTooLargeError(f"Batch exceeds max total size of {MAX_BATCH_BYTES // MB} MB")

    # Decode the whole batch before anything reaches storage
    decoded = [(p, *decode_image_data_url(p.data_url)) for p in body.photos]
    photos = [
        await _store_photo(project_id, p, content_type, data, current_user, db)
        for p, content_type, data in decoded
    ]
    db.add(ProjectUpdate(
        project_id=project_id,
        user_id=current_user.id,
        update_type=ProjectUpdateType.PHOTO.value,
        title=f"{len(photos)} photos uploaded",
    ))
    await db.flush()
    for photo in photos:
        await db.refresh(photo)
    return PhotoBatchResponse(uploaded=len(photos), photos=[_photo_response(p) for p in photos])


@router.get("/projects/{project_id}/photos", response_model=PhotoGalleryResponse)
async def list_photos(
    project_id: uuid.UUID,
    category: PhotoCategory | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    params: PaginationParams = Depends(),
):
    await verify_project_access(project_id, current_user, db)

    query = select(ProjectPhoto).where(
        ProjectPhoto.project_id == project_id, ProjectPhoto.is_deleted.is_(False)
    )
    if category is not None:
        query = query.where(ProjectPhoto.category == category.value)
    query = query.order_by(ProjectPhoto.created_at.desc())

    items, total = await paginate(db, query, params)
    return PhotoGalleryResponse.build([_photo_response(p) for p in items], total, params)


@router.get("/projects/{project_id}/photos/metadata", response_model=list[PhotoMetadata])
async def list_photo_metadata(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    result = await db.execute(
        select(ProjectPhoto)
        .where(ProjectPhoto.project_id == project_id, ProjectPhoto.is_deleted.is_(False))
        .order_by(ProjectPhoto.created_at.desc())
    )
    return [
        PhotoMetadata(
            id=p.id,
            file_name=p.file_name,
            content_type=p.content_type,
            size_bytes=p.size_bytes,
            caption=p.caption,
            category=p.category,
            created_at=p.created_at.isoformat(),
        )
        for p in result.scalars().all()
    ]


@router.get("/projects/{project_id}/photos/{photo_id}", response_model=PhotoResponse)
async def get_photo(
    project_id: uuid.UUID,
    photo_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await verify_project_access(project_id, current_user, db)
    photo = await _get_photo(photo_id, db)
    if photo.project_id != project_id:
        raise NotFoundError("Photo", str(photo_id))
    return _photo_response(photo)


@router.patch("/projects/photos/{photo_id}", response_model=PhotoResponse)
async def update_photo(
    photo_id: uuid.UUID,
    body: PhotoUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    photo = await _get_photo(photo_id, db)
    await _verify_photo_editor(photo, current_user, db)

    if body.caption is not None:
        photo.caption = body.caption
    if body.category is not None:
        photo.category = body.category.value

    await db.flush()
    await db.refresh(photo)
    return _photo_response(photo)


@router.delete("/projects/photos/{photo_id}")
async def delete_photo(
    photo_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    photo = await _get_photo(photo_id, db)
    await _verify_photo_editor(photo, current_user, db)

    photo.soft_delete()
    await db.flush()
    await StorageClient().delete_file(photo.file_key)
    return {"message": "Photo deleted successfully"}


@router.get("/gallery/photos", response_model=list[PhotoResponse])
async def list_gallery_photos(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(ProjectPhoto)
        .join(Project, Project.id == ProjectPhoto.project_id)
        .where(
            Project.owner_id == current_user.id,
            Project.is_deleted.is_(False),
            ProjectPhoto.is_deleted.is_(False),
        )
        .order_by(ProjectPhoto.created_at.desc())
        .limit(limit)
    )
    return [_photo_response(p) for p in result.scalars().all()]


# ---------- Helpers ----------


async def _store_photo(
    project_id: uuid.UUID,
    body: PhotoUploadRequest,
    content_type: str,
    data: bytes,
    user: User,
    db: AsyncSession,
) -> ProjectPhoto:
    stored = await StorageClient().upload_file(
        file_content=data,
        filename=body.file_name,
        content_type=content_type,
        folder=f"projects/{project_id}/photos",
    )
    photo = ProjectPhoto(
        project_id=project_id,
        user_id=user.id,
        file_name=body.file_name,
        file_key=stored["file_key"],
        file_url=stored["url"],
        content_type=content_type,
        size_bytes=len(data),
        caption=body.caption,
        category=body.category.value,
    )
    db.add(photo)
    await db.flush()
    return photo


async def _get_photo(photo_id: uuid.UUID, db: AsyncSession) -> ProjectPhoto:
    result = await db.execute(
        select(ProjectPhoto).where(ProjectPhoto.id == photo_id, ProjectPhoto.is_deleted.is_(False))
    )
    photo = result.scalar_one_or_none()
    if not photo:
        raise NotFoundError("Photo", str(photo_id))
    return photo


async def _verify_photo_editor(photo: ProjectPhoto, user: User, db: AsyncSession) -> None:
    if user.role == UserRole.ADMIN.value or photo.user_id == user.id:
        return
    project = await get_project_or_404(photo.project_id, db)
    if project.owner_id != user.id:
        raise PermissionDeniedError("Only the uploader or project owner can change this photo")


def _photo_response(photo: ProjectPhoto) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        project_id=photo.project_id,
        user_id=photo.user_id,
        file_name=photo.file_name,
        file_url=photo.file_url,
        content_type=photo.content_type,
        size_bytes=photo.size_bytes,
        caption=photo.caption,
        category=photo.category,
        created_at=photo.created_at.isoformat(),
    )
