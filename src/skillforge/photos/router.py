"""Photo endpoints: store (JSON or multipart), list and delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.auth.dependencies import get_current_user
from skillforge.config import get_settings
from skillforge.database import get_session
from skillforge.db.models import Photo, User
from skillforge.dependencies import get_redis_dep, get_storage_dep
from skillforge.exceptions import StorageError
from skillforge.gamification.progress_service import apply_activity
from skillforge.gamification.router import activity_response
from skillforge.photos.schemas import (
    PhotoCreateRequest,
    PhotoDeleteResponse,
    PhotoListResponse,
    PhotoResponse,
    PhotoUploadResponse,
)
from skillforge.photos.service import TaskMetadata, delete_photo, list_photos, store_photo
from skillforge.photos.storage import PhotoStorage
from skillforge.retry import retry_async

router = APIRouter(prefix="/api/v1/photos", tags=["Photos"])


def photo_response(photo: Photo) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        user_id=photo.owner_id,
        filename=photo.filename,
        path=photo.storage_path,
        content_type=photo.content_type,
        size_bytes=photo.size_bytes,
        task_name=photo.task_name,
        task_category=photo.task_category,
        task_priority=photo.task_priority,
        created_at=photo.created_at,
    )


async def _store_and_progress(
    db: AsyncSession,
    redis: object,
    storage: PhotoStorage,
    user_id: int,
    raw_image: object,
    metadata: TaskMetadata,
    record_activity: bool,
) -> PhotoUploadResponse:
    """Persist the photo (retrying storage failures), then update streak/XP."""
    settings = get_settings()
    photo = await retry_async(
        lambda: store_photo(db, storage, user_id, raw_image, metadata, max_bytes=settings.max_photo_bytes),
        retry_on=StorageError,
        attempts=settings.storage_write_attempts,
        backoff_seconds=settings.storage_retry_backoff_seconds,
    )

    activity = None
    if record_activity:
        activity = activity_response(await apply_activity(db, redis, user_id))
        await db.refresh(photo)

    return PhotoUploadResponse(photo=photo_response(photo), activity=activity)


@router.post("", response_model=PhotoUploadResponse, status_code=201)
async def create_photo(
    body: PhotoCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    storage: PhotoStorage = Depends(get_storage_dep),
):
    """Store a captured photo sent as a data URL or base64 string."""
    metadata = TaskMetadata(name=body.task_name, category=body.task_category, priority=body.task_priority)
    return await _store_and_progress(db, redis, storage, user.id, body.image, metadata, body.record_activity)


@router.post("/upload", response_model=PhotoUploadResponse, status_code=201)
async def upload_photo(
    file: UploadFile = File(...),
    task_name: str | None = Form(default=None),
    task_category: str = Form(default="general"),
    task_priority: str = Form(default="medium"),
    record_activity: bool = Form(default=True),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    storage: PhotoStorage = Depends(get_storage_dep),
):
    """Store an uploaded image file."""
    data = await file.read()
    metadata = TaskMetadata(name=task_name, category=task_category, priority=task_priority)
    return await _store_and_progress(db, redis, storage, user.id, data, metadata, record_activity)


@router.get("", response_model=PhotoListResponse)
async def get_photos(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """All photos of the current user, newest first."""
    photos = await list_photos(db, user.id)
    return PhotoListResponse(photos=[photo_response(p) for p in photos], total=len(photos))


@router.delete("/{photo_id}", response_model=PhotoDeleteResponse)
async def remove_photo(
    photo_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    storage: PhotoStorage = Depends(get_storage_dep),
):
    """Delete one of the current user's photos. ``deleted`` is False if not found or not owned."""
    return PhotoDeleteResponse(deleted=await delete_photo(db, storage, user.id, photo_id))
