"""Deduplicating photo store backed by the photos table and file storage."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillforge.db.models import Photo
from skillforge.exceptions import PhotoOwnershipError, StorageError
from skillforge.photos.storage import PhotoStorage, content_hash, normalize_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskMetadata:
    name: str | None = None
    category: str = "general"
    priority: str = "medium"


async def get_photo_by_hash(db: AsyncSession, owner_id: int, digest: str) -> Photo | None:
    result = await db.execute(
        select(Photo).where(Photo.owner_id == owner_id, Photo.content_hash == digest)
    )
    return result.scalar_one_or_none()


async def store_photo(
    db: AsyncSession,
    storage: PhotoStorage,
    owner_id: int,
    raw_image: object,
    metadata: TaskMetadata | None = None,
    max_bytes: int | None = None,
) -> Photo:
    """Store a photo, reusing the existing one if the owner uploaded the same bytes.

    The row is inserted before the bytes are written so that the
    (owner_id, content_hash) unique constraint decides concurrent duplicates
    and the loser never writes a file. Commits on success.

    Raises ``ValidationError`` for malformed input and ``StorageError`` if the
    bytes cannot be written (nothing is persisted in that case).
    """
    metadata = metadata or TaskMetadata()
    image = normalize_image(raw_image, max_bytes=max_bytes)
    digest = content_hash(image.data)

    existing = await get_photo_by_hash(db, owner_id, digest)
    if existing is not None:
        logger.info("Found duplicate image for user %d: %s", owner_id, existing.filename)
        return existing

    filename = storage.new_filename(owner_id, image.extension)
    photo = Photo(
        id=uuid.uuid4().hex,
        owner_id=owner_id,
        content_hash=digest,
        filename=filename,
        storage_path=storage.public_path(filename),
        content_type=image.content_type,
        size_bytes=len(image.data),
        task_name=metadata.name,
        task_category=metadata.category or "general",
        task_priority=metadata.priority or "medium",
        created_at=datetime.now(timezone.utc),
    )
    db.add(photo)

    try:
        await db.flush()
    except IntegrityError:
        # Race: the same content was stored concurrently by this owner
        await db.rollback()
        existing = await get_photo_by_hash(db, owner_id, digest)
        if existing is None:
            raise
        return existing

    try:
        await storage.write(filename, image.data)
    except StorageError:
        await db.rollback()
        raise

    try:
        await db.commit()
    except Exception:
        await storage.remove(filename)
        raise

    return photo


async def list_photos(db: AsyncSession, owner_id: int) -> list[Photo]:
    """All photos of an owner, newest first."""
    result = await db.execute(
        select(Photo)
        .where(Photo.owner_id == owner_id)
        .order_by(Photo.created_at.desc())
    )
    return list(result.scalars().all())


async def get_owned_photo(db: AsyncSession, owner_id: int, photo_id: str) -> Photo | None:
    """Fetch a photo, raising ``PhotoOwnershipError`` if someone else owns it."""
    photo = await db.get(Photo, photo_id)
    if photo is None:
        return None
    if photo.owner_id != owner_id:
        msg = f"Photo {photo_id} is not owned by user {owner_id}"
        raise PhotoOwnershipError(msg)
    return photo


async def delete_photo(
    db: AsyncSession,
    storage: PhotoStorage,
    owner_id: int,
    photo_id: str,
) -> bool:
    """Delete an owner's photo. Returns False if missing or owned by someone else.

    The file is removed only once no other row references its storage path.
    """
    try:
        photo = await get_owned_photo(db, owner_id, photo_id)
    except PhotoOwnershipError:
        logger.warning("Attempted to delete photo %s not owned by user %d", photo_id, owner_id)
        return False
    if photo is None:
        return False

    filename, storage_path = photo.filename, photo.storage_path
    await db.delete(photo)
    await db.flush()

    remaining = await db.execute(
        select(func.count(Photo.id)).where(Photo.storage_path == storage_path)
    )
    still_referenced = remaining.scalar_one() > 0
    await db.commit()

    if not still_referenced:
        await storage.remove(filename)
    return True
