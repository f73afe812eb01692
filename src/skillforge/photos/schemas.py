"""Pydantic request/response models for photo endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from skillforge.gamification.schemas import ActivityResponse


class PhotoCreateRequest(BaseModel):
    image: str = Field(description="Data URL (data:<mime>;base64,...) or bare base64")
    task_name: str | None = Field(default=None, max_length=256)
    task_category: str = Field(default="general", max_length=64)
    task_priority: str = Field(default="medium", max_length=16)
    record_activity: bool = True


class PhotoResponse(BaseModel):
    id: str
    user_id: int
    filename: str
    path: str
    content_type: str | None = None
    size_bytes: int
    task_name: str | None = None
    task_category: str
    task_priority: str
    created_at: datetime


class PhotoUploadResponse(BaseModel):
    photo: PhotoResponse
    activity: ActivityResponse | None = None


class PhotoListResponse(BaseModel):
    photos: list[PhotoResponse]
    total: int


class PhotoDeleteResponse(BaseModel):
    deleted: bool
