"""
Eleven Interior API - Media Schemas
====================================

What:  Response and update models for section videos and images.

URL variants are generated from the Cloudinary public id, never stored:

    ImageUrls: original, large, medium, small, thumbnail, webp_large, webp_medium
    VideoUrls: original (secure upload URL), hd, sd, mobile
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from interior_api.schemas.common import Pagination, as_utc

VIDEO_SECTIONS = ("hero", "feature")
IMAGE_SECTIONS = ("contact", "entrance", "gallery", "logo", "about", "swordman")

VideoSection = Literal["hero", "feature"]
ImageSection = Literal["contact", "entrance", "gallery", "logo", "about", "swordman"]


class ImageUrls(BaseModel):
    original: str
    large: str
    medium: str
    small: str
    thumbnail: str
    webp_large: str
    webp_medium: str


class VideoUrls(BaseModel):
    original: str
    hd: str
    sd: str
    mobile: str


class AssetInfo(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    file_size: Optional[int] = None
    duration: Optional[float] = None
    original_filename: Optional[str] = None


class _MediaBase(BaseModel):
    id: int
    section: str
    cloudinary_public_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    alt_text: Optional[str] = None
    is_active: bool = True
    metadata: AssetInfo
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class VideoResponse(_MediaBase):
    urls: VideoUrls
    access_count: int = 0


class ImageResponse(_MediaBase):
    category: Optional[str] = None
    sort_order: int = 0
    urls: ImageUrls


class ImageListResponse(BaseModel):
    section: str
    images: List[ImageResponse]
    pagination: Pagination


class VideoUpdate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    alt_text: Optional[str] = Field(default=None, max_length=200)
    is_active: Optional[bool] = None


class ImageUpdate(VideoUpdate):
    category: Optional[str] = Field(default=None, max_length=100)
    sort_order: Optional[int] = Field(default=None, ge=0, le=10_000)


class ImageReorderRequest(BaseModel):
    image_ids: List[int] = Field(min_length=1, max_length=500)

    @field_validator("image_ids")
    @classmethod
    def unique_ids(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("image_ids must not contain duplicates")
        return v


class BatchUploadError(BaseModel):
    filename: Optional[str]
    error: str


class BatchUploadResponse(BaseModel):
    uploaded: List[ImageResponse]
    errors: List[BatchUploadError]
    total: int
    succeeded: int
    failed: int


class MediaDeletedResponse(BaseModel):
    message: str
    id: int
    cloudinary_public_id: str
    remote_deleted: bool
