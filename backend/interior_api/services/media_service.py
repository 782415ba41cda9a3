"""
Eleven Interior API - Media Service (Business Logic)
=====================================================

What:  Section videos and images: validation, Cloudinary upload/delete, and the
       local metadata that drives the public site.
Who:   Called by routes/videos.py and routes/images.py.

Upload flow:
    ┌──────────┐    ┌────────────┐    ┌─────────────┐    ┌──────────┐
    │  Route   │───▶│  Validate  │───▶│  Cloudinary │───▶│  Store   │
    │ (bytes)  │    │ type/size  │    │   upload    │    │ metadata │
    └──────────┘    └────────────┘    └─────────────┘    └──────────┘

    If the metadata insert fails after a successful upload, the remote asset
    is deleted again so Cloudinary and the database stay in step.

Stateless: every call receives the session and the per-request CloudinaryService.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from interior_api.exceptions import MediaServiceError, NotFoundError, ValidationError
from interior_api.models.media import MediaMetadata
from interior_api.schemas.common import Pagination
from interior_api.schemas.media import (
    IMAGE_SECTIONS,
    VIDEO_SECTIONS,
    AssetInfo,
    BatchUploadError,
    BatchUploadResponse,
    ImageListResponse,
    ImageResponse,
    ImageUpdate,
    MediaDeletedResponse,
    VideoResponse,
    VideoUpdate,
)
from interior_api.services.cloudinary_service import CloudinaryService

logger = logging.getLogger(__name__)

MB = 1024 * 1024

IMAGE_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"})
VIDEO_TYPES = frozenset({"video/mp4", "video/webm", "video/ogg", "video/mov", "video/avi"})
MAX_IMAGE_BYTES = 10 * MB
MAX_VIDEO_BYTES = 100 * MB
MAX_BATCH_FILES = 20

NOT_NULL_FIELDS = frozenset({"is_active", "sort_order"})


@dataclass(frozen=True)
class UploadedFile:
    """File content already read from the multipart body."""

    filename: str
    content_type: str
    content: bytes


def validate_section(media_type: str, section: str) -> None:
    valid = VIDEO_SECTIONS if media_type == "video" else IMAGE_SECTIONS
    if section not in valid:
        raise ValidationError(
            f"Invalid {media_type} section: {section}. Valid sections: {', '.join(valid)}",
            field="section",
        )


def validate_upload(media_type: str, upload: UploadedFile) -> None:
    allowed, limit = (
        (VIDEO_TYPES, MAX_VIDEO_BYTES) if media_type == "video" else (IMAGE_TYPES, MAX_IMAGE_BYTES)
    )
    if upload.content_type not in allowed:
        raise ValidationError(
            f"Invalid {media_type} type: {upload.content_type}. Allowed types: {', '.join(sorted(allowed))}",
            field=media_type,
        )
    if not upload.content:
        raise ValidationError(f"Uploaded {media_type} is empty", field=media_type)
    if len(upload.content) > limit:
        raise ValidationError(
            f"{media_type.capitalize()} too large. Maximum size is {limit // MB}MB",
            field=media_type,
            context={"max_bytes": limit},
        )


def _asset_info(row: MediaMetadata) -> AssetInfo:
    return AssetInfo(
        width=row.width,
        height=row.height,
        format=row.format,
        file_size=row.file_size,
        duration=row.duration,
        original_filename=row.original_filename,
    )


def _apply_changes(row: MediaMetadata, changes: VideoUpdate) -> None:
    """Copy the provided fields; an explicit null on a NOT NULL column is ignored."""
    for field, value in changes.model_dump(exclude_unset=True).items():
        if value is None and field in NOT_NULL_FIELDS:
            continue
        setattr(row, field, value)


def _metadata_from_upload(
    media_type: str, section: str, upload: UploadedFile, result: Dict[str, Any]
) -> MediaMetadata:
    return MediaMetadata(
        media_type=media_type,
        section=section,
        cloudinary_public_id=result["public_id"],
        cloudinary_url=result.get("url") or result["secure_url"],
        secure_url=result["secure_url"],
        original_filename=upload.filename,
        file_size=result.get("bytes", len(upload.content)),
        width=result.get("width"),
        height=result.get("height"),
        format=result.get("format"),
        duration=result.get("duration"),
    )


class MediaService:
    """Video and image management for the site sections."""

    # ══════════════════════════════════════════════════════════════════════
    # Response builders
    # ══════════════════════════════════════════════════════════════════════

    def video_response(self, media: CloudinaryService, row: MediaMetadata) -> VideoResponse:
        return VideoResponse(
            id=row.id,
            section=row.section,
            cloudinary_public_id=row.cloudinary_public_id,
            title=row.title,
            description=row.description,
            alt_text=row.alt_text,
            is_active=row.is_active,
            metadata=_asset_info(row),
            urls=media.video_urls(row.cloudinary_public_id, row.secure_url),
            access_count=row.access_count,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def image_response(self, media: CloudinaryService, row: MediaMetadata) -> ImageResponse:
        return ImageResponse(
            id=row.id,
            section=row.section,
            category=row.category,
            cloudinary_public_id=row.cloudinary_public_id,
            title=row.title,
            description=row.description,
            alt_text=row.alt_text,
            sort_order=row.sort_order,
            is_active=row.is_active,
            metadata=_asset_info(row),
            urls=media.responsive_image_urls(row.cloudinary_public_id),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    # ══════════════════════════════════════════════════════════════════════
    # Shared persistence helpers
    # ══════════════════════════════════════════════════════════════════════

    async def _persist_upload(
        self, db: AsyncSession, media: CloudinaryService, row: MediaMetadata, resource_type: str
    ) -> MediaMetadata:
        """Insert metadata; on failure remove the just-uploaded remote asset."""
        try:
            db.add(row)
            await db.flush()
            await db.refresh(row)
        except SQLAlchemyError:
            logger.error("Metadata insert failed for %s; removing remote asset", row.cloudinary_public_id)
            try:
                await media.delete(row.cloudinary_public_id, resource_type)
            except MediaServiceError as cleanup_error:
                logger.error("Orphaned Cloudinary asset %s: %s", row.cloudinary_public_id, cleanup_error.message)
            raise
        return row

    async def _get_image(self, db: AsyncSession, section: str, image_id: int) -> MediaMetadata:
        row = await db.get(MediaMetadata, image_id)
        if row is None or row.media_type != "image" or row.section != section:
            raise NotFoundError(resource="Image", resource_id=str(image_id))
        return row

    async def _active_video(self, db: AsyncSession, section: str) -> Optional[MediaMetadata]:
        result = await db.execute(
            select(MediaMetadata)
            .where(
                MediaMetadata.media_type == "video",
                MediaMetadata.section == section,
                MediaMetadata.is_active.is_(True),
            )
            .order_by(MediaMetadata.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ══════════════════════════════════════════════════════════════════════
    # Videos
    # ══════════════════════════════════════════════════════════════════════

    async def get_section_video(
        self, db: AsyncSession, media: CloudinaryService, section: str
    ) -> VideoResponse:
        """Active video for a section; counts the view."""
        validate_section("video", section)
        row = await self._active_video(db, section)
        if row is None:
            raise NotFoundError(resource="Video", resource_id=section)
        row.access_count = (row.access_count or 0) + 1
        row.last_accessed = datetime.now(timezone.utc)
        await db.flush()
        return self.video_response(media, row)

    async def upload_video(
        self,
        db: AsyncSession,
        media: CloudinaryService,
        section: str,
        upload: UploadedFile,
        title: Optional[str] = None,
        description: Optional[str] = None,
        alt_text: Optional[str] = None,
    ) -> VideoResponse:
        """
        Upload a section video, replacing the previous one.

        The old asset is removed only after the new one is stored; a failed
        remote delete of the old asset is logged, not raised.
        """
        validate_section("video", section)
        validate_upload("video", upload)
        previous = await self._active_video(db, section)

        result = await media.upload(
            upload.content,
            upload.filename,
            upload.content_type,
            folder=media.folder_for("video", section),
            resource_type="video",
        )
        row = _metadata_from_upload("video", section, upload, result)
        row.title = title
        row.description = description
        row.alt_text = alt_text
        row = await self._persist_upload(db, media, row, "video")

        if previous is not None:
            try:
                await media.delete(previous.cloudinary_public_id, "video")
            except MediaServiceError as e:
                logger.warning(
                    "Could not delete replaced video %s: %s", previous.cloudinary_public_id, e.message
                )
            await db.delete(previous)
            await db.flush()

        logger.info("Video for section '%s' is now %s", section, row.cloudinary_public_id)
        return self.video_response(media, row)

    async def update_video(
        self, db: AsyncSession, media: CloudinaryService, section: str, changes: VideoUpdate
    ) -> VideoResponse:
        validate_section("video", section)
        result = await db.execute(
            select(MediaMetadata)
            .where(MediaMetadata.media_type == "video", MediaMetadata.section == section)
            .order_by(MediaMetadata.created_at.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(resource="Video", resource_id=section)
        _apply_changes(row, changes)
        await db.flush()
        await db.refresh(row)
        return self.video_response(media, row)

    async def delete_video(
        self, db: AsyncSession, media: CloudinaryService, section: str
    ) -> MediaDeletedResponse:
        validate_section("video", section)
        row = await self._active_video(db, section)
        if row is None:
            raise NotFoundError(resource="Video", resource_id=section)
        outcome = await media.delete(row.cloudinary_public_id, "video")
        response = MediaDeletedResponse(
            message=f"Video for section '{section}' deleted",
            id=row.id,
            cloudinary_public_id=row.cloudinary_public_id,
            remote_deleted=outcome.get("result") == "ok",
        )
        await db.delete(row)
        await db.flush()
        return response

    # ══════════════════════════════════════════════════════════════════════
    # Images
    # ══════════════════════════════════════════════════════════════════════

    async def list_section_images(
        self,
        db: AsyncSession,
        media: CloudinaryService,
        section: str,
        limit: int = 50,
        offset: int = 0,
        category: Optional[str] = None,
        include_inactive: bool = False,
    ) -> ImageListResponse:
        validate_section("image", section)
        conditions = [MediaMetadata.media_type == "image", MediaMetadata.section == section]
        if not include_inactive:
            conditions.append(MediaMetadata.is_active.is_(True))
        if category:
            conditions.append(MediaMetadata.category == category)

        total = (
            await db.execute(select(func.count()).select_from(MediaMetadata).where(*conditions))
        ).scalar_one()
        rows = (
            await db.execute(
                select(MediaMetadata)
                .where(*conditions)
                .order_by(MediaMetadata.sort_order.asc(), MediaMetadata.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
        ).scalars().all()

        return ImageListResponse(
            section=section,
            images=[self.image_response(media, row) for row in rows],
            pagination=Pagination(
                total=total, limit=limit, offset=offset, has_more=offset + len(rows) < total
            ),
        )

    async def upload_image(
        self,
        db: AsyncSession,
        media: CloudinaryService,
        section: str,
        upload: UploadedFile,
        category: Optional[str] = None,
        alt_text: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        sort_order: int = 0,
    ) -> ImageResponse:
        validate_section("image", section)
        validate_upload("image", upload)
        result = await media.upload(
            upload.content,
            upload.filename,
            upload.content_type,
            folder=media.folder_for("image", section),
            resource_type="image",
        )
        row = _metadata_from_upload("image", section, upload, result)
        row.category = category
        row.alt_text = alt_text
        row.title = title
        row.description = description
        row.sort_order = sort_order
        row = await self._persist_upload(db, media, row, "image")
        return self.image_response(media, row)

    async def batch_upload_images(
        self,
        db: AsyncSession,
        media: CloudinaryService,
        section: str,
        uploads: Sequence[UploadedFile],
        category: Optional[str] = None,
    ) -> BatchUploadResponse:
        """
        Upload files one at a time. A bad file is reported in `errors` and the
        rest of the batch continues; sort_order follows the upload order.
        """
        validate_section("image", section)
        if not uploads:
            raise ValidationError("At least one image is required", field="images")
        if len(uploads) > MAX_BATCH_FILES:
            raise ValidationError(
                f"Too many files. Maximum {MAX_BATCH_FILES} images per batch", field="images"
            )

        uploaded: List[ImageResponse] = []
        errors: List[BatchUploadError] = []
        for position, upload in enumerate(uploads):
            try:
                uploaded.append(
                    await self.upload_image(
                        db, media, section, upload, category=category, sort_order=position
                    )
                )
            except (ValidationError, MediaServiceError) as e:
                logger.warning("Batch upload: %s failed: %s", upload.filename, e.message)
                errors.append(BatchUploadError(filename=upload.filename, error=e.message))

        return BatchUploadResponse(
            uploaded=uploaded,
            errors=errors,
            total=len(uploads),
            succeeded=len(uploaded),
            failed=len(errors),
        )

    async def update_image(
        self, db: AsyncSession, media: CloudinaryService, section: str, image_id: int, changes: ImageUpdate
    ) -> ImageResponse:
        validate_section("image", section)
        row = await self._get_image(db, section, image_id)
        _apply_changes(row, changes)
        await db.flush()
        await db.refresh(row)
        return self.image_response(media, row)

    async def reorder_images(
        self, db: AsyncSession, media: CloudinaryService, section: str, image_ids: Sequence[int]
    ) -> ImageListResponse:
        """Assign sort_order by position in image_ids. Every id must belong to the section."""
        validate_section("image", section)
        rows = (
            await db.execute(
                select(MediaMetadata).where(
                    MediaMetadata.id.in_(image_ids),
                    MediaMetadata.media_type == "image",
                    MediaMetadata.section == section,
                )
            )
        ).scalars().all()
        by_id = {row.id: row for row in rows}
        missing = [i for i in image_ids if i not in by_id]
        if missing:
            raise ValidationError(
                f"Images not found in section '{section}': {missing}",
                field="image_ids",
            )
        for position, image_id in enumerate(image_ids):
            by_id[image_id].sort_order = position
        await db.flush()
        return await self.list_section_images(
            db, media, section, limit=max(len(image_ids), 1), include_inactive=True
        )

    async def delete_image(
        self, db: AsyncSession, media: CloudinaryService, section: str, image_id: int
    ) -> MediaDeletedResponse:
        validate_section("image", section)
        row = await self._get_image(db, section, image_id)
        outcome = await media.delete(row.cloudinary_public_id, "image")
        response = MediaDeletedResponse(
            message="Image deleted",
            id=row.id,
            cloudinary_public_id=row.cloudinary_public_id,
            remote_deleted=outcome.get("result") == "ok",
        )
        await db.delete(row)
        await db.flush()
        return response


media_service = MediaService()
