"""
Eleven Interior API - Video Routes
===================================

Public:
    GET    /api/videos/{section}            active video for hero | feature
Admin (behind AdminAuthMiddleware):
    POST   /api/admin/videos/upload         replace a section's video
    PUT    /api/admin/videos/{section}      edit title / description / alt text / active flag
    DELETE /api/admin/videos/{section}      remove remotely and locally

Public responses are cacheable for 5 minutes; the CDN URLs inside are stable.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from interior_api.database import get_db_session
from interior_api.routes.uploads import read_upload
from interior_api.schemas.common import ErrorResponse
from interior_api.schemas.media import MediaDeletedResponse, VideoResponse, VideoUpdate
from interior_api.services.cloudinary_service import CloudinaryService, get_media_service
from interior_api.services.media_service import MAX_VIDEO_BYTES, media_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Videos"])
admin_router = APIRouter(prefix="/admin/videos", tags=["Admin: Videos"])


@router.get(
    "/videos/{section}",
    response_model=VideoResponse,
    responses={
        400: {"description": "Unknown section", "model": ErrorResponse},
        404: {"description": "No active video for the section", "model": ErrorResponse},
    },
    summary="Get the active video for a site section",
)
async def get_section_video(
    section: str,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> VideoResponse:
    video = await media_service.get_section_video(db, media, section)
    response.headers["Cache-Control"] = "public, max-age=300"
    return video


@admin_router.post(
    "/upload",
    response_model=VideoResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Upload (and replace) the video of a section",
)
async def upload_video(
    video: UploadFile = File(..., description="mp4, webm, ogg, mov or avi; max 100MB"),
    section: str = Form(...),
    title: Optional[str] = Form(default=None, max_length=200),
    description: Optional[str] = Form(default=None, max_length=1000),
    alt_text: Optional[str] = Form(default=None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> VideoResponse:
    upload = await read_upload(video, MAX_VIDEO_BYTES)
    return await media_service.upload_video(
        db, media, section, upload, title=title, description=description, alt_text=alt_text
    )


@admin_router.put("/{section}", response_model=VideoResponse, summary="Update video metadata")
async def update_video(
    section: str,
    changes: VideoUpdate,
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> VideoResponse:
    return await media_service.update_video(db, media, section, changes)


@admin_router.delete("/{section}", response_model=MediaDeletedResponse, summary="Delete a section video")
async def delete_video(
    section: str,
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> MediaDeletedResponse:
    return await media_service.delete_video(db, media, section)
