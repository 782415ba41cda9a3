"""
Eleven Interior API - Image Routes
===================================

Public:
    GET    /api/images/{section}                      paginated, responsive URLs
Admin (behind AdminAuthMiddleware):
    POST   /api/admin/images/upload                   single image
    POST   /api/admin/images/batch-upload             up to 20 images
    PUT    /api/admin/images/{section}/reorder        sort_order by position
    PUT    /api/admin/images/{section}/{image_id}     edit metadata
    DELETE /api/admin/images/{section}/{image_id}     remove remotely and locally
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from interior_api.database import get_db_session
from interior_api.routes.uploads import read_upload
from interior_api.schemas.common import ErrorResponse
from interior_api.schemas.media import (
    BatchUploadResponse,
    ImageListResponse,
    ImageReorderRequest,
    ImageResponse,
    ImageUpdate,
    MediaDeletedResponse,
)
from interior_api.services.cloudinary_service import CloudinaryService, get_media_service
from interior_api.services.media_service import MAX_IMAGE_BYTES, media_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])
admin_router = APIRouter(prefix="/admin/images", tags=["Admin: Images"])


@router.get(
    "/images/{section}",
    response_model=ImageListResponse,
    responses={400: {"description": "Unknown section", "model": ErrorResponse}},
    summary="List images of a site section",
)
async def list_section_images(
    section: str,
    response: Response,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    category: Optional[str] = Query(default=None, max_length=100),
    include_inactive: bool = Query(default=False),
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> ImageListResponse:
    result = await media_service.list_section_images(
        db,
        media,
        section,
        limit=limit,
        offset=offset,
        category=category,
        include_inactive=include_inactive,
    )
    response.headers["X-Total-Count"] = str(result.pagination.total)
    response.headers["Cache-Control"] = "public, max-age=300"
    return result


@admin_router.post("/upload", response_model=ImageResponse, status_code=201, summary="Upload an image")
async def upload_image(
    image: UploadFile = File(..., description="jpeg, png, webp or gif; max 10MB"),
    section: str = Form(...),
    category: Optional[str] = Form(default=None, max_length=100),
    alt_text: Optional[str] = Form(default=None, max_length=200),
    title: Optional[str] = Form(default=None, max_length=200),
    description: Optional[str] = Form(default=None, max_length=1000),
    sort_order: int = Form(default=0, ge=0, le=10_000),
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> ImageResponse:
    upload = await read_upload(image, MAX_IMAGE_BYTES)
    return await media_service.upload_image(
        db,
        media,
        section,
        upload,
        category=category,
        alt_text=alt_text,
        title=title,
        description=description,
        sort_order=sort_order,
    )


@admin_router.post(
    "/batch-upload",
    response_model=BatchUploadResponse,
    status_code=201,
    summary="Upload several images to one section",
)
async def batch_upload_images(
    images: List[UploadFile] = File(...),
    section: str = Form(...),
    category: Optional[str] = Form(default=None, max_length=100),
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> BatchUploadResponse:
    uploads = [await read_upload(image, MAX_IMAGE_BYTES) for image in images]
    return await media_service.batch_upload_images(db, media, section, uploads, category=category)


@admin_router.put("/{section}/reorder", response_model=ImageListResponse, summary="Reorder section images")
async def reorder_images(
    section: str,
    body: ImageReorderRequest,
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> ImageListResponse:
    return await media_service.reorder_images(db, media, section, body.image_ids)


@admin_router.put("/{section}/{image_id}", response_model=ImageResponse, summary="Update image metadata")
async def update_image(
    section: str,
    image_id: int,
    changes: ImageUpdate,
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> ImageResponse:
    return await media_service.update_image(db, media, section, image_id, changes)


@admin_router.delete("/{section}/{image_id}", response_model=MediaDeletedResponse, summary="Delete an image")
async def delete_image(
    section: str,
    image_id: int,
    db: AsyncSession = Depends(get_db_session),
    media: CloudinaryService = Depends(get_media_service),
) -> MediaDeletedResponse:
    return await media_service.delete_image(db, media, section, image_id)
