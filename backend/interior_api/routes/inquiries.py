"""
Eleven Interior API - Inquiry Routes
=====================================

Public:
    POST   /api/inquiries                    contact form submission
Admin (behind AdminAuthMiddleware):
    GET    /api/admin/inquiries              filter / search / sort / paginate
    GET    /api/admin/inquiries/stats        dashboard counters
    GET    /api/admin/inquiries/{id}
    PUT    /api/admin/inquiries/{id}         status workflow, priority, notes, assignee
    DELETE /api/admin/inquiries/{id}
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from interior_api.database import get_db_session
from interior_api.dependencies import get_client_ip
from interior_api.schemas.common import ErrorResponse, MessageResponse
from interior_api.schemas.inquiry import (
    InquiryCreate,
    InquiryCreatedResponse,
    InquiryListResponse,
    InquiryResponse,
    InquiryStats,
    InquiryStatus,
    InquiryUpdate,
)
from interior_api.services.inquiry_service import inquiry_service

router = APIRouter(tags=["Inquiries"])
admin_router = APIRouter(prefix="/admin/inquiries", tags=["Admin: Inquiries"])


@router.post(
    "/inquiries",
    response_model=InquiryCreatedResponse,
    status_code=201,
    responses={400: {"description": "Duplicate inquiry", "model": ErrorResponse}},
    summary="Submit a project inquiry",
)
async def create_inquiry(
    data: InquiryCreate,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> InquiryCreatedResponse:
    inquiry = await inquiry_service.create_inquiry(
        db,
        data,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return InquiryCreatedResponse(inquiry=inquiry)


@admin_router.get("", response_model=InquiryListResponse, summary="List inquiries")
async def list_inquiries(
    response: Response,
    status: Optional[InquiryStatus] = Query(default=None),
    priority: Optional[int] = Query(default=None, ge=1, le=5),
    assigned_to: Optional[str] = Query(default=None, max_length=100),
    email: Optional[str] = Query(default=None, max_length=254),
    search: Optional[str] = Query(default=None, min_length=1, max_length=200),
    sort_by: Literal["created_at", "updated_at", "priority", "status", "name"] = Query(default="created_at"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> InquiryListResponse:
    result = await inquiry_service.list_inquiries(
        db,
        status=status,
        priority=priority,
        assigned_to=assigned_to,
        email=email,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset,
    )
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@admin_router.get("/stats", response_model=InquiryStats, summary="Inquiry counters")
async def inquiry_stats(db: AsyncSession = Depends(get_db_session)) -> InquiryStats:
    return await inquiry_service.get_stats(db)


@admin_router.get(
    "/{inquiry_id}",
    response_model=InquiryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get one inquiry",
)
async def get_inquiry(inquiry_id: int, db: AsyncSession = Depends(get_db_session)) -> InquiryResponse:
    return await inquiry_service.get_inquiry(db, inquiry_id)


@admin_router.put(
    "/{inquiry_id}",
    response_model=InquiryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update an inquiry",
)
async def update_inquiry(
    inquiry_id: int,
    changes: InquiryUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> InquiryResponse:
    return await inquiry_service.update_inquiry(db, inquiry_id, changes)


@admin_router.delete("/{inquiry_id}", response_model=MessageResponse, summary="Delete an inquiry")
async def delete_inquiry(inquiry_id: int, db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await inquiry_service.delete_inquiry(db, inquiry_id)
    return MessageResponse(message=f"Inquiry {inquiry_id} deleted")
