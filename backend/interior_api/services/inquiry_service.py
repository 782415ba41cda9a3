"""
Eleven Interior API - Inquiry Service (Business Logic)
=======================================================

What:  Contact-form inquiries: creation with triage, admin listing, the status
       workflow and dashboard stats.
Who:   Called by routes/inquiries.py.

Creation pipeline:
    1. Duplicate guard: same email within 24h and description Jaccard
       similarity > 0.8 → ValidationError(DUPLICATE_INQUIRY)
    2. Auto priority from keywords:
         urgent | asap | immediately | emergency | deadline  → 1 (Critical)
         commercial | office | hotel | restaurant | large    → 2 (High)
         otherwise                                           → 3 (Medium)
    3. Insert, then record an api_analytics row for the submission

Status transitions:
    pending     → in_progress, cancelled
    in_progress → completed, cancelled, pending
    completed   → in_progress
    cancelled   → pending
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, FrozenSet, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from interior_api.exceptions import NotFoundError, ValidationError
from interior_api.models.analytics import ApiCall
from interior_api.models.inquiry import Inquiry
from interior_api.schemas.common import Pagination
from interior_api.schemas.inquiry import (
    InquiryCreate,
    InquiryListResponse,
    InquiryResponse,
    InquiryStats,
    InquiryUpdate,
)

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"in_progress", "cancelled"}),
    "in_progress": frozenset({"completed", "cancelled", "pending"}),
    "completed": frozenset({"in_progress"}),
    "cancelled": frozenset({"pending"}),
}

URGENT_KEYWORDS = frozenset({"urgent", "asap", "immediately", "emergency", "deadline"})
IMPORTANT_KEYWORDS = frozenset({"commercial", "office", "hotel", "restaurant", "large"})

DUPLICATE_WINDOW = timedelta(hours=24)
DUPLICATE_THRESHOLD = 0.8

SORTABLE_COLUMNS = {
    "created_at": Inquiry.created_at,
    "updated_at": Inquiry.updated_at,
    "priority": Inquiry.priority,
    "status": Inquiry.status,
    "name": Inquiry.name,
}

_WORD_RE = re.compile(r"[a-z0-9']+")


def _words(text: str) -> set:
    return set(_WORD_RE.findall(text.lower()))


def determine_priority(description: str) -> int:
    words = _words(description)
    if words & URGENT_KEYWORDS:
        return 1
    if words & IMPORTANT_KEYWORDS:
        return 2
    return 3


def text_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the two word sets (0.0 - 1.0)."""
    words_a, words_b = _words(a), _words(b)
    union = words_a | words_b
    if not union:
        return 1.0
    return len(words_a & words_b) / len(union)


def can_transition(current: str, new: str) -> bool:
    return current == new or new in STATUS_TRANSITIONS.get(current, frozenset())


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class InquiryService:
    async def create_inquiry(
        self,
        db: AsyncSession,
        data: InquiryCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> InquiryResponse:
        since = datetime.now(timezone.utc) - DUPLICATE_WINDOW
        recent = (
            await db.execute(
                select(Inquiry.project_description).where(
                    Inquiry.email == data.email, Inquiry.created_at > since
                )
            )
        ).scalars().all()
        for previous in recent:
            if text_similarity(previous, data.project_description) > DUPLICATE_THRESHOLD:
                logger.info("Duplicate inquiry rejected for %s", data.email)
                raise ValidationError(
                    "A similar inquiry was submitted recently. We will be in touch soon.",
                    field="project_description",
                    code="DUPLICATE_INQUIRY",
                )

        inquiry = Inquiry(
            **data.model_dump(),
            status="pending",
            priority=determine_priority(data.project_description),
        )
        db.add(inquiry)
        await db.flush()
        await db.refresh(inquiry)

        db.add(
            ApiCall(
                endpoint="/api/inquiries",
                method="POST",
                status_code=201,
                ip_address=ip_address,
                user_agent=(user_agent or "")[:512] or None,
            )
        )
        await db.flush()

        logger.info("Inquiry %d created (priority %d)", inquiry.id, inquiry.priority)
        return InquiryResponse.model_validate(inquiry)

    async def _get(self, db: AsyncSession, inquiry_id: int) -> Inquiry:
        inquiry = await db.get(Inquiry, inquiry_id)
        if inquiry is None:
            raise NotFoundError(resource="Inquiry", resource_id=str(inquiry_id))
        return inquiry

    async def get_inquiry(self, db: AsyncSession, inquiry_id: int) -> InquiryResponse:
        return InquiryResponse.model_validate(await self._get(db, inquiry_id))

    async def list_inquiries(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        priority: Optional[int] = None,
        assigned_to: Optional[str] = None,
        email: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> InquiryListResponse:
        if sort_by not in SORTABLE_COLUMNS:
            raise ValidationError(
                f"Invalid sort_by '{sort_by}'. Must be one of: {', '.join(SORTABLE_COLUMNS)}",
                field="sort_by",
            )
        conditions = []
        if status:
            conditions.append(Inquiry.status == status)
        if priority is not None:
            conditions.append(Inquiry.priority == priority)
        if assigned_to:
            conditions.append(Inquiry.assigned_to == assigned_to)
        if email:
            conditions.append(Inquiry.email == email.lower())
        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            conditions.append(
                or_(
                    Inquiry.name.ilike(pattern, escape="\\"),
                    Inquiry.email.ilike(pattern, escape="\\"),
                    Inquiry.location.ilike(pattern, escape="\\"),
                    Inquiry.project_description.ilike(pattern, escape="\\"),
                )
            )

        column = SORTABLE_COLUMNS[sort_by]
        ordering = column.asc() if sort_order == "asc" else column.desc()

        total = (
            await db.execute(select(func.count()).select_from(Inquiry).where(*conditions))
        ).scalar_one()
        rows = (
            await db.execute(
                select(Inquiry)
                .where(*conditions)
                .order_by(ordering, Inquiry.id.desc())
                .limit(limit)
                .offset(offset)
            )
        ).scalars().all()

        return InquiryListResponse(
            inquiries=[InquiryResponse.model_validate(row) for row in rows],
            pagination=Pagination(
                total=total, limit=limit, offset=offset, has_more=offset + len(rows) < total
            ),
        )

    async def update_inquiry(
        self, db: AsyncSession, inquiry_id: int, changes: InquiryUpdate
    ) -> InquiryResponse:
        inquiry = await self._get(db, inquiry_id)
        updates = changes.model_dump(exclude_unset=True)
        # status and priority are NOT NULL; an explicit null means "leave as is"
        for required in ("status", "priority"):
            if updates.get(required, "") is None:
                del updates[required]
        if not updates:
            raise ValidationError("No fields to update")

        new_status = updates.get("status")
        if new_status is not None and not can_transition(inquiry.status, new_status):
            allowed = sorted(STATUS_TRANSITIONS.get(inquiry.status, ()))
            raise ValidationError(
                f"Cannot change status from '{inquiry.status}' to '{new_status}'",
                field="status",
                code="INVALID_STATUS_TRANSITION",
                context={"allowed": allowed},
            )

        for field, value in updates.items():
            setattr(inquiry, field, value)
        await db.flush()
        await db.refresh(inquiry)
        logger.info("Inquiry %d updated: %s", inquiry_id, ", ".join(sorted(updates)))
        return InquiryResponse.model_validate(inquiry)

    async def delete_inquiry(self, db: AsyncSession, inquiry_id: int) -> None:
        inquiry = await self._get(db, inquiry_id)
        await db.delete(inquiry)
        await db.flush()

    async def get_stats(self, db: AsyncSession) -> InquiryStats:
        counts = dict(
            (await db.execute(select(Inquiry.status, func.count()).group_by(Inquiry.status))).all()
        )
        by_status = {status: counts.get(status, 0) for status in STATUS_TRANSITIONS}
        urgent = (
            await db.execute(
                select(func.count())
                .select_from(Inquiry)
                .where(Inquiry.status == "pending", Inquiry.priority <= 2)
            )
        ).scalar_one()
        week_ago = datetime.now(timezone.utc) - timedelta(days=7)
        recent = (
            await db.execute(
                select(func.count()).select_from(Inquiry).where(Inquiry.created_at >= week_ago)
            )
        ).scalar_one()
        return InquiryStats(
            total=sum(counts.values()),
            by_status=by_status,
            urgent=urgent,
            last_7_days=recent,
        )


inquiry_service = InquiryService()
