"""
Eleven Interior API - Inquiry Schemas
======================================

What:  Request validation and response shaping for customer inquiries.
How:   Input strings are whitespace-trimmed before length checks; responses add
       computed fields (priority label, urgency, age) for the admin dashboard.
"""

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

from interior_api.schemas.common import Pagination, as_utc

InquiryStatus = Literal["pending", "in_progress", "completed", "cancelled"]

PRIORITY_LABELS: Dict[int, str] = {
    1: "Critical",
    2: "High",
    3: "Medium",
    4: "Low",
    5: "Backlog",
}


def humanize_age(moment: datetime, now: Optional[datetime] = None) -> str:
    """'just now', '5 minutes ago', '3 hours ago', '2 days ago'."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - as_utc(moment)).total_seconds())
    if seconds < 60:
        return "just now"
    for unit, size in (("day", 86_400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class InquiryCreate(BaseModel):
    """Public contact form submission (POST /api/inquiries)."""

    model_config = {"str_strip_whitespace": True}

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(min_length=10, max_length=20, pattern=r"^[\d\s\-\+\(\)]+$")
    location: str = Field(min_length=2, max_length=200)
    project_description: str = Field(min_length=10, max_length=2000)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class InquiryUpdate(BaseModel):
    """Admin edit (PUT /api/admin/inquiries/{id}). Only provided fields change."""

    model_config = {"str_strip_whitespace": True}

    status: Optional[InquiryStatus] = None
    priority: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = Field(default=None, max_length=1000)
    assigned_to: Optional[str] = Field(default=None, max_length=100)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class InquiryResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    email: str
    phone: str
    location: str
    project_description: str
    status: str
    priority: int
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @computed_field
    @property
    def priority_label(self) -> str:
        return PRIORITY_LABELS.get(self.priority, "Unknown")

    @computed_field
    @property
    def is_urgent(self) -> bool:
        return self.priority <= 2 and self.status == "pending"

    @computed_field
    @property
    def days_since_created(self) -> int:
        return (datetime.now(timezone.utc) - self.created_at).days

    @computed_field
    @property
    def created_ago(self) -> str:
        return humanize_age(self.created_at)


class InquiryCreatedResponse(BaseModel):
    message: str = "Thank you for your inquiry! We will get back to you within 24 hours."
    inquiry: InquiryResponse


class InquiryListResponse(BaseModel):
    inquiries: List[InquiryResponse]
    pagination: Pagination


class InquiryStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    urgent: int = Field(description="Pending inquiries with priority 1 or 2")
    last_7_days: int
