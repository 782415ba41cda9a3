"""
Eleven Interior API - Inquiry Model
====================================

What:  ORM model for the `inquiries` table (contact-form submissions).
Who:   InquiryService (create, list, status workflow) and Alembic.

Status workflow (enforced in InquiryService, not by the database):
    pending ──▶ in_progress ──▶ completed
       │  ▲         │  ▲             │
       ▼  │         ▼  └─────────────┘
    cancelled ◀─────┘

Query Patterns:
    - Admin list: WHERE status = ? ORDER BY created_at DESC → idx_inquiries_status_created
    - Duplicate guard: WHERE email = ? AND created_at > now - 24h → idx_inquiries_email
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from interior_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Inquiry(Base):
    __tablename__ = "inquiries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ── Contact Details ───────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    project_description: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Workflow ──────────────────────────────────────────────────────────
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
        comment="pending, in_progress, completed, cancelled",
    )
    # 1 = Critical ... 5 = Backlog
    priority: Mapped[int] = mapped_column(
        Integer, nullable=False, default=3, server_default=text("3")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_inquiries_status_created", "status", "created_at"),
        Index("idx_inquiries_email", "email"),
        Index("idx_inquiries_priority", "priority"),
    )

    def __repr__(self) -> str:
        return f"<Inquiry(id={self.id}, email='{self.email}', status='{self.status}')>"
