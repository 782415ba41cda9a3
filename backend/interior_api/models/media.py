"""
Eleven Interior API - Media Metadata Model
===========================================

What:  Local record of every asset uploaded to Cloudinary.
Why:   Section listings, ordering, alt text and activation flags are served from
       the database; Cloudinary is only hit for uploads and deletions.

One table holds both media types:
    media_type='video' → sections hero, feature (one active video per section)
    media_type='image' → sections contact, entrance, gallery, logo, about, swordman
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text, text, true
from sqlalchemy.orm import Mapped, mapped_column

from interior_api.database import Base
from interior_api.models.inquiry import utcnow


class MediaMetadata(Base):
    __tablename__ = "media_metadata"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    media_type: Mapped[str] = mapped_column(String(10), nullable=False)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ── Cloudinary Asset ──────────────────────────────────────────────────
    cloudinary_public_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    cloudinary_url: Mapped[str] = mapped_column(Text, nullable=False)
    secure_url: Mapped[str] = mapped_column(Text, nullable=False)
    original_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    format: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    duration: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # ── Presentation ──────────────────────────────────────────────────────
    alt_text: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )

    # ── Usage ─────────────────────────────────────────────────────────────
    access_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    last_accessed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_media_type_section", "media_type", "section", "is_active"),
        Index("idx_media_section_order", "section", "sort_order"),
    )

    def __repr__(self) -> str:
        return (
            f"<MediaMetadata(id={self.id}, type='{self.media_type}', "
            f"section='{self.section}', public_id='{self.cloudinary_public_id}')>"
        )
