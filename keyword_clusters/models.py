"""SQLAlchemy ORM models for keyword batches."""
from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class TimestampMixin:
    """Mixin providing created/updated timestamps."""

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False
    )


class Batch(TimestampMixin, Base):
    """One submission of keywords by a user."""

    __tablename__ = "batches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    channel_id: Mapped[Optional[str]] = mapped_column(String(64))

    keywords: Mapped[list[KeywordRecord]] = relationship(
        "KeywordRecord",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="KeywordRecord.id",
    )


class KeywordRecord(TimestampMixin, Base):
    __tablename__ = "keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    batch_id: Mapped[str] = mapped_column(
        ForeignKey("batches.id", ondelete="CASCADE"), index=True, nullable=False
    )
    cleaned: Mapped[str] = mapped_column(String(512), nullable=False)
    embedding: Mapped[Optional[list]] = mapped_column(JSON)

    batch: Mapped[Batch] = relationship("Batch", back_populates="keywords")
