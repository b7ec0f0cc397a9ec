"""Persistence helpers for keyword batches and their embeddings."""
from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Batch, KeywordRecord

logger = logging.getLogger(__name__)


def create_batch(session: Session, user_id: str, channel_id: str | None) -> str:
    batch = Batch(user_id=user_id or "unknown", channel_id=channel_id)
    session.add(batch)
    session.flush()
    logger.info("Created batch %s for user %s", batch.id, batch.user_id)
    return batch.id


def insert_keywords(
    session: Session,
    batch_id: str,
    keywords: Sequence[str],
    vectors: Sequence[Sequence[float]] | None = None,
) -> int:
    """Store cleaned keywords, with their embeddings when available."""

    if not keywords:
        return 0
    if vectors is not None and len(vectors) != len(keywords):
        raise ValueError(f"Expected {len(keywords)} embeddings, received {len(vectors)}")

    for index, keyword in enumerate(keywords):
        embedding = list(vectors[index]) if vectors is not None else None
        session.add(KeywordRecord(batch_id=batch_id, cleaned=keyword, embedding=embedding))
    session.flush()
    logger.info("Stored %d keywords for batch %s", len(keywords), batch_id)
    return len(keywords)


def list_recent_batches(session: Session, user_id: str, limit: int = 10) -> list[Batch]:
    statement = (
        select(Batch)
        .where(Batch.user_id == user_id)
        .order_by(Batch.created_at.desc(), Batch.id)
        .limit(limit)
    )
    return list(session.execute(statement).scalars())


def count_keywords(session: Session, batch_id: str) -> int:
    statement = select(func.count(KeywordRecord.id)).where(KeywordRecord.batch_id == batch_id)
    return session.execute(statement).scalar_one()


def fetch_keywords_preview(session: Session, batch_id: str, limit: int = 4) -> list[str]:
    statement = (
        select(KeywordRecord.cleaned)
        .where(KeywordRecord.batch_id == batch_id)
        .order_by(KeywordRecord.id)
        .limit(limit)
    )
    return list(session.execute(statement).scalars())


def fetch_embeddings(session: Session, batch_id: str) -> list[tuple[str, list[float] | None]]:
    """Return stored ``(keyword, embedding)`` pairs in insertion order."""

    statement = (
        select(KeywordRecord.cleaned, KeywordRecord.embedding)
        .where(KeywordRecord.batch_id == batch_id)
        .order_by(KeywordRecord.id)
    )
    return [(keyword, embedding) for keyword, embedding in session.execute(statement)]
