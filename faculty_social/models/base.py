"""Utility mixins shared across ORM models."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func


class EngagementKeyMixin:
    """Composite (subject, actor) key used by likes and follows."""

    subject_id = Column(String(128), primary_key=True)
    actor_id = Column(String(128), primary_key=True, index=True)
    actor_display_name = Column(String(150), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


__all__ = ["EngagementKeyMixin"]
