"""SQLAlchemy ORM model for profile comments."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlalchemy.sql import func

from faculty_social.database import Base


def _new_comment_id() -> str:
    return str(uuid.uuid4())


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=_new_comment_id)
    subject_id = Column(String(128), nullable=False, index=True)
    actor_id = Column(String(128), nullable=False, index=True)
    actor_display_name = Column(String(150), nullable=False)
    actor_email = Column(String(255), nullable=True)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (Index("ix_comments_subject_created", "subject_id", "created_at"),)


__all__ = ["Comment"]
