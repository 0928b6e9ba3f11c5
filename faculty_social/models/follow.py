"""SQLAlchemy ORM model for profile followers."""
from __future__ import annotations

from sqlalchemy import Column, String

from faculty_social.database import Base
from .base import EngagementKeyMixin


class Follow(EngagementKeyMixin, Base):
    __tablename__ = "follows"

    actor_email = Column(String(255), nullable=True)


__all__ = ["Follow"]
