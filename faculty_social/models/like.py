"""SQLAlchemy ORM model for profile likes."""
from __future__ import annotations

from sqlalchemy import Column, String

from faculty_social.constants import DEFAULT_REACTION
from faculty_social.database import Base
from .base import EngagementKeyMixin


class Like(EngagementKeyMixin, Base):
    __tablename__ = "likes"

    reaction_kind = Column(String(32), nullable=False, default=DEFAULT_REACTION, server_default=DEFAULT_REACTION)


__all__ = ["Like"]
