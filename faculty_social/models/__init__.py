"""Convenience exports for ORM models."""
from .comment import Comment
from .follow import Follow
from .like import Like

__all__ = ["Comment", "Follow", "Like"]
