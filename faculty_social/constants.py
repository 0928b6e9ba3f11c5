"""Project-wide constant values."""
from __future__ import annotations

from typing import Final

MAX_COMMENT_LENGTH: Final[int] = 2000

DEFAULT_REACTION: Final[str] = "like"

REACTION_KINDS: Final[frozenset[str]] = frozenset({"like", "love", "insightful", "celebrate"})

# Keys of the client-local identity store
IDENTITY_ID_KEY: Final[str] = "social_user_id"
IDENTITY_NAME_KEY: Final[str] = "social_user_name"
IDENTITY_EMAIL_KEY: Final[str] = "social_user_email"
ANONYMOUS_ID_KEY: Final[str] = "social_anonymous_user_id"
ANONYMOUS_NAME_KEY: Final[str] = "social_anonymous_user_name"

__all__ = [
    "MAX_COMMENT_LENGTH",
    "DEFAULT_REACTION",
    "REACTION_KINDS",
    "IDENTITY_ID_KEY",
    "IDENTITY_NAME_KEY",
    "IDENTITY_EMAIL_KEY",
    "ANONYMOUS_ID_KEY",
    "ANONYMOUS_NAME_KEY",
]
