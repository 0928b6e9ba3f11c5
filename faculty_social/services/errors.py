"""Error taxonomy shared by the engagement services.

Each condition carries a default, user-presentable message so callers can
surface a distinguishable explanation without inspecting the exception type.
"""
from __future__ import annotations

__all__ = [
    "EngagementError",
    "NoDisplayName",
    "CommentValidationError",
    "EmptyBody",
    "BodyTooLong",
    "InvalidReaction",
    "NotFound",
    "NotAuthorized",
    "StoreUnavailable",
    "InvalidIdentityAssertion",
]


class EngagementError(Exception):
    """Base class for every engagement failure."""

    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NoDisplayName(EngagementError):
    """Raised when identity resolution cannot obtain a display name."""

    default_message = "Please enter your name to continue."


class CommentValidationError(EngagementError):
    """Raised before any store call when a comment body is unacceptable."""


class EmptyBody(CommentValidationError):
    default_message = "Comment cannot be empty."


class BodyTooLong(CommentValidationError):
    default_message = "Comment is too long. Maximum 2000 characters allowed."


class InvalidReaction(EngagementError):
    default_message = "Unsupported reaction."


class NotFound(EngagementError):
    default_message = "Comment not found. Refresh to see the latest comments."


class NotAuthorized(EngagementError):
    default_message = "Not authorized to delete this comment."


class StoreUnavailable(EngagementError):
    """Raised when the document store cannot be reached or rejects a call."""

    default_message = "Unable to reach the server. Please try again."


class InvalidIdentityAssertion(EngagementError):
    default_message = "Your sign-in could not be verified. Please sign in again."
