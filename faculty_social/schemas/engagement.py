"""Pydantic schemas for the engagement API."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_REACTION


class ActorPayload(BaseModel):
    """Identity fields every write carries; ``actor_id`` must match the requester."""

    actor_id: str = Field(..., min_length=1, max_length=128)
    actor_display_name: str = Field(..., min_length=1, max_length=150)
    actor_email: str | None = Field(default=None, max_length=255)


class LikeRequest(ActorPayload):
    reaction_kind: str = DEFAULT_REACTION


class FollowRequest(ActorPayload):
    pass


class CommentCreate(ActorPayload):
    # Length rules live in the service so the API reports the same errors as the library.
    body: str


class LikeActionResponse(BaseModel):
    subject_id: str
    like_count: int
    liked: bool


class FollowActionResponse(BaseModel):
    subject_id: str
    follower_count: int
    following: bool


class LikeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject_id: str
    actor_id: str
    actor_display_name: str
    reaction_kind: str
    created_at: datetime


class LikeListResponse(BaseModel):
    like_count: int
    reaction_counts: dict[str, int]
    likes: list[LikeResponse]


class FollowerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject_id: str
    actor_id: str
    actor_display_name: str
    actor_email: str | None = None
    created_at: datetime


class FollowerListResponse(BaseModel):
    follower_count: int
    followers: list[FollowerResponse]


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subject_id: str
    actor_id: str
    actor_display_name: str
    actor_email: str | None = None
    body: str
    created_at: datetime
    updated_at: datetime


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    total_count: int
    has_more: bool


class StatusResponse(BaseModel):
    subject_id: str
    active: bool


class StatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject_id: str
    like_count: int
    comment_count: int
    follower_count: int


__all__ = [
    "ActorPayload",
    "LikeRequest",
    "FollowRequest",
    "CommentCreate",
    "LikeActionResponse",
    "FollowActionResponse",
    "LikeResponse",
    "LikeListResponse",
    "FollowerResponse",
    "FollowerListResponse",
    "CommentResponse",
    "CommentListResponse",
    "StatusResponse",
    "StatsResponse",
]
