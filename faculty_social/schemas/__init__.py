"""Convenience exports for schema layer."""
from .engagement import (
    ActorPayload,
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    FollowActionResponse,
    FollowerListResponse,
    FollowRequest,
    LikeActionResponse,
    LikeListResponse,
    LikeRequest,
    StatsResponse,
    StatusResponse,
)

__all__ = [
    "ActorPayload",
    "LikeRequest",
    "FollowRequest",
    "CommentCreate",
    "LikeActionResponse",
    "FollowActionResponse",
    "LikeListResponse",
    "FollowerListResponse",
    "CommentResponse",
    "CommentListResponse",
    "StatusResponse",
    "StatsResponse",
]
