"""Convenience exports for service layer."""
from .engagement_service import (
    CommentPage,
    CommentRecord,
    EngagementStore,
    FollowerList,
    FollowResult,
    LikeResult,
    LikeSummary,
    validate_comment_body,
)
from .errors import (
    BodyTooLong,
    EmptyBody,
    EngagementError,
    InvalidIdentityAssertion,
    InvalidReaction,
    NoDisplayName,
    NotAuthorized,
    NotFound,
    StoreUnavailable,
)
from .identity_service import (
    Actor,
    AuthSession,
    IdentityContext,
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    create_identity_assertion,
    decode_identity_assertion,
    default_identity_context,
)
from .interaction_service import InteractionController, NotificationKind, PanelState
from .share_service import ShareTarget, profile_url, share_links
from .stats_service import EngagementStats, StatsAggregator

__all__ = [
    "Actor",
    "AuthSession",
    "IdentityContext",
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "create_identity_assertion",
    "decode_identity_assertion",
    "default_identity_context",
    "EngagementStore",
    "LikeResult",
    "FollowResult",
    "CommentRecord",
    "CommentPage",
    "LikeSummary",
    "FollowerList",
    "validate_comment_body",
    "EngagementStats",
    "StatsAggregator",
    "InteractionController",
    "NotificationKind",
    "PanelState",
    "ShareTarget",
    "profile_url",
    "share_links",
    "EngagementError",
    "NoDisplayName",
    "EmptyBody",
    "BodyTooLong",
    "InvalidReaction",
    "NotFound",
    "NotAuthorized",
    "StoreUnavailable",
    "InvalidIdentityAssertion",
]
