"""Engagement API routes for faculty profiles.

These routes are the policy layer in front of the engagement tables: writes
are only accepted when the payload's ``actor_id`` matches the requester, and
comments can only be deleted by their author.
"""
from __future__ import annotations

from dataclasses import asdict
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings
from ..database import SessionLocal
from ..schemas import (
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
from ..services import (
    Actor,
    BodyTooLong,
    EmptyBody,
    EngagementError,
    EngagementStore,
    InvalidIdentityAssertion,
    InvalidReaction,
    NoDisplayName,
    NotAuthorized,
    NotFound,
    StatsAggregator,
    StoreUnavailable,
    decode_identity_assertion,
)

router = APIRouter(prefix="/api/social", tags=["social"])

_security = HTTPBearer(auto_error=False)

SubjectId = Annotated[str, Path(min_length=1, max_length=128)]

_STATUS_BY_ERROR: dict[type[EngagementError], int] = {
    NoDisplayName: status.HTTP_422_UNPROCESSABLE_CONTENT,
    EmptyBody: status.HTTP_422_UNPROCESSABLE_CONTENT,
    BodyTooLong: status.HTTP_422_UNPROCESSABLE_CONTENT,
    InvalidReaction: status.HTTP_422_UNPROCESSABLE_CONTENT,
    NotFound: status.HTTP_404_NOT_FOUND,
    NotAuthorized: status.HTTP_403_FORBIDDEN,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvalidIdentityAssertion: status.HTTP_401_UNAUTHORIZED,
}


def _http_error(exc: EngagementError) -> HTTPException:
    for error_type in type(exc).__mro__:
        code = _STATUS_BY_ERROR.get(error_type)  # type: ignore[arg-type]
        if code is not None:
            return HTTPException(status_code=code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


@lru_cache(maxsize=1)
def get_engagement_store() -> EngagementStore:
    return EngagementStore(SessionLocal)


def get_stats_aggregator(store: EngagementStore = Depends(get_engagement_store)) -> StatsAggregator:
    return StatsAggregator(store)


async def get_requester_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    x_actor_id: str | None = Header(default=None),
) -> str:
    """Resolve who is calling: a verified identity assertion, else the anonymous actor header."""

    if credentials and credentials.scheme.lower() == "bearer":
        try:
            return decode_identity_assertion(credentials.credentials).uid
        except InvalidIdentityAssertion as exc:
            raise _http_error(exc) from exc

    requester = (x_actor_id or "").strip()
    if not requester:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing actor identity")
    return requester


def _actor_for_write(payload: ActorPayload, requester_id: str) -> Actor:
    if payload.actor_id != requester_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Actor does not match the requester")
    display_name = payload.actor_display_name.strip()
    if not display_name:
        raise _http_error(NoDisplayName())
    email = (payload.actor_email or "").strip() or None
    return Actor(actor_id=payload.actor_id, display_name=display_name, email=email)


def _requester_actor(requester_id: str) -> Actor:
    return Actor(actor_id=requester_id, display_name="")


@router.post("/likes/{subject_id}", response_model=LikeActionResponse)
async def like_endpoint(
    subject_id: SubjectId,
    body: LikeRequest,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> LikeActionResponse:
    actor = _actor_for_write(body, requester_id)
    try:
        result = await store.like(subject_id, actor, body.reaction_kind)
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return LikeActionResponse(**asdict(result))


@router.delete("/likes/{subject_id}", response_model=LikeActionResponse)
async def unlike_endpoint(
    subject_id: SubjectId,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> LikeActionResponse:
    try:
        result = await store.unlike(subject_id, _requester_actor(requester_id))
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return LikeActionResponse(**asdict(result))


@router.get("/likes/{subject_id}", response_model=LikeListResponse)
async def list_likes_endpoint(
    subject_id: SubjectId,
    store: EngagementStore = Depends(get_engagement_store),
) -> LikeListResponse:
    try:
        summary = await store.list_likes(subject_id)
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return LikeListResponse(**asdict(summary))


@router.get("/likes/{subject_id}/status", response_model=StatusResponse)
async def like_status_endpoint(
    subject_id: SubjectId,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> StatusResponse:
    try:
        liked = await store.has_liked(subject_id, _requester_actor(requester_id))
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return StatusResponse(subject_id=subject_id, active=liked)


@router.post("/comments/{subject_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment_endpoint(
    subject_id: SubjectId,
    body: CommentCreate,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> CommentResponse:
    actor = _actor_for_write(body, requester_id)
    try:
        record = await store.add_comment(subject_id, actor, body.body)
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return CommentResponse(**asdict(record))


@router.get("/comments/{subject_id}", response_model=CommentListResponse)
async def list_comments_endpoint(
    subject_id: SubjectId,
    limit: int | None = Query(default=None, ge=1, le=200),
    store: EngagementStore = Depends(get_engagement_store),
) -> CommentListResponse:
    try:
        page = await store.list_comments(subject_id, limit=limit or get_settings().comment_page_limit)
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return CommentListResponse(**asdict(page))


@router.delete("/comment/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment_endpoint(
    comment_id: str = Path(..., min_length=1, max_length=36),
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> None:
    try:
        await store.delete_comment(comment_id, _requester_actor(requester_id))
    except EngagementError as exc:
        raise _http_error(exc) from exc


@router.post("/follows/{subject_id}", response_model=FollowActionResponse)
async def follow_endpoint(
    subject_id: SubjectId,
    body: FollowRequest,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> FollowActionResponse:
    actor = _actor_for_write(body, requester_id)
    try:
        result = await store.follow(subject_id, actor)
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return FollowActionResponse(**asdict(result))


@router.delete("/follows/{subject_id}", response_model=FollowActionResponse)
async def unfollow_endpoint(
    subject_id: SubjectId,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> FollowActionResponse:
    try:
        result = await store.unfollow(subject_id, _requester_actor(requester_id))
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return FollowActionResponse(**asdict(result))


@router.get("/follows/{subject_id}", response_model=FollowerListResponse)
async def list_followers_endpoint(
    subject_id: SubjectId,
    store: EngagementStore = Depends(get_engagement_store),
) -> FollowerListResponse:
    try:
        followers = await store.list_followers(subject_id)
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return FollowerListResponse(**asdict(followers))


@router.get("/follows/{subject_id}/status", response_model=StatusResponse)
async def follow_status_endpoint(
    subject_id: SubjectId,
    requester_id: str = Depends(get_requester_id),
    store: EngagementStore = Depends(get_engagement_store),
) -> StatusResponse:
    try:
        following = await store.is_following(subject_id, _requester_actor(requester_id))
    except EngagementError as exc:
        raise _http_error(exc) from exc
    return StatusResponse(subject_id=subject_id, active=following)


@router.get("/stats/{subject_id}", response_model=StatsResponse)
async def stats_endpoint(
    subject_id: SubjectId,
    aggregator: StatsAggregator = Depends(get_stats_aggregator),
) -> StatsResponse:
    stats = await aggregator.get_stats(subject_id)
    return StatsResponse(**asdict(stats))
