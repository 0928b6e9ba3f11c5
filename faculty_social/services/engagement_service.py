"""Business logic for likes, comments and follows on faculty profiles.

:class:`EngagementStore` is the only write path to the engagement tables.
Every public method is a coroutine: the blocking SQLAlchemy work runs on a
worker thread with a session of its own, so concurrent calls never share a
session. Every mutation is followed by a fresh count query rather than a
client-maintained counter.
"""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import DEFAULT_REACTION, MAX_COMMENT_LENGTH, REACTION_KINDS
from ..models import Comment, Follow, Like
from .errors import (
    BodyTooLong,
    EmptyBody,
    EngagementError,
    InvalidReaction,
    NotAuthorized,
    NotFound,
    StoreUnavailable,
)
from .identity_service import Actor

logger = logging.getLogger(__name__)

T = TypeVar("T")
SessionFactory = Callable[[], Session]


@dataclass(frozen=True, slots=True)
class LikeResult:
    subject_id: str
    like_count: int
    liked: bool


@dataclass(frozen=True, slots=True)
class FollowResult:
    subject_id: str
    follower_count: int
    following: bool


@dataclass(frozen=True, slots=True)
class CommentRecord:
    id: str
    subject_id: str
    actor_id: str
    actor_display_name: str
    body: str
    created_at: datetime
    updated_at: datetime
    actor_email: str | None = None


@dataclass(frozen=True, slots=True)
class CommentPage:
    comments: list[CommentRecord]
    total_count: int
    has_more: bool


@dataclass(frozen=True, slots=True)
class LikeRecord:
    subject_id: str
    actor_id: str
    actor_display_name: str
    reaction_kind: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class LikeSummary:
    like_count: int
    reaction_counts: dict[str, int] = field(default_factory=dict)
    likes: list[LikeRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class FollowerRecord:
    subject_id: str
    actor_id: str
    actor_display_name: str
    created_at: datetime
    actor_email: str | None = None


@dataclass(frozen=True, slots=True)
class FollowerList:
    follower_count: int
    followers: list[FollowerRecord] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_comment_body(body: str | None) -> str:
    """Return the trimmed body or raise :class:`EmptyBody` / :class:`BodyTooLong`.

    The length limit applies to the body as submitted, surrounding whitespace included.
    """

    raw = body or ""
    text = raw.strip()
    if not text:
        raise EmptyBody()
    if len(raw) > MAX_COMMENT_LENGTH:
        raise BodyTooLong()
    return text


def validate_reaction(reaction_kind: str | None) -> str:
    kind = (reaction_kind or DEFAULT_REACTION).strip().lower()
    if kind not in REACTION_KINDS:
        raise InvalidReaction(f"Unsupported reaction '{reaction_kind}'.")
    return kind


def _comment_record(comment: Comment) -> CommentRecord:
    return CommentRecord(
        id=comment.id,
        subject_id=comment.subject_id,
        actor_id=comment.actor_id,
        actor_display_name=comment.actor_display_name,
        actor_email=comment.actor_email,
        body=comment.body,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def _upsert_by_actor(session: Session, model: type[Any], values: dict[str, Any], update_fields: list[str]) -> None:
    """Create or update the row keyed by (subject_id, actor_id) atomically."""

    dialect = session.get_bind().dialect.name
    if dialect in {"postgresql", "sqlite"}:
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert

        stmt = insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["subject_id", "actor_id"],
            set_={name: stmt.excluded[name] for name in update_fields},
        )
        session.execute(stmt)
        return

    # No native upsert: read by key and write inside one transaction, retrying
    # once as an update when a concurrent insert wins the race.
    key = {"subject_id": values["subject_id"], "actor_id": values["actor_id"]}
    for attempt in range(2):
        existing = session.get(model, key, with_for_update=True)
        if existing is None:
            session.add(model(**values))
        else:
            for name in update_fields:
                setattr(existing, name, values[name])
        try:
            session.flush()
            return
        except IntegrityError:
            session.rollback()
            if attempt:
                raise


class EngagementStore:
    """Create/read/update/delete access to the likes, comments and follows tables."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, operation, work)

    def _run_sync(self, operation: str, work: Callable[[Session], T]) -> T:
        session = self._session_factory()
        try:
            result = work(session)
            session.commit()
            return result
        except EngagementError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Engagement store failure during %s", operation)
            raise StoreUnavailable() from exc
        finally:
            session.close()

    # -- counts -----------------------------------------------------------------

    @staticmethod
    def _count(session: Session, model: type[Any], subject_id: str) -> int:
        return int(session.scalar(select(func.count()).select_from(model).where(model.subject_id == subject_id)) or 0)

    @staticmethod
    def _exists(session: Session, model: type[Any], subject_id: str, actor_id: str) -> bool:
        return session.get(model, {"subject_id": subject_id, "actor_id": actor_id}) is not None

    async def count_likes(self, subject_id: str) -> int:
        return await self._run("count_likes", lambda s: self._count(s, Like, subject_id))

    async def count_comments(self, subject_id: str) -> int:
        return await self._run("count_comments", lambda s: self._count(s, Comment, subject_id))

    async def count_followers(self, subject_id: str) -> int:
        return await self._run("count_followers", lambda s: self._count(s, Follow, subject_id))

    # -- likes ------------------------------------------------------------------

    async def like(self, subject_id: str, actor: Actor, reaction_kind: str = DEFAULT_REACTION) -> LikeResult:
        kind = validate_reaction(reaction_kind)

        def _work(session: Session) -> None:
            values = {
                "subject_id": subject_id,
                "actor_id": actor.actor_id,
                "actor_display_name": actor.display_name,
                "reaction_kind": kind,
            }
            _upsert_by_actor(session, Like, values, ["reaction_kind", "actor_display_name"])

        await self._run("like", _work)
        logger.info("Actor %s reacted '%s' to %s", actor.actor_id, kind, subject_id)
        return LikeResult(subject_id=subject_id, like_count=await self.count_likes(subject_id), liked=True)

    async def unlike(self, subject_id: str, actor: Actor) -> LikeResult:
        def _work(session: Session) -> int:
            result = session.execute(
                delete(Like).where(Like.subject_id == subject_id, Like.actor_id == actor.actor_id)
            )
            return result.rowcount or 0

        removed = await self._run("unlike", _work)
        if removed:
            logger.info("Actor %s removed like from %s", actor.actor_id, subject_id)
        return LikeResult(subject_id=subject_id, like_count=await self.count_likes(subject_id), liked=False)

    async def has_liked(self, subject_id: str, actor: Actor) -> bool:
        return await self._run("has_liked", lambda s: self._exists(s, Like, subject_id, actor.actor_id))

    async def list_likes(self, subject_id: str) -> LikeSummary:
        def _work(session: Session) -> list[LikeRecord]:
            rows = session.scalars(
                select(Like).where(Like.subject_id == subject_id).order_by(Like.created_at.desc(), Like.actor_id)
            ).all()
            return [
                LikeRecord(
                    subject_id=row.subject_id,
                    actor_id=row.actor_id,
                    actor_display_name=row.actor_display_name,
                    reaction_kind=row.reaction_kind,
                    created_at=row.created_at,
                )
                for row in rows
            ]

        likes = await self._run("list_likes", _work)
        reaction_counts = dict(Counter(like.reaction_kind for like in likes))
        return LikeSummary(like_count=len(likes), reaction_counts=reaction_counts, likes=likes)

    # -- comments ---------------------------------------------------------------

    async def add_comment(self, subject_id: str, actor: Actor, body: str) -> CommentRecord:
        text = validate_comment_body(body)

        def _work(session: Session) -> CommentRecord:
            now = _utcnow()
            comment = Comment(
                subject_id=subject_id,
                actor_id=actor.actor_id,
                actor_display_name=actor.display_name,
                actor_email=actor.email,
                body=text,
                created_at=now,
                updated_at=now,
            )
            session.add(comment)
            session.flush()
            return _comment_record(comment)

        record = await self._run("add_comment", _work)
        logger.info("Actor %s commented on %s (comment %s)", actor.actor_id, subject_id, record.id)
        return record

    async def list_comments(self, subject_id: str, limit: int = 50) -> CommentPage:
        if limit < 1:
            raise ValueError("limit must be positive")

        def _work(session: Session) -> CommentPage:
            rows = session.scalars(
                select(Comment)
                .where(Comment.subject_id == subject_id)
                .order_by(Comment.created_at.desc(), Comment.id.desc())
                .limit(limit)
            ).all()
            total = self._count(session, Comment, subject_id)
            return CommentPage(
                comments=[_comment_record(row) for row in rows],
                total_count=total,
                has_more=total > limit,
            )

        return await self._run("list_comments", _work)

    async def delete_comment(self, comment_id: str, actor: Actor) -> None:
        def _work(session: Session) -> str:
            comment = session.get(Comment, comment_id)
            if comment is None:
                raise NotFound()
            if comment.actor_id != actor.actor_id:
                raise NotAuthorized()
            session.delete(comment)
            return comment.subject_id

        subject_id = await self._run("delete_comment", _work)
        logger.info("Actor %s deleted comment %s on %s", actor.actor_id, comment_id, subject_id)

    # -- follows ----------------------------------------------------------------

    async def follow(self, subject_id: str, actor: Actor) -> FollowResult:
        def _work(session: Session) -> None:
            values = {
                "subject_id": subject_id,
                "actor_id": actor.actor_id,
                "actor_display_name": actor.display_name,
                "actor_email": actor.email,
            }
            _upsert_by_actor(session, Follow, values, ["actor_display_name", "actor_email"])

        await self._run("follow", _work)
        logger.info("Actor %s followed %s", actor.actor_id, subject_id)
        return FollowResult(subject_id=subject_id, follower_count=await self.count_followers(subject_id), following=True)

    async def unfollow(self, subject_id: str, actor: Actor) -> FollowResult:
        def _work(session: Session) -> int:
            result = session.execute(
                delete(Follow).where(Follow.subject_id == subject_id, Follow.actor_id == actor.actor_id)
            )
            return result.rowcount or 0

        removed = await self._run("unfollow", _work)
        if removed:
            logger.info("Actor %s unfollowed %s", actor.actor_id, subject_id)
        return FollowResult(subject_id=subject_id, follower_count=await self.count_followers(subject_id), following=False)

    async def is_following(self, subject_id: str, actor: Actor) -> bool:
        return await self._run("is_following", lambda s: self._exists(s, Follow, subject_id, actor.actor_id))

    async def list_followers(self, subject_id: str) -> FollowerList:
        def _work(session: Session) -> list[FollowerRecord]:
            rows = session.scalars(
                select(Follow)
                .where(Follow.subject_id == subject_id)
                .order_by(Follow.created_at.desc(), Follow.actor_id)
            ).all()
            return [
                FollowerRecord(
                    subject_id=row.subject_id,
                    actor_id=row.actor_id,
                    actor_display_name=row.actor_display_name,
                    actor_email=row.actor_email,
                    created_at=row.created_at,
                )
                for row in rows
            ]

        followers = await self._run("list_followers", _work)
        return FollowerList(follower_count=len(followers), followers=followers)


__all__ = [
    "EngagementStore",
    "LikeResult",
    "FollowResult",
    "CommentRecord",
    "CommentPage",
    "LikeRecord",
    "LikeSummary",
    "FollowerRecord",
    "FollowerList",
    "validate_comment_body",
    "validate_reaction",
]
