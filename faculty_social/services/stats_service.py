"""Best-effort engagement statistics for a faculty profile."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .engagement_service import EngagementStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EngagementStats:
    subject_id: str
    like_count: int = 0
    comment_count: int = 0
    follower_count: int = 0


class StatsAggregator:
    """Combine the three per-collection counts for display.

    The counts are display-only: a failing query degrades its field to zero
    instead of failing the whole call.
    """

    def __init__(self, store: EngagementStore) -> None:
        self._store = store

    async def get_stats(self, subject_id: str) -> EngagementStats:
        results = await asyncio.gather(
            self._store.count_likes(subject_id),
            self._store.count_comments(subject_id),
            self._store.count_followers(subject_id),
            return_exceptions=True,
        )
        counts: list[int] = []
        for name, result in zip(("likes", "comments", "followers"), results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Counting %s for %s failed: %s", name, subject_id, result)
                counts.append(0)
            else:
                counts.append(int(result))
        like_count, comment_count, follower_count = counts
        return EngagementStats(
            subject_id=subject_id,
            like_count=like_count,
            comment_count=comment_count,
            follower_count=follower_count,
        )


__all__ = ["EngagementStats", "StatsAggregator"]
