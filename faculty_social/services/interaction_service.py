"""UI interaction state for the engagement affordances of one profile.

:class:`InteractionController` keeps one small state machine per affordance
(like toggle, follow toggle, comment panel) and reconciles optimistic state
with what the store confirms. It is the only layer that reverts optimistic
state and turns failures into user-visible notifications.

Handlers run on a single event loop. Each affordance has its own in-flight
flag; a click that arrives while the flag is set is ignored, which is the
equivalent of a disabled button.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, TypeVar, Union

from ..config import get_settings
from ..constants import DEFAULT_REACTION
from .engagement_service import CommentRecord, EngagementStore, FollowResult, LikeResult, validate_comment_body
from .errors import CommentValidationError, EngagementError, NotAuthorized, StoreUnavailable
from .identity_service import Actor, IdentityContext
from .share_service import ShareTarget, profile_url, share_url
from .stats_service import StatsAggregator

logger = logging.getLogger(__name__)

T = TypeVar("T")

Notifier = Callable[[str, "NotificationKind"], None]
ConfirmPrompt = Callable[[str], Union[Awaitable[bool], bool]]

DELETE_CONFIRMATION = "Are you sure you want to delete this comment?"
TIMEOUT_MESSAGE = "The server took too long to respond. Please try again."


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class PanelState(str, Enum):
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


@dataclass(slots=True)
class ToggleState:
    """Rendered state of a like or follow button."""

    active: bool = False
    count: int = 0
    busy: bool = False


@dataclass(slots=True)
class CommentPanel:
    state: PanelState = PanelState.COLLAPSED
    comments: list[CommentRecord] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False
    draft: str = ""
    loading: bool = False
    submitting: bool = False
    deleting: set[str] = field(default_factory=set)
    error: str | None = None


def _log_notification(message: str, kind: NotificationKind) -> None:
    level = logging.WARNING if kind in (NotificationKind.ERROR, NotificationKind.WARNING) else logging.INFO
    logger.log(level, "[%s] %s", kind.value, message)


def _decline(_: str) -> bool:
    logger.warning("No confirmation prompt configured; declining destructive action")
    return False


@dataclass(frozen=True, slots=True)
class _ToggleActions:
    activate: Callable[[Actor], Coroutine[Any, Any, Any]]
    deactivate: Callable[[Actor], Coroutine[Any, Any, Any]]
    read: Callable[[Any], tuple[bool, int]]
    activated_message: str
    deactivated_message: str


class InteractionController:
    def __init__(
        self,
        subject_id: str,
        *,
        identity: IdentityContext,
        store: EngagementStore,
        stats: StatsAggregator | None = None,
        notify: Notifier | None = None,
        confirm: ConfirmPrompt | None = None,
        open_url: Callable[[str], None] | None = None,
        copy_to_clipboard: Callable[[str], None] | None = None,
        title: str = "",
        timeout: float | None = None,
        comment_limit: int | None = None,
    ) -> None:
        settings = get_settings()
        self.subject_id = subject_id
        self.title = title
        self.like = ToggleState()
        self.follow = ToggleState()
        self.comments = CommentPanel()
        self._identity = identity
        self._store = store
        self._stats = stats or StatsAggregator(store)
        self._notify = notify or _log_notification
        self._confirm = confirm or _decline
        self._open_url = open_url
        self._copy_to_clipboard = copy_to_clipboard
        self._timeout = timeout if timeout is not None else settings.store_timeout_seconds
        self._comment_limit = comment_limit or settings.comment_page_limit

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Await a store call, reporting an expired deadline as ``StoreUnavailable``."""

        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise StoreUnavailable(TIMEOUT_MESSAGE) from exc

    def _fail(self, exc: EngagementError) -> None:
        kind = NotificationKind.WARNING if isinstance(exc, CommentValidationError) else NotificationKind.ERROR
        self._notify(exc.message, kind)

    # -- initial render -----------------------------------------------------------

    async def initialize(self) -> None:
        """Load counts and the current actor's like/follow state."""

        failures: list[EngagementError] = []
        try:
            stats = await self._call(self._stats.get_stats(self.subject_id))
        except EngagementError as exc:
            failures.append(exc)
        else:
            self.like.count = stats.like_count
            self.follow.count = stats.follower_count
            self.comments.total_count = stats.comment_count

        actor = self._identity.current_actor()
        if actor is not None:
            # Each lookup is independent; a failed like lookup still loads the follow state.
            liked, following = await asyncio.gather(
                self._call(self._store.has_liked(self.subject_id, actor)),
                self._call(self._store.is_following(self.subject_id, actor)),
                return_exceptions=True,
            )
            for state, outcome in ((self.like, liked), (self.follow, following)):
                if isinstance(outcome, EngagementError):
                    failures.append(outcome)
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    state.active = outcome

        if failures:
            self._fail(failures[0])

    # -- like / follow toggles ------------------------------------------------------

    async def _toggle(self, state: ToggleState, actions: _ToggleActions) -> bool:
        if state.busy:
            return False
        state.busy = True
        was_active, previous_count = state.active, state.count
        try:
            actor = await self._identity.resolve_actor()
            state.active = not was_active
            state.count = max(0, previous_count + (-1 if was_active else 1))
            operation = actions.deactivate if was_active else actions.activate
            result = await self._call(operation(actor))
            state.active, state.count = actions.read(result)
        except EngagementError as exc:
            state.active, state.count = was_active, previous_count
            self._fail(exc)
            return False
        except BaseException:
            state.active, state.count = was_active, previous_count
            raise
        finally:
            state.busy = False
        self._notify(actions.deactivated_message if was_active else actions.activated_message, NotificationKind.SUCCESS)
        return True

    async def toggle_like(self, reaction_kind: str = DEFAULT_REACTION) -> bool:
        """Like or unlike the profile; returns ``True`` once the store confirms."""

        def _read(result: LikeResult) -> tuple[bool, int]:
            return result.liked, result.like_count

        actions = _ToggleActions(
            activate=lambda actor: self._store.like(self.subject_id, actor, reaction_kind),
            deactivate=lambda actor: self._store.unlike(self.subject_id, actor),
            read=_read,
            activated_message="Liked successfully!",
            deactivated_message="Unliked successfully!",
        )
        return await self._toggle(self.like, actions)

    async def toggle_follow(self) -> bool:
        def _read(result: FollowResult) -> tuple[bool, int]:
            return result.following, result.follower_count

        actions = _ToggleActions(
            activate=lambda actor: self._store.follow(self.subject_id, actor),
            deactivate=lambda actor: self._store.unfollow(self.subject_id, actor),
            read=_read,
            activated_message="Following! You will see updates from this profile.",
            deactivated_message="Unfollowed successfully!",
        )
        return await self._toggle(self.follow, actions)

    # -- comments -----------------------------------------------------------------

    async def toggle_comments(self) -> PanelState:
        panel = self.comments
        if panel.state is PanelState.EXPANDED:
            panel.state = PanelState.COLLAPSED
            return panel.state
        panel.state = PanelState.EXPANDED
        await self.refresh_comments()
        return panel.state

    async def refresh_comments(self) -> bool:
        """Re-read the comment list; the previous list is kept on failure."""

        panel = self.comments
        panel.loading = True
        try:
            page = await self._call(self._store.list_comments(self.subject_id, limit=self._comment_limit))
        except EngagementError as exc:
            panel.error = exc.message
            self._fail(exc)
            return False
        finally:
            panel.loading = False
        panel.comments = list(page.comments)
        panel.total_count = page.total_count
        panel.has_more = page.has_more
        panel.error = None
        return True

    def can_delete(self, comment: CommentRecord) -> bool:
        actor = self._identity.current_actor()
        return actor is not None and actor.actor_id == comment.actor_id

    async def submit_comment(self, body: str | None = None) -> bool:
        panel = self.comments
        if panel.submitting:
            return False
        text = panel.draft if body is None else body
        try:
            validate_comment_body(text)
        except CommentValidationError as exc:
            self._fail(exc)
            return False

        panel.submitting = True
        try:
            actor = await self._identity.resolve_actor()
            # Not retried: a second attempt could create a duplicate comment.
            await self._call(self._store.add_comment(self.subject_id, actor, text))
        except EngagementError as exc:
            self._fail(exc)
            return False
        finally:
            panel.submitting = False

        panel.draft = ""
        await self.refresh_comments()
        self._notify("Comment posted successfully!", NotificationKind.SUCCESS)
        return True

    async def delete_comment(self, comment_id: str) -> bool:
        panel = self.comments
        if comment_id in panel.deleting:
            return False
        confirmed = self._confirm(DELETE_CONFIRMATION)
        if inspect.isawaitable(confirmed):
            confirmed = await confirmed
        if not confirmed:
            return False

        panel.deleting.add(comment_id)
        try:
            actor = self._identity.current_actor()
            if actor is None:
                raise NotAuthorized()
            await self._call(self._store.delete_comment(comment_id, actor))
        except EngagementError as exc:
            self._fail(exc)
            return False
        finally:
            panel.deleting.discard(comment_id)

        await self.refresh_comments()
        self._notify("Comment deleted successfully!", NotificationKind.SUCCESS)
        return True

    # -- share --------------------------------------------------------------------

    def share(self, target: ShareTarget | str) -> str:
        """Open a share dialog or copy the profile link; returns the URL used."""

        target = ShareTarget(target)
        url = profile_url(self.subject_id)
        link = share_url(target, url, self.title)
        if target is ShareTarget.COPY_LINK:
            if self._copy_to_clipboard is None:
                self._notify(f"Copy this link: {url}", NotificationKind.INFO)
            else:
                self._copy_to_clipboard(url)
                self._notify("Link copied to clipboard!", NotificationKind.SUCCESS)
        elif self._open_url is not None:
            self._open_url(link)
        return link


__all__ = [
    "InteractionController",
    "NotificationKind",
    "PanelState",
    "ToggleState",
    "CommentPanel",
    "DELETE_CONFIRMATION",
]
