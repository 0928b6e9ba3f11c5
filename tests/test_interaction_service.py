"""Tests for the like/follow/comment interaction state machines."""
from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_faculty_social.db")

from faculty_social.database import build_engine, build_session_factory, init_db  # noqa: E402
from faculty_social.services import (  # noqa: E402
    EngagementStore,
    IdentityContext,
    InteractionController,
    LikeResult,
    MemoryKeyValueStore,
    NotificationKind,
    PanelState,
    StoreUnavailable,
)
from faculty_social.constants import IDENTITY_ID_KEY, IDENTITY_NAME_KEY  # noqa: E402
from faculty_social.services.interaction_service import DELETE_CONFIRMATION, TIMEOUT_MESSAGE  # noqa: E402

SUBJECT = "faculty-42"


class Notifications(list):
    def __call__(self, message: str, kind: NotificationKind) -> None:
        self.append((kind, message))

    @property
    def kinds(self) -> list[NotificationKind]:
        return [kind for kind, _ in self]


def _identity(actor_id: str = "u1", name: str | None = "Ann") -> IdentityContext:
    values = {IDENTITY_ID_KEY: actor_id}
    if name is not None:
        values[IDENTITY_NAME_KEY] = name
    return IdentityContext(MemoryKeyValueStore(values))


@pytest.fixture
def store(tmp_path: Path):
    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'interaction.db'}")
    init_db(engine)
    yield EngagementStore(build_session_factory(engine))
    engine.dispose()


def _controller(store, identity: IdentityContext, notes: Notifications, **kwargs) -> InteractionController:
    kwargs.setdefault("timeout", 5.0)
    return InteractionController(SUBJECT, identity=identity, store=store, notify=notes, **kwargs)


class GatedLikeStore:
    """Store double whose ``like`` blocks until released."""

    def __init__(self) -> None:
        self.calls = 0
        self.release: asyncio.Event | None = None

    async def like(self, subject_id, actor, reaction_kind="like") -> LikeResult:
        self.calls += 1
        assert self.release is not None
        await self.release.wait()
        return LikeResult(subject_id=subject_id, like_count=7, liked=True)


class FailingLikeStore:
    async def like(self, subject_id, actor, reaction_kind="like") -> LikeResult:
        raise StoreUnavailable()


class HangingLikeStore:
    async def like(self, subject_id, actor, reaction_kind="like") -> LikeResult:
        await asyncio.sleep(30)
        raise AssertionError("unreachable")


class LookupStore:
    """Store double answering the initial-render queries."""

    def __init__(self, *, count_delay: float = 0.0, like_error: Exception | None = None) -> None:
        self.count_delay = count_delay
        self.like_error = like_error

    async def _count(self) -> int:
        await asyncio.sleep(self.count_delay)
        return 4

    async def count_likes(self, subject_id) -> int:
        return await self._count()

    async def count_comments(self, subject_id) -> int:
        return await self._count()

    async def count_followers(self, subject_id) -> int:
        return await self._count()

    async def has_liked(self, subject_id, actor) -> bool:
        if self.like_error is not None:
            raise self.like_error
        return True

    async def is_following(self, subject_id, actor) -> bool:
        return True


def test_like_toggle_round_trip(store) -> None:
    notes = Notifications()
    controller = _controller(store, _identity(), notes)

    async def scenario() -> None:
        await controller.initialize()
        assert (controller.like.active, controller.like.count) == (False, 0)

        assert await controller.toggle_like() is True
        assert (controller.like.active, controller.like.count, controller.like.busy) == (True, 1, False)

        assert await controller.toggle_like() is True
        assert (controller.like.active, controller.like.count) == (False, 0)

    asyncio.run(scenario())
    assert notes == [
        (NotificationKind.SUCCESS, "Liked successfully!"),
        (NotificationKind.SUCCESS, "Unliked successfully!"),
    ]


def test_initialize_reflects_existing_engagement(store) -> None:
    identity = _identity()

    async def scenario() -> InteractionController:
        actor = await identity.resolve_actor()
        await store.like(SUBJECT, actor)
        await store.follow(SUBJECT, actor)
        await store.add_comment(SUBJECT, actor, "Hello")
        controller = _controller(store, identity, Notifications())
        await controller.initialize()
        return controller

    controller = asyncio.run(scenario())
    assert (controller.like.active, controller.like.count) == (True, 1)
    assert (controller.follow.active, controller.follow.count) == (True, 1)
    assert controller.comments.total_count == 1


def test_initialize_without_identity_does_not_create_one(store) -> None:
    storage = MemoryKeyValueStore()
    controller = _controller(store, IdentityContext(storage), Notifications())
    asyncio.run(controller.initialize())
    assert storage.get(IDENTITY_ID_KEY) is None
    assert controller.like.active is False


def test_initialize_bounds_hung_count_queries() -> None:
    notes = Notifications()
    controller = _controller(LookupStore(count_delay=30), _identity(), notes, timeout=0.2)

    asyncio.run(asyncio.wait_for(controller.initialize(), 5.0))

    assert (controller.like.count, controller.follow.count, controller.comments.total_count) == (0, 0, 0)
    assert (controller.like.active, controller.follow.active) == (True, True)
    assert notes == [(NotificationKind.ERROR, TIMEOUT_MESSAGE)]


def test_initialize_loads_follow_state_when_like_lookup_fails() -> None:
    notes = Notifications()
    controller = _controller(LookupStore(like_error=StoreUnavailable()), _identity(), notes)

    asyncio.run(controller.initialize())

    assert (controller.like.count, controller.follow.count) == (4, 4)
    assert controller.like.active is False
    assert controller.follow.active is True
    assert notes == [(NotificationKind.ERROR, StoreUnavailable.default_message)]


def test_click_while_in_flight_is_ignored() -> None:
    gated = GatedLikeStore()
    notes = Notifications()
    controller = _controller(gated, _identity(), notes)

    async def scenario() -> None:
        gated.release = asyncio.Event()
        first = asyncio.create_task(controller.toggle_like())
        while gated.calls == 0:
            await asyncio.sleep(0)

        # optimistic state while the call is outstanding
        assert (controller.like.active, controller.like.count, controller.like.busy) == (True, 1, True)
        assert await controller.toggle_like() is False

        gated.release.set()
        assert await first is True

    asyncio.run(scenario())
    assert gated.calls == 1
    # the server's count wins over the optimistic one
    assert (controller.like.active, controller.like.count, controller.like.busy) == (True, 7, False)


def test_failed_like_reverts_optimistic_state() -> None:
    notes = Notifications()
    controller = _controller(FailingLikeStore(), _identity(), notes)
    controller.like.count = 3

    assert asyncio.run(controller.toggle_like()) is False
    assert (controller.like.active, controller.like.count, controller.like.busy) == (False, 3, False)
    assert notes == [(NotificationKind.ERROR, StoreUnavailable.default_message)]


def test_hung_store_call_times_out_and_reenables() -> None:
    notes = Notifications()
    controller = _controller(HangingLikeStore(), _identity(), notes, timeout=0.05)

    assert asyncio.run(controller.toggle_like()) is False
    assert (controller.like.active, controller.like.count, controller.like.busy) == (False, 0, False)
    assert notes == [(NotificationKind.ERROR, TIMEOUT_MESSAGE)]


def test_missing_display_name_blocks_like(store) -> None:
    notes = Notifications()
    controller = _controller(store, _identity(name=None), notes)

    assert asyncio.run(controller.toggle_like()) is False
    assert controller.like.active is False
    assert notes.kinds == [NotificationKind.ERROR]
    assert asyncio.run(store.count_likes(SUBJECT)) == 0


def test_follow_toggle_round_trip(store) -> None:
    notes = Notifications()
    controller = _controller(store, _identity(), notes)

    async def scenario() -> None:
        assert await controller.toggle_follow() is True
        assert (controller.follow.active, controller.follow.count) == (True, 1)
        assert await store.is_following(SUBJECT, controller._identity.current_actor()) is True
        assert await controller.toggle_follow() is True
        assert (controller.follow.active, controller.follow.count) == (False, 0)

    asyncio.run(scenario())
    assert controller.like.count == 0


def test_comment_panel_posts_and_relists(store) -> None:
    notes = Notifications()
    controller = _controller(store, _identity(), notes)

    async def scenario() -> None:
        assert await controller.toggle_comments() is PanelState.EXPANDED
        assert controller.comments.comments == []

        controller.comments.draft = "Great work!"
        assert await controller.submit_comment() is True

    asyncio.run(scenario())
    panel = controller.comments
    assert panel.draft == ""
    assert [c.body for c in panel.comments] == ["Great work!"]
    assert panel.total_count == 1
    assert controller.can_delete(panel.comments[0]) is True
    assert notes[-1] == (NotificationKind.SUCCESS, "Comment posted successfully!")

    assert asyncio.run(controller.toggle_comments()) is PanelState.COLLAPSED


def test_invalid_comment_warns_without_store_call(store) -> None:
    notes = Notifications()
    controller = _controller(store, _identity(), notes)
    controller.comments.draft = "   "

    assert asyncio.run(controller.submit_comment()) is False
    assert asyncio.run(controller.submit_comment("y" * 2001)) is False
    assert notes.kinds == [NotificationKind.WARNING, NotificationKind.WARNING]
    assert controller.comments.draft == "   "
    assert asyncio.run(store.count_comments(SUBJECT)) == 0


def test_delete_requires_confirmation(store) -> None:
    prompts: list[str] = []
    answers = [False, True]

    async def _confirm(message: str) -> bool:
        prompts.append(message)
        return answers.pop(0)

    notes = Notifications()
    controller = _controller(store, _identity(), notes, confirm=_confirm)

    async def scenario() -> None:
        await controller.submit_comment("Great work!")
        comment_id = controller.comments.comments[0].id

        assert await controller.delete_comment(comment_id) is False
        assert controller.comments.total_count == 1

        assert await controller.delete_comment(comment_id) is True

    asyncio.run(scenario())
    assert prompts == [DELETE_CONFIRMATION, DELETE_CONFIRMATION]
    assert controller.comments.comments == []
    assert controller.comments.total_count == 0


def test_delete_by_other_actor_is_refused_and_list_kept(store) -> None:
    author = _controller(store, _identity("u1", "Ann"), Notifications())
    notes = Notifications()
    other = _controller(store, _identity("u2", "Ben"), notes, confirm=lambda _: True)

    async def scenario() -> str:
        await author.submit_comment("Great work!")
        await other.toggle_comments()
        return other.comments.comments[0].id

    comment_id = asyncio.run(scenario())
    assert other.can_delete(other.comments.comments[0]) is False

    assert asyncio.run(other.delete_comment(comment_id)) is False
    assert notes == [(NotificationKind.ERROR, "Not authorized to delete this comment.")]
    assert [c.id for c in other.comments.comments] == [comment_id]
    assert asyncio.run(store.count_comments(SUBJECT)) == 1


def test_delete_of_missing_comment_reports_not_found(store) -> None:
    notes = Notifications()
    controller = _controller(store, _identity(), notes, confirm=lambda _: True)

    assert asyncio.run(controller.delete_comment("does-not-exist")) is False
    assert notes.kinds == [NotificationKind.ERROR]
    assert "not found" in notes[0][1].lower()


def test_delete_without_confirm_callback_is_declined(store) -> None:
    controller = _controller(store, _identity(), Notifications())

    async def scenario() -> bool:
        await controller.submit_comment("Keep me")
        return await controller.delete_comment(controller.comments.comments[0].id)

    assert asyncio.run(scenario()) is False
    assert asyncio.run(store.count_comments(SUBJECT)) == 1


def test_share_opens_target_and_copies_link(store, monkeypatch) -> None:
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://faculty.example.edu")
    from faculty_social.config import get_settings

    get_settings.cache_clear()
    opened: list[str] = []
    copied: list[str] = []
    notes = Notifications()
    controller = _controller(
        store,
        _identity(),
        notes,
        open_url=opened.append,
        copy_to_clipboard=copied.append,
        title="Dr. Lee",
    )
    try:
        link = controller.share("linkedin")
        copied_url = controller.share("copy")
    finally:
        get_settings.cache_clear()

    assert opened == [link]
    assert link.startswith("https://www.linkedin.com/sharing/share-offsite/?url=https%3A%2F%2Ffaculty.example.edu")
    assert copied == [copied_url] == ["https://faculty.example.edu/portfolio/faculty-42.html"]
    assert notes == [(NotificationKind.SUCCESS, "Link copied to clipboard!")]
