"""Tests for anonymous and authenticated actor resolution."""
from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_faculty_social.db")
os.environ.setdefault("IDENTITY_TOKEN_SECRET", "test-identity-secret")

from faculty_social.config import get_settings  # noqa: E402
from faculty_social.constants import IDENTITY_ID_KEY, IDENTITY_NAME_KEY  # noqa: E402
from faculty_social.services import (  # noqa: E402
    AuthSession,
    IdentityContext,
    InvalidIdentityAssertion,
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    NoDisplayName,
    create_identity_assertion,
    decode_identity_assertion,
    default_identity_context,
)
from faculty_social.services.identity_service import generate_actor_id  # noqa: E402


def test_generated_actor_ids_are_unique_and_well_formed() -> None:
    ids = {generate_actor_id() for _ in range(500)}
    assert len(ids) == 500
    for actor_id in ids:
        assert re.fullmatch(r"user_\d{13,}_[0-9a-f]{16}", actor_id)


def test_resolve_actor_generates_and_persists_identity() -> None:
    storage = MemoryKeyValueStore()
    identity = IdentityContext(storage)

    actor = asyncio.run(identity.resolve_actor(display_name="  Ann  "))
    assert actor.display_name == "Ann"
    assert actor.email is None
    assert storage.get(IDENTITY_ID_KEY) == actor.actor_id
    assert storage.get(IDENTITY_NAME_KEY) == "Ann"


def test_default_identity_context_uses_configured_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "configured.json"
    monkeypatch.setenv("IDENTITY_STORE_PATH", str(path))
    get_settings.cache_clear()
    try:
        actor = asyncio.run(default_identity_context().resolve_actor(display_name="Ann"))
    finally:
        get_settings.cache_clear()
    assert json.loads(path.read_text(encoding="utf-8"))[IDENTITY_ID_KEY] == actor.actor_id

    again = asyncio.run(identity.resolve_actor())
    assert again == actor


def test_resolve_actor_without_name_fails_but_keeps_actor_id() -> None:
    storage = MemoryKeyValueStore()
    identity = IdentityContext(storage)

    with pytest.raises(NoDisplayName):
        asyncio.run(identity.resolve_actor())

    actor_id = storage.get(IDENTITY_ID_KEY)
    assert actor_id
    assert storage.get(IDENTITY_NAME_KEY) is None

    actor = asyncio.run(identity.resolve_actor(display_name="Ann"))
    assert actor.actor_id == actor_id


def test_prompt_is_used_once_when_name_missing() -> None:
    answers = ["Ben"]
    calls: list[int] = []

    def _prompt() -> str:
        calls.append(1)
        return answers.pop()

    identity = IdentityContext(MemoryKeyValueStore(), prompt=_prompt)
    assert asyncio.run(identity.resolve_actor()).display_name == "Ben"
    assert asyncio.run(identity.resolve_actor()).display_name == "Ben"
    assert len(calls) == 1


def test_async_prompt_returning_blank_raises() -> None:
    async def _prompt() -> str:
        return "   "

    identity = IdentityContext(MemoryKeyValueStore(), prompt=_prompt)
    with pytest.raises(NoDisplayName):
        asyncio.run(identity.resolve_actor())


def test_adopt_authenticated_identity_overlays_and_sign_out_restores() -> None:
    storage = MemoryKeyValueStore()
    identity = IdentityContext(storage)
    anonymous = asyncio.run(identity.resolve_actor(display_name="Visitor"))

    actor = identity.adopt_authenticated_identity(AuthSession(uid="google-123", email="dr.lee@uni.edu.my"))
    assert actor.actor_id == "google-123"
    assert actor.display_name == "dr.lee"
    assert actor.email == "dr.lee@uni.edu.my"
    assert identity.is_authenticated is True
    assert asyncio.run(identity.resolve_actor()) == actor

    identity.sign_out()
    assert identity.is_authenticated is False
    restored = asyncio.run(identity.resolve_actor())
    assert restored == anonymous


def test_adopt_prefers_session_display_name() -> None:
    identity = IdentityContext(MemoryKeyValueStore())
    actor = identity.adopt_authenticated_identity(
        AuthSession(uid="u-9", display_name="Dr. Siti Aminah", email="siti@uni.edu.my")
    )
    assert actor.display_name == "Dr. Siti Aminah"

    identity.sign_out()
    assert identity.current_actor() is None


def test_adopt_requires_uid() -> None:
    identity = IdentityContext(MemoryKeyValueStore())
    with pytest.raises(InvalidIdentityAssertion):
        identity.adopt_authenticated_identity(AuthSession(uid="  "))


def test_json_file_store_survives_new_context(tmp_path: Path) -> None:
    path = tmp_path / "profile" / "identity.json"
    first = IdentityContext(JsonFileKeyValueStore(path))
    actor = asyncio.run(first.resolve_actor(display_name="Ann"))

    second = IdentityContext(JsonFileKeyValueStore(path))
    assert asyncio.run(second.resolve_actor()) == actor
    assert json.loads(path.read_text(encoding="utf-8"))[IDENTITY_ID_KEY] == actor.actor_id


def test_json_file_store_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "identity.json"
    path.write_text("{not json", encoding="utf-8")
    storage = JsonFileKeyValueStore(path)
    assert storage.get(IDENTITY_ID_KEY) is None
    storage.set(IDENTITY_NAME_KEY, "Ann")
    assert storage.get(IDENTITY_NAME_KEY) == "Ann"


def test_identity_assertion_round_trip() -> None:
    token = create_identity_assertion(AuthSession(uid="google-123", display_name="Lee", email="lee@uni.edu.my"))
    session = decode_identity_assertion(token)
    assert session == AuthSession(uid="google-123", display_name="Lee", email="lee@uni.edu.my")


def test_tampered_identity_assertion_is_rejected() -> None:
    header, _, signature = create_identity_assertion(AuthSession(uid="google-123")).split(".")
    _, forged_payload, _ = create_identity_assertion(AuthSession(uid="attacker")).split(".")
    with pytest.raises(InvalidIdentityAssertion):
        decode_identity_assertion(".".join([header, forged_payload, signature]))
