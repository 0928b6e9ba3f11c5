"""Actor identity for engagement calls.

An :class:`IdentityContext` is built once at application start and injected
into the interaction layer. It owns the client-local identity record: an
anonymous actor id generated on first use, the display name supplied by the
visitor, and the richer identity overlaid after an authenticated sign-in.
"""
from __future__ import annotations

import inspect
import json
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Awaitable, Callable, Protocol, Union

from jose import JWTError, jwt

from ..config import get_settings
from ..constants import (
    ANONYMOUS_ID_KEY,
    ANONYMOUS_NAME_KEY,
    IDENTITY_EMAIL_KEY,
    IDENTITY_ID_KEY,
    IDENTITY_NAME_KEY,
)
from ..security.secrets import MissingSecretError, require_secret
from .errors import InvalidIdentityAssertion, NoDisplayName

logger = logging.getLogger(__name__)

NamePrompt = Callable[[], Union[Awaitable[str | None], str | None]]


@dataclass(frozen=True, slots=True)
class Actor:
    """The identity performing an engagement action."""

    actor_id: str
    display_name: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class AuthSession:
    """Identity asserted by the external identity provider."""

    uid: str
    display_name: str | None = None
    email: str | None = None


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Volatile store, used for tests and server-side rendering."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileKeyValueStore:
    """Persist string values in a small JSON document on disk."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Identity store %s is corrupt; starting fresh", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items() if value is not None}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self._path)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if data.pop(key, None) is not None:
                self._save(data)


def generate_actor_id() -> str:
    """Return a new anonymous actor id: millisecond clock plus 64 random bits."""

    return f"user_{int(time.time() * 1000)}_{secrets.token_hex(8)}"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def display_name_from_session(session: AuthSession) -> str | None:
    name = _clean(session.display_name)
    if name:
        return name
    email = _clean(session.email)
    if email:
        return _clean(email.split("@", 1)[0])
    return None


class IdentityContext:
    """Resolve and persist the actor used for every engagement call."""

    def __init__(self, storage: KeyValueStore, *, prompt: NamePrompt | None = None) -> None:
        self._storage = storage
        self._prompt = prompt

    @property
    def is_authenticated(self) -> bool:
        return self._storage.get(ANONYMOUS_ID_KEY) is not None

    def current_actor(self) -> Actor | None:
        """Return the stored actor without generating ids or prompting."""

        actor_id = self._storage.get(IDENTITY_ID_KEY)
        if not actor_id:
            return None
        return Actor(
            actor_id=actor_id,
            display_name=self._storage.get(IDENTITY_NAME_KEY) or "",
            email=_clean(self._storage.get(IDENTITY_EMAIL_KEY)),
        )

    async def _ask_for_name(self) -> str | None:
        if self._prompt is None:
            return None
        answer = self._prompt()
        if inspect.isawaitable(answer):
            answer = await answer
        return _clean(answer)

    async def resolve_actor(self, display_name: str | None = None) -> Actor:
        """Return the current actor, creating the anonymous identity on first use.

        Raises :class:`NoDisplayName` when no stored, supplied or prompted name
        is available; nothing about the name is persisted in that case.
        """

        actor_id = self._storage.get(IDENTITY_ID_KEY)
        if not actor_id:
            actor_id = generate_actor_id()
            logger.info("Generated anonymous actor id %s", actor_id)

        name = _clean(self._storage.get(IDENTITY_NAME_KEY)) or _clean(display_name)
        if name is None:
            name = await self._ask_for_name()
        # Persist the id even when the name is missing so a retry keeps it.
        self._storage.set(IDENTITY_ID_KEY, actor_id)
        if name is None:
            raise NoDisplayName()

        email = _clean(self._storage.get(IDENTITY_EMAIL_KEY))
        self._storage.set(IDENTITY_NAME_KEY, name)
        if email:
            self._storage.set(IDENTITY_EMAIL_KEY, email)
        return Actor(actor_id=actor_id, display_name=name, email=email)

    def adopt_authenticated_identity(self, session: AuthSession) -> Actor:
        """Overlay an authenticated identity on the local record.

        Engagement already recorded under the anonymous id stays attributed to
        it; the anonymous id is remembered so :meth:`sign_out` can restore it.
        """

        uid = _clean(session.uid)
        if not uid:
            raise InvalidIdentityAssertion("Sign-in did not provide a user id.")

        if not self.is_authenticated:
            anonymous_id = self._storage.get(IDENTITY_ID_KEY)
            if anonymous_id:
                self._storage.set(ANONYMOUS_ID_KEY, anonymous_id)
                anonymous_name = self._storage.get(IDENTITY_NAME_KEY)
                if anonymous_name:
                    self._storage.set(ANONYMOUS_NAME_KEY, anonymous_name)
            else:
                # Marks the overlay even when no anonymous id existed yet.
                self._storage.set(ANONYMOUS_ID_KEY, "")

        name = display_name_from_session(session) or _clean(self._storage.get(IDENTITY_NAME_KEY))
        email = _clean(session.email)

        self._storage.set(IDENTITY_ID_KEY, uid)
        if name:
            self._storage.set(IDENTITY_NAME_KEY, name)
        else:
            self._storage.delete(IDENTITY_NAME_KEY)
        if email:
            self._storage.set(IDENTITY_EMAIL_KEY, email)
        else:
            self._storage.delete(IDENTITY_EMAIL_KEY)

        logger.info("Adopted authenticated identity %s", uid)
        return Actor(actor_id=uid, display_name=name or "", email=email)

    def sign_out(self) -> None:
        """Drop the authenticated overlay and fall back to the anonymous identity."""

        if not self.is_authenticated:
            return
        anonymous_id = self._storage.get(ANONYMOUS_ID_KEY)
        anonymous_name = self._storage.get(ANONYMOUS_NAME_KEY)
        self._storage.delete(ANONYMOUS_ID_KEY)
        self._storage.delete(ANONYMOUS_NAME_KEY)
        self._storage.delete(IDENTITY_EMAIL_KEY)
        if anonymous_id:
            self._storage.set(IDENTITY_ID_KEY, anonymous_id)
        else:
            self._storage.delete(IDENTITY_ID_KEY)
        if anonymous_name:
            self._storage.set(IDENTITY_NAME_KEY, anonymous_name)
        else:
            self._storage.delete(IDENTITY_NAME_KEY)
        logger.info("Signed out; anonymous identity restored")


def default_identity_context(*, prompt: NamePrompt | None = None) -> IdentityContext:
    """Build the identity context backed by the configured on-disk store."""

    return IdentityContext(JsonFileKeyValueStore(get_settings().identity_store_path), prompt=prompt)


@lru_cache(maxsize=1)
def _get_identity_secret() -> str:
    try:
        return require_secret("IDENTITY_TOKEN_SECRET")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def create_identity_assertion(session: AuthSession, *, expires_minutes: int | None = None) -> str:
    """Sign ``session`` the way the identity provider hands it to clients."""

    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": session.uid,
        "name": session.display_name,
        "email": session.email,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or settings.identity_token_minutes),
    }
    return jwt.encode(payload, _get_identity_secret(), algorithm=settings.identity_token_algorithm)


def decode_identity_assertion(token: str) -> AuthSession:
    """Verify an identity assertion and return the session it describes."""

    settings = get_settings()
    try:
        payload = jwt.decode(token, _get_identity_secret(), algorithms=[settings.identity_token_algorithm])
    except JWTError as exc:
        raise InvalidIdentityAssertion() from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise InvalidIdentityAssertion("Sign-in did not provide a user id.")
    return AuthSession(uid=subject.strip(), display_name=payload.get("name"), email=payload.get("email"))


__all__ = [
    "Actor",
    "AuthSession",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "IdentityContext",
    "NamePrompt",
    "default_identity_context",
    "generate_actor_id",
    "display_name_from_session",
    "create_identity_assertion",
    "decode_identity_assertion",
]
