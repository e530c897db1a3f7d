"""Identity and history persistence over a plain key-value store.

Values are JSON text without a schema version; anything that fails to
parse is logged and read as absent, but never deleted by a later write.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session as DBSession

from careercoach.core.session import Session
from careercoach.db.repositories import Repository
from careercoach.types import Identity

logger = logging.getLogger(__name__)

IDENTITY_KEY = "identity:session"
HISTORY_KEY_PREFIX = "history:"


def history_key(email: str) -> str:
    return f"{HISTORY_KEY_PREFIX}{email.strip().lower()}"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlKeyValueStore:
    def __init__(self, session_factory: Callable[[], DBSession]):
        self.session_factory = session_factory

    def get(self, key: str) -> str | None:
        with self.session_factory() as db:
            return Repository(db).get_value(key)

    def set(self, key: str, value: str) -> None:
        with self.session_factory() as db:
            Repository(db).set_value(key, value)

    def remove(self, key: str) -> None:
        with self.session_factory() as db:
            Repository(db).remove_value(key)


class IdentityStore:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def current(self) -> Identity | None:
        raw = self.kv.get(IDENTITY_KEY)
        if raw is None:
            return None
        try:
            return Identity.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable stored identity")
            return None

    def login(self, identity: Identity) -> None:
        self.kv.set(IDENTITY_KEY, identity.model_dump_json())

    def logout(self) -> None:
        self.kv.remove(IDENTITY_KEY)


class HistoryStore:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def list(self, identity: Identity) -> list[Session]:
        items = self._stored_items(identity)
        if items is None:
            logger.warning("Discarding unreadable history for %s", identity.email)
            return []

        sessions: list[Session] = []
        for item in items:
            try:
                sessions.append(Session.model_validate(item))
            except PydanticValidationError as exc:
                logger.warning("Skipping unreadable history entry for %s: %s", identity.email, exc)
        return sessions

    def get(self, identity: Identity, session_id: str) -> Session | None:
        for entry in self.list(identity):
            if entry.id == session_id:
                return entry
        return None

    def append(self, identity: Identity, session: Session) -> list[Session]:
        """Store ``session`` as the newest entry.

        An earlier entry with the same session id is replaced rather than
        kept as a duplicate. Every other stored item is written back as it
        was, readable or not. When the stored value is not a JSON list it is
        left alone and nothing is saved.
        """
        items = self._stored_items(identity)
        if items is None:
            logger.error(
                "Refusing to overwrite unreadable history of %s; session=%s not saved",
                identity.email,
                session.id,
            )
            return []

        kept = [item for item in items if not (isinstance(item, dict) and item.get("id") == session.id)]
        payload = json.dumps([session.model_dump(mode="json"), *kept])
        self.kv.set(history_key(identity.email), payload)
        logger.info("Saved session=%s to history of %s (%d entries)", session.id, identity.email, len(kept) + 1)
        return self.list(identity)

    def _stored_items(self, identity: Identity) -> list[Any] | None:
        """Raw stored items; ``None`` when the value is not a JSON list."""
        raw = self.kv.get(history_key(identity.email))
        if raw is None:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return items if isinstance(items, list) else None
