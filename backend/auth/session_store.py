"""
Client-held session slot.

The session is a single JSON document stored under one key of a key-value
storage with localStorage semantics. The web layer backs that storage with a
signed cookie (see `dependencies.CookieStorage`); tests and scripts use
`MemoryStorage`.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional, Protocol, Union

from backend.auth.roles import normalize_role

logger = logging.getLogger(__name__)

SESSION_KEY = "user"
SESSION_SCHEMA_VERSION = 1
REQUIRED_FIELDS = ("id", "email", "name")


class InvalidUserDataError(ValueError):
    """User data is missing id, email or name."""


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


@dataclass(frozen=True)
class SessionUser:
    id: Union[int, str]
    email: str
    name: str
    role: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _field(user: Any, name: str) -> Any:
    if isinstance(user, Mapping):
        return user.get(name)
    return getattr(user, name, None)


def to_session_user(user: Any) -> SessionUser:
    """Build a SessionUser from a mapping or an object with matching attributes.

    Raises InvalidUserDataError when id, email or name is missing. The role is
    normalized to a valid value.
    """
    values = {name: _field(user, name) for name in REQUIRED_FIELDS}
    missing = [name for name, value in values.items() if value is None or value == ""]
    if missing:
        raise InvalidUserDataError(f"Missing user fields: {', '.join(missing)}")
    return SessionUser(role=normalize_role(_field(user, "role")), **values)


class SessionStore:
    def __init__(self, storage: KeyValueStorage, key: str = SESSION_KEY):
        self._storage = storage
        self._key = key

    def load(self) -> Optional[SessionUser]:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict) or payload.get("v") != SESSION_SCHEMA_VERSION:
                raise InvalidUserDataError("Unsupported session payload")
            return to_session_user(payload)
        except ValueError:
            # json.JSONDecodeError and InvalidUserDataError are both ValueErrors.
            logger.warning("Discarding malformed session payload.")
            self.clear()
            return None

    def save(self, user: Any) -> SessionUser:
        session_user = to_session_user(user)
        payload = {"v": SESSION_SCHEMA_VERSION, **session_user.to_dict()}
        self._storage.set_item(self._key, json.dumps(payload))
        return session_user

    def clear(self) -> None:
        self._storage.remove_item(self._key)
