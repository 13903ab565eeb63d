import logging
from typing import Optional

import jwt
from fastapi import Depends, Request, Response

from backend.auth import jwt_handler
from backend.auth.context import AuthContext
from backend.auth.credential_store import CredentialStore
from backend.auth.guard import Redirect, authorize
from backend.auth.session_store import SESSION_KEY, SessionStore, SessionUser
from backend.core import config
from backend.database import SessionLocal

logger = logging.getLogger(__name__)

_UNSET = object()


class CookieStorage:
    """Key-value storage for the session slot, backed by one signed cookie.

    Reads come from the request cookie. Writes are buffered and applied to the
    outgoing response by the session middleware in `backend.main`.
    """

    def __init__(self, token: Optional[str]):
        self._value: Optional[str] = None
        self._pending = _UNSET
        if token:
            try:
                self._value = jwt_handler.decode_session_slot(token)
            except jwt.InvalidTokenError:
                logger.warning('Ignoring invalid session cookie.')
                self._pending = None

    @classmethod
    def from_request(cls, request: Request) -> 'CookieStorage':
        return cls(request.cookies.get(config.SESSION_COOKIE_NAME))

    def get_item(self, key: str) -> Optional[str]:
        if key != SESSION_KEY:
            return None
        return self._value

    def set_item(self, key: str, value: str) -> None:
        if key != SESSION_KEY:
            raise KeyError(key)
        self._value = value
        self._pending = value

    def remove_item(self, key: str) -> None:
        if key != SESSION_KEY:
            return
        self._value = None
        self._pending = None

    @property
    def is_dirty(self) -> bool:
        return self._pending is not _UNSET

    def apply(self, response: Response) -> None:
        if not self.is_dirty:
            return
        if self._pending is None:
            response.delete_cookie(config.SESSION_COOKIE_NAME, path='/')
            return
        response.set_cookie(
            config.SESSION_COOKIE_NAME,
            jwt_handler.encode_session_slot(self._pending),
            max_age=config.SESSION_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,
            httponly=True,
            secure=config.SESSION_COOKIE_SECURE,
            samesite='lax',
            path='/',
        )


class GuardRedirect(Exception):
    def __init__(self, target: str):
        super().__init__(target)
        self.target = target


def get_credential_store() -> CredentialStore:
    return CredentialStore(SessionLocal)


def get_auth_context(
    request: Request,
    credentials: CredentialStore = Depends(get_credential_store),
) -> AuthContext:
    auth = getattr(request.state, 'auth', None)
    if auth is None:
        storage = CookieStorage.from_request(request)
        request.state.session_storage = storage
        auth = AuthContext(SessionStore(storage), credentials)
        auth.start()
        request.state.auth = auth
    return auth


def require_roles(*roles: str):
    required = frozenset(roles)

    def dependency(auth: AuthContext = Depends(get_auth_context)) -> SessionUser:
        decision = authorize(auth.session, required)
        if isinstance(decision, Redirect):
            raise GuardRedirect(decision.target)
        return auth.session

    return dependency
