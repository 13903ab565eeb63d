"""
Per-request authentication context handed to route handlers.

One AuthContext is built for each request (see `dependencies.get_auth_context`)
and owns that request's view of the session. Nothing here is module-global.
"""
from __future__ import annotations

import logging
from typing import Optional

from backend.auth.authenticator import AuthFailure, AuthFailureReason, AuthResult, Authenticator, AuthSuccess
from backend.auth.credential_store import CredentialStore
from backend.auth.reconciler import SessionReconciler, SessionState
from backend.auth.session_store import InvalidUserDataError, SessionStore, SessionUser

logger = logging.getLogger(__name__)


class AuthContext:
    def __init__(self, store: SessionStore, credentials: CredentialStore, authenticator: Authenticator | None = None):
        self._store = store
        self._reconciler = SessionReconciler(store, credentials)
        self._authenticator = authenticator or Authenticator(credentials)
        self._session: Optional[SessionUser] = None

    @property
    def session(self) -> Optional[SessionUser]:
        return self._session

    @property
    def is_loading(self) -> bool:
        return self._reconciler.state is SessionState.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def start(self) -> Optional[SessionUser]:
        if self.is_loading:
            self._session = self._reconciler.reconcile()
        return self._session

    def sign_in(self, email: str | None, password: str | None) -> AuthResult:
        result = self._authenticator.authenticate(email, password)
        if not isinstance(result, AuthSuccess):
            return result
        try:
            self._session = self._store.save(result.user)
        except InvalidUserDataError:
            logger.error('Refusing to store incomplete session for user %s.', result.user.id)
            self.sign_out()
            return AuthFailure(AuthFailureReason.DATABASE_ERROR)
        logger.info('User %s signed in as %s.', self._session.id, self._session.role)
        return AuthSuccess(self._session)

    def sign_out(self) -> None:
        self._store.clear()
        self._session = None
