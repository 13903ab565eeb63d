"""
Startup reconciliation of a cached session against the credential store.

The database is authoritative for roles, but a session is only discarded when
the account is confirmed gone. If the store cannot be reached the cached
session is kept as-is so a flaky connection does not sign people out.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from backend.auth.credential_store import CredentialStore, CredentialStoreError, UserNotFoundError, UserRecord
from backend.auth.roles import normalize_role
from backend.auth.session_store import SessionStore, SessionUser

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class SessionReconciler:
    def __init__(self, store: SessionStore, credentials: CredentialStore):
        self._store = store
        self._credentials = credentials
        self.state = SessionState.LOADING
        self.session: Optional[SessionUser] = None

    @property
    def role(self) -> Optional[str]:
        return self.session.role if self.session else None

    def reconcile(self) -> Optional[SessionUser]:
        if self.state is not SessionState.LOADING:
            return self.session

        cached = self._store.load()
        if cached is None:
            return self._resolve(None)

        try:
            record = self._credentials.find_by_id(cached.id)
        except UserNotFoundError:
            return self._reconcile_by_email(cached)
        except CredentialStoreError:
            logger.warning('Could not verify session for user %s; using cached session.', cached.id)
            return self._resolve(cached)

        return self._resolve(self._merge(cached, record))

    def _reconcile_by_email(self, cached: SessionUser) -> Optional[SessionUser]:
        try:
            record = self._credentials.find_by_email(cached.email)
        except UserNotFoundError:
            logger.info('User %s no longer exists; clearing session.', cached.id)
            self._store.clear()
            return self._resolve(None)
        except CredentialStoreError:
            logger.warning('Could not verify session for %s by email; using cached session.', cached.email)
            return self._resolve(cached)

        return self._resolve(self._merge(cached, record))

    def _merge(self, cached: SessionUser, record: UserRecord) -> SessionUser:
        merged = SessionUser(
            id=record.id,
            email=record.email,
            name=record.name or cached.name,
            role=normalize_role(record.role),
        )
        if merged.role != cached.role:
            logger.warning(
                'Role drift for user %s: session has %r, database has %r. Using database role.',
                record.id,
                cached.role,
                record.role,
            )
        if merged != cached:
            self._store.save(merged)
        return merged

    def _resolve(self, session: Optional[SessionUser]) -> Optional[SessionUser]:
        self.session = session
        self.state = SessionState.AUTHENTICATED if session else SessionState.UNAUTHENTICATED
        return session
