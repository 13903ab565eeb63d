"""
Email/password sign-in against the credential store.

`authenticate` never raises for expected failures; every outcome is an
AuthSuccess or an AuthFailure carrying one of the AuthFailureReason values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from backend.auth import passwords
from backend.auth.credential_store import CredentialStore, CredentialStoreError, UserNotFoundError
from backend.auth.session_store import InvalidUserDataError, SessionUser, to_session_user
from backend.core import config

logger = logging.getLogger(__name__)


class AuthFailureReason(str, Enum):
    USER_NOT_FOUND = "UserNotFound"
    INVALID_PASSWORD = "InvalidPassword"
    DATABASE_ERROR = "DatabaseError"
    INVALID_INPUT = "InvalidInput"


FAILURE_MESSAGES = {
    AuthFailureReason.INVALID_INPUT: "Please fill in all fields.",
    AuthFailureReason.USER_NOT_FOUND: "Invalid email or password.",
    AuthFailureReason.INVALID_PASSWORD: "Invalid email or password.",
    AuthFailureReason.DATABASE_ERROR: "Sign-in is temporarily unavailable. Please try again.",
}


@dataclass(frozen=True)
class AuthSuccess:
    user: SessionUser
    success: bool = True


@dataclass(frozen=True)
class AuthFailure:
    reason: AuthFailureReason
    success: bool = False

    @property
    def message(self) -> str:
        return FAILURE_MESSAGES[self.reason]


AuthResult = Union[AuthSuccess, AuthFailure]


class Authenticator:
    def __init__(self, credentials: CredentialStore, upgrade_digests: bool | None = None):
        self._credentials = credentials
        if upgrade_digests is None:
            upgrade_digests = config.PASSWORD_UPGRADE_ON_LOGIN
        self._upgrade_digests = upgrade_digests

    def authenticate(self, email: str | None, password: str | None) -> AuthResult:
        if not email or not email.strip() or not password or not password.strip():
            return AuthFailure(AuthFailureReason.INVALID_INPUT)

        try:
            record = self._credentials.find_by_email(email)
        except UserNotFoundError:
            return AuthFailure(AuthFailureReason.USER_NOT_FOUND)
        except CredentialStoreError:
            return AuthFailure(AuthFailureReason.DATABASE_ERROR)

        if not passwords.verify(password, record.password_digest):
            return AuthFailure(AuthFailureReason.INVALID_PASSWORD)

        try:
            user = to_session_user(record)
        except InvalidUserDataError:
            logger.error('User %s has an incomplete account record.', record.id)
            return AuthFailure(AuthFailureReason.DATABASE_ERROR)

        if self._upgrade_digests and passwords.needs_upgrade(record.password_digest):
            self._upgrade_digest(record.id, password)

        return AuthSuccess(user)

    def _upgrade_digest(self, user_id: int, password: str) -> None:
        try:
            self._credentials.update_password_digest(user_id, passwords.hash_password(password))
        except (CredentialStoreError, UserNotFoundError):
            logger.warning('Could not upgrade legacy password digest for user %s.', user_id)
        else:
            logger.info('Upgraded legacy password digest for user %s.', user_id)
