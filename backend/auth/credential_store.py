"""
Read/write access to the `users` table for the auth core.

Lookups raise UserNotFoundError when the row is absent and
CredentialStoreError for anything that prevented an answer (connection
failures, timeouts, driver errors). Callers decide which of the two they can
tolerate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.user import User

logger = logging.getLogger(__name__)

UserId = Union[int, str]


class UserNotFoundError(LookupError):
    """No user row matches the lookup key."""


class CredentialStoreError(Exception):
    """The lookup could not be completed; the row may or may not exist."""


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    name: str
    password_digest: str
    role: str | None


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        email=user.email,
        name=user.name,
        password_digest=user.password_digest,
        role=user.role,
    )


class CredentialStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _find_one(self, criterion, description: str) -> UserRecord:
        db = self._session_factory()
        try:
            user = db.query(User).filter(criterion).first()
        except SQLAlchemyError as exc:
            logger.exception('User lookup by %s failed.', description)
            raise CredentialStoreError(f'Lookup by {description} failed') from exc
        finally:
            db.close()
        if user is None:
            raise UserNotFoundError(description)
        return _to_record(user)

    def find_by_id(self, user_id: UserId) -> UserRecord:
        try:
            key = int(user_id)
        except (TypeError, ValueError) as exc:
            raise UserNotFoundError('id') from exc
        return self._find_one(User.id == key, 'id')

    def find_by_email(self, email: str) -> UserRecord:
        return self._find_one(User.email == email, 'email')

    def update_password_digest(self, user_id: int, password_digest: str) -> None:
        db = self._session_factory()
        try:
            updated = db.query(User).filter(User.id == user_id).update(
                {User.password_digest: password_digest},
                synchronize_session=False,
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise CredentialStoreError('Password digest update failed') from exc
        finally:
            db.close()
        if not updated:
            raise UserNotFoundError('id')
