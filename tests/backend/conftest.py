import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.auth.credential_store import CredentialStoreError, UserNotFoundError, UserRecord  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models import submission, user, vote  # noqa: E402,F401


class FakeCredentialStore:
    """In-memory stand-in for CredentialStore that records every call."""

    def __init__(self, records=(), fail_by_id=False, fail_by_email=False, fail_updates=False):
        self.records = {record.id: record for record in records}
        self.fail_by_id = fail_by_id
        self.fail_by_email = fail_by_email
        self.fail_updates = fail_updates
        self.calls: list[tuple[str, object]] = []

    def find_by_id(self, user_id):
        self.calls.append(('id', user_id))
        if self.fail_by_id:
            raise CredentialStoreError('connection refused')
        if user_id not in self.records:
            raise UserNotFoundError('id')
        return self.records[user_id]

    def find_by_email(self, email):
        self.calls.append(('email', email))
        if self.fail_by_email:
            raise CredentialStoreError('connection refused')
        for record in self.records.values():
            if record.email == email:
                return record
        raise UserNotFoundError('email')

    def update_password_digest(self, user_id, password_digest):
        self.calls.append(('update', user_id))
        if self.fail_updates:
            raise CredentialStoreError('read only')
        record = self.records[user_id]
        self.records[user_id] = UserRecord(
            id=record.id,
            email=record.email,
            name=record.name,
            password_digest=password_digest,
            role=record.role,
        )


@pytest.fixture
def fake_credentials():
    return FakeCredentialStore


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False},
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
