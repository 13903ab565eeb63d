import pytest

from backend.auth import passwords
from backend.auth.authenticator import AuthFailure, AuthFailureReason, Authenticator, AuthSuccess
from backend.auth.credential_store import UserRecord

ADMIN = UserRecord(
    id=1,
    email='admin@example.com',
    name='Super Admin',
    password_digest=passwords.digest('password123'),
    role='superadmin',
)


@pytest.mark.parametrize(
    ('email', 'password'),
    [('', 'password123'), ('   ', 'password123'), ('admin@example.com', ''), ('admin@example.com', '  '), (None, None)],
)
def test_blank_credentials_fail_before_lookup(fake_credentials, email, password) -> None:
    credentials = fake_credentials([ADMIN])

    result = Authenticator(credentials, upgrade_digests=False).authenticate(email, password)

    assert result == AuthFailure(AuthFailureReason.INVALID_INPUT)
    assert credentials.calls == []


def test_unknown_email_is_user_not_found(fake_credentials) -> None:
    result = Authenticator(fake_credentials([ADMIN]), upgrade_digests=False).authenticate('nobody@example.com', 'x')

    assert result == AuthFailure(AuthFailureReason.USER_NOT_FOUND)


def test_wrong_password_is_invalid_password(fake_credentials) -> None:
    result = Authenticator(fake_credentials([ADMIN]), upgrade_digests=False).authenticate('admin@example.com', 'nope')

    assert result == AuthFailure(AuthFailureReason.INVALID_PASSWORD)


def test_unknown_email_and_wrong_password_share_a_message() -> None:
    assert AuthFailure(AuthFailureReason.USER_NOT_FOUND).message == AuthFailure(AuthFailureReason.INVALID_PASSWORD).message


def test_store_failure_is_database_error(fake_credentials) -> None:
    credentials = fake_credentials([ADMIN], fail_by_email=True)

    result = Authenticator(credentials, upgrade_digests=False).authenticate('admin@example.com', 'password123')

    assert result == AuthFailure(AuthFailureReason.DATABASE_ERROR)


def test_valid_credentials_return_user_without_digest(fake_credentials) -> None:
    result = Authenticator(fake_credentials([ADMIN]), upgrade_digests=False).authenticate('admin@example.com', 'password123')

    assert isinstance(result, AuthSuccess)
    assert result.user.to_dict() == {'id': 1, 'email': 'admin@example.com', 'name': 'Super Admin', 'role': 'superadmin'}
    assert not hasattr(result.user, 'password_digest')


def test_email_match_is_case_sensitive(fake_credentials) -> None:
    result = Authenticator(fake_credentials([ADMIN]), upgrade_digests=False).authenticate('Admin@example.com', 'password123')

    assert result == AuthFailure(AuthFailureReason.USER_NOT_FOUND)


def test_legacy_digest_is_upgraded_after_successful_sign_in(fake_credentials) -> None:
    credentials = fake_credentials([ADMIN])

    result = Authenticator(credentials, upgrade_digests=True).authenticate('admin@example.com', 'password123')

    assert isinstance(result, AuthSuccess)
    upgraded = credentials.records[1].password_digest
    assert upgraded.startswith(passwords.BCRYPT_PREFIX)
    assert passwords.verify('password123', upgraded)


def test_failed_upgrade_does_not_fail_sign_in(fake_credentials) -> None:
    credentials = fake_credentials([ADMIN], fail_updates=True)

    result = Authenticator(credentials, upgrade_digests=True).authenticate('admin@example.com', 'password123')

    assert isinstance(result, AuthSuccess)
    assert credentials.records[1].password_digest == passwords.digest('password123')


def test_tagged_digest_is_not_rewritten(fake_credentials) -> None:
    record = UserRecord(id=3, email='j@example.com', name='J', password_digest=passwords.hash_password('pw'), role='judge')
    credentials = fake_credentials([record])

    result = Authenticator(credentials, upgrade_digests=True).authenticate('j@example.com', 'pw')

    assert isinstance(result, AuthSuccess)
    assert ('update', 3) not in credentials.calls


def test_incomplete_account_record_is_database_error(fake_credentials) -> None:
    record = UserRecord(id=4, email='x@example.com', name='', password_digest=passwords.digest('pw'), role='judge')

    result = Authenticator(fake_credentials([record]), upgrade_digests=False).authenticate('x@example.com', 'pw')

    assert result == AuthFailure(AuthFailureReason.DATABASE_ERROR)
