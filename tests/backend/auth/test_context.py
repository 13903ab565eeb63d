from backend.auth import passwords
from backend.auth.authenticator import AuthFailure, AuthFailureReason, Authenticator, AuthSuccess
from backend.auth.context import AuthContext
from backend.auth.credential_store import UserRecord
from backend.auth.guard import Allow, Redirect, authorize
from backend.auth.session_store import MemoryStorage, SessionStore

ADMIN = UserRecord(
    id=1,
    email='admin@example.com',
    name='Super Admin',
    password_digest=passwords.digest('password123'),
    role='superadmin',
)


def _context(credentials, store=None) -> AuthContext:
    store = store or SessionStore(MemoryStorage())
    return AuthContext(store, credentials, Authenticator(credentials, upgrade_digests=False))


def test_start_marks_context_loaded(fake_credentials) -> None:
    auth = _context(fake_credentials([ADMIN]))

    assert auth.is_loading is True
    assert auth.start() is None
    assert auth.is_loading is False
    assert auth.is_authenticated is False


def test_sign_in_persists_session_and_grants_superadmin_views(fake_credentials) -> None:
    store = SessionStore(MemoryStorage())
    auth = _context(fake_credentials([ADMIN]), store)
    auth.start()

    result = auth.sign_in('admin@example.com', 'password123')

    assert isinstance(result, AuthSuccess)
    assert auth.session.role == 'superadmin'
    assert store.load() == auth.session
    assert authorize(auth.session, {'superadmin'}) == Allow()
    assert isinstance(authorize(auth.session, {'judge'}), Redirect)


def test_failed_sign_in_leaves_store_empty(fake_credentials) -> None:
    store = SessionStore(MemoryStorage())
    auth = _context(fake_credentials([ADMIN]), store)

    result = auth.sign_in('admin@example.com', 'wrong')

    assert result == AuthFailure(AuthFailureReason.INVALID_PASSWORD)
    assert auth.session is None
    assert store.load() is None


def test_sign_out_twice_leaves_store_empty(fake_credentials) -> None:
    store = SessionStore(MemoryStorage())
    auth = _context(fake_credentials([ADMIN]), store)
    auth.sign_in('admin@example.com', 'password123')

    auth.sign_out()
    assert store.load() is None
    auth.sign_out()
    assert store.load() is None
    assert auth.session is None


def test_new_context_restores_signed_in_session(fake_credentials) -> None:
    credentials = fake_credentials([ADMIN])
    store = SessionStore(MemoryStorage())
    _context(credentials, store).sign_in('admin@example.com', 'password123')

    restored = _context(credentials, store)

    assert restored.start().email == 'admin@example.com'
    assert restored.is_authenticated is True
