from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


def build_connect_args(database_url: str, timeout_seconds: float) -> dict:
    backend_name = make_url(database_url).get_backend_name()
    if backend_name == 'sqlite':
        return {'timeout': timeout_seconds, 'check_same_thread': False}
    if backend_name == 'postgresql':
        # statement_timeout is in milliseconds
        return {
            'connect_timeout': max(1, int(timeout_seconds)),
            'options': f'-c statement_timeout={int(timeout_seconds * 1000)}',
        }
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=build_connect_args(config.DATABASE_URL, config.DB_TIMEOUT_SECONDS),
    pool_timeout=config.DB_TIMEOUT_SECONDS,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_checked_tables: set[str] = set()

USER_MIGRATION_STEPS = [
    ('name', "ALTER TABLE users ADD COLUMN name VARCHAR(255) NOT NULL DEFAULT ''"),
    ('role', "ALTER TABLE users ADD COLUMN role VARCHAR(50) NOT NULL DEFAULT 'judge'"),
    ('created_at', 'ALTER TABLE users ADD COLUMN created_at TIMESTAMP'),
    ('updated_at', 'ALTER TABLE users ADD COLUMN updated_at TIMESTAMP'),
]

SUBMISSION_MIGRATION_STEPS = [
    ('project_name', 'ALTER TABLE submissions ADD COLUMN project_name VARCHAR(255)'),
    ('services_used', 'ALTER TABLE submissions ADD COLUMN services_used TEXT'),
    ('git_repo_url', 'ALTER TABLE submissions ADD COLUMN git_repo_url TEXT'),
    ('created_at', 'ALTER TABLE submissions ADD COLUMN created_at TIMESTAMP'),
    ('updated_at', 'ALTER TABLE submissions ADD COLUMN updated_at TIMESTAMP'),
]

VOTE_MIGRATION_STEPS = [
    ('remarks', 'ALTER TABLE votes ADD COLUMN remarks TEXT'),
    ('updated_at', 'ALTER TABLE votes ADD COLUMN updated_at TIMESTAMP'),
]


def _ensure_columns(table_name: str, migration_steps: list[tuple[str, str]], indexes: list[str]) -> None:
    if table_name in _checked_tables:
        return

    with _schema_lock:
        if table_name in _checked_tables:
            return

        inspector = inspect(engine)

        if table_name not in inspector.get_table_names():
            _checked_tables.add(table_name)
            return

        existing_columns = {column['name'] for column in inspector.get_columns(table_name)}

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            for statement in indexes:
                connection.execute(text(statement))

        _checked_tables.add(table_name)


def ensure_user_schema() -> None:
    _ensure_columns(
        'users',
        USER_MIGRATION_STEPS,
        ['CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users(email)'],
    )


def ensure_submission_schema() -> None:
    _ensure_columns(
        'submissions',
        SUBMISSION_MIGRATION_STEPS,
        ['CREATE INDEX IF NOT EXISTS idx_submissions_created ON submissions(created_at)'],
    )


def ensure_vote_schema() -> None:
    _ensure_columns(
        'votes',
        VOTE_MIGRATION_STEPS,
        ['CREATE UNIQUE INDEX IF NOT EXISTS idx_votes_submission_judge ON votes(submission_id, judge_id)'],
    )
