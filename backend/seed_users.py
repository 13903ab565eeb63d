"""Create the tables and upsert the sample VoteHub accounts.

Usage:
    python -m backend.seed_users

Passwords come from SEED_PASSWORD and are stored as bcrypt digests.
"""
import sys

from sqlalchemy.exc import SQLAlchemyError

from backend.auth import roles
from backend.auth.passwords import hash_password
from backend.core import config
from backend.database import Base, SessionLocal, engine, ensure_user_schema
from backend.models import submission, vote  # noqa: F401
from backend.models.user import User

SAMPLE_USERS = [
    ('admin@example.com', 'Super Admin', roles.SUPERADMIN),
    ('judge1@example.com', 'Judge 1', roles.JUDGE),
    ('judge2@example.com', 'Judge 2', roles.JUDGE),
]


def seed_users(db, password: str) -> list[str]:
    seeded = []
    for email, name, role in SAMPLE_USERS:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(email=email)
            db.add(user)
        user.name = name
        user.role = role
        user.password_digest = hash_password(password)
        seeded.append(email)
    db.commit()
    return seeded


def main() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
        db = SessionLocal()
        try:
            seeded = seed_users(db, config.SEED_PASSWORD)
        finally:
            db.close()
    except SQLAlchemyError as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        sys.exit(1)
    for email in seeded:
        print(f"Seeded {email}")


if __name__ == "__main__":
    main()
