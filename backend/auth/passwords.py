"""
Password digests.

Two formats coexist in the `users.password` column:

- legacy digests: base64 of the UTF-8 password, untagged. They are a
  reversible encoding, kept only so existing accounts can still sign in.
- tagged digests: ``bcrypt$<bcrypt hash>``. Written for new accounts and
  for legacy accounts on their next successful sign-in.
"""
from __future__ import annotations

import base64
import secrets

import bcrypt

BCRYPT_PREFIX = "bcrypt$"


def digest(plaintext: str) -> str:
    """Legacy encoding of ``plaintext``."""
    return base64.b64encode(plaintext.encode("utf-8")).decode("ascii")


def hash_password(plaintext: str) -> str:
    hashed = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt())
    return BCRYPT_PREFIX + hashed.decode("ascii")


def needs_upgrade(stored_digest: str) -> bool:
    return not stored_digest.startswith(BCRYPT_PREFIX)


def verify(plaintext: str, stored_digest: str | None) -> bool:
    if not stored_digest:
        return False
    if stored_digest.startswith(BCRYPT_PREFIX):
        hashed = stored_digest[len(BCRYPT_PREFIX):].encode("ascii")
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed)
        except ValueError:
            # Malformed bcrypt payload in the column.
            return False
    return secrets.compare_digest(digest(plaintext), stored_digest)
