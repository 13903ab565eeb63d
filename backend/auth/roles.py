"""
Role constants shared by the session store, reconciler and route guard.

Roles are stored as plain strings in the `users` table; anything outside
VALID_ROLES is treated as `judge` wherever a session is built.
"""

from __future__ import annotations

from typing import Optional

JUDGE = "judge"
SUPERADMIN = "superadmin"

VALID_ROLES = frozenset({JUDGE, SUPERADMIN})
DEFAULT_ROLE = JUDGE


def normalize_role(role: Optional[str]) -> str:
    if role in VALID_ROLES:
        return role
    return DEFAULT_ROLE


__all__ = ["JUDGE", "SUPERADMIN", "VALID_ROLES", "DEFAULT_ROLE", "normalize_role"]
