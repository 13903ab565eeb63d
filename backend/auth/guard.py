"""Role-based access decisions for guarded views."""
from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Optional, Union

from backend.auth.session_store import SessionUser
from backend.core import config


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str


AccessDecision = Union[Allow, Redirect]


def authorize(
    session: Optional[SessionUser],
    required_roles: AbstractSet[str],
    login_page: str | None = None,
    default_page: str | None = None,
) -> AccessDecision:
    if session is None:
        return Redirect(login_page or config.LOGIN_PAGE)
    if session.role not in required_roles:
        return Redirect(default_page or config.DEFAULT_PAGE)
    return Allow()
