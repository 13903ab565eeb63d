from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config


def encode_session_slot(value: str, expires_days: int | None = None) -> str:
    expire_days = expires_days or config.SESSION_COOKIE_MAX_AGE_DAYS
    now = datetime.now(timezone.utc)
    payload = {"slot": value, "iat": now, "exp": now + timedelta(days=expire_days)}
    return jwt.encode(payload, config.SESSION_SECRET_KEY, algorithm=config.SESSION_ALGORITHM)


def decode_session_slot(token: str) -> str:
    payload = jwt.decode(token, config.SESSION_SECRET_KEY, algorithms=[config.SESSION_ALGORITHM])
    slot = payload.get("slot")
    if not isinstance(slot, str):
        raise jwt.InvalidTokenError("Session token has no slot")
    return slot
