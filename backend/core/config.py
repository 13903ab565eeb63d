import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL")
DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])

SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "change-me")
SESSION_ALGORITHM = os.getenv("SESSION_ALGORITHM", "HS256")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "votehub_session")
SESSION_COOKIE_MAX_AGE_DAYS = int(os.getenv("SESSION_COOKIE_MAX_AGE_DAYS", "30"))
SESSION_COOKIE_SECURE = _get_bool(os.getenv("SESSION_COOKIE_SECURE"), default=False)

PASSWORD_UPGRADE_ON_LOGIN = _get_bool(os.getenv("PASSWORD_UPGRADE_ON_LOGIN"), default=True)

LOGIN_PAGE = os.getenv("LOGIN_PAGE", "/auth/login")
DEFAULT_PAGE = os.getenv("DEFAULT_PAGE", "/submissions")

SEED_PASSWORD = os.getenv("SEED_PASSWORD", "password123")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and SESSION_SECRET_KEY == "change-me":
        raise RuntimeError("SESSION_SECRET_KEY must be set in production.")
    if APP_ENV.lower() == "production" and not SESSION_COOKIE_SECURE:
        raise RuntimeError("SESSION_COOKIE_SECURE must be enabled in production.")
