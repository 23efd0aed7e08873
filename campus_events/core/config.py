import logging
import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

FALLBACK_JWT_SECRET = "supersecret"


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./campus_events.db")

JWT_SECRET = os.getenv("JWT_SECRET") or FALLBACK_JWT_SECRET
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "token")
# Independent of the token expiry (JWT_EXPIRES_DAYS); the two are not kept in sync.
AUTH_COOKIE_MAX_AGE_SECONDS = int(os.getenv("AUTH_COOKIE_MAX_AGE_SECONDS", str(60 * 60 * 24)))
AUTH_COOKIE_SECURE = _get_bool(os.getenv("AUTH_COOKIE_SECURE"), default=APP_ENV.lower() == "production")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])


@dataclass(frozen=True)
class AuthSettings:
    """Everything the token service and session guards need, resolved once."""

    secret_key: str
    algorithm: str = "HS256"
    token_lifetime: timedelta = timedelta(days=7)
    cookie_name: str = "token"
    cookie_max_age: int = 60 * 60 * 24
    cookie_secure: bool = False
    cookie_samesite: str = "lax"

    @property
    def uses_fallback_secret(self) -> bool:
        return self.secret_key == FALLBACK_JWT_SECRET


def load_auth_settings() -> AuthSettings:
    return AuthSettings(
        secret_key=JWT_SECRET,
        algorithm=JWT_ALGORITHM,
        token_lifetime=timedelta(days=JWT_EXPIRES_DAYS),
        cookie_name=AUTH_COOKIE_NAME,
        cookie_max_age=AUTH_COOKIE_MAX_AGE_SECONDS,
        cookie_secure=AUTH_COOKIE_SECURE,
    )


def validate_runtime_config(settings: AuthSettings) -> None:
    if not settings.uses_fallback_secret:
        return
    if APP_ENV.lower() == "production":
        logger.error("JWT_SECRET is not set in production; tokens are signed with the fallback secret.")
    else:
        logger.warning("JWT_SECRET is not set; tokens are signed with the fallback secret.")
