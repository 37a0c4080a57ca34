from pydantic_settings import BaseSettings
from typing import List
from pydantic import ValidationError, field_validator
import sys


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./lms_local.db"
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:5173",
    ]

    ENVIRONMENT: str = "development"

    # --- Auth configuration ---
    # Key used to sign the JWTs.
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_LOCK_MINUTES: int = 30

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 1
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    # Progress engine
    PROGRESS_UPDATE_MAX_RETRIES: int = 3
    CERTIFICATE_ID_MAX_RETRIES: int = 3

    class Config:
        env_file = ".env"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Return a URL usable by the synchronous engine.

        Managed Postgres providers still hand out ``postgres://`` URLs, which
        SQLAlchemy no longer accepts. Async driver suffixes copied from other
        deployments (``+asyncpg``, ``+aiosqlite``) are dropped as well since
        every session in this service is synchronous.
        """

        if not isinstance(value, str):
            return value

        if value.startswith("postgres://"):
            value = "postgresql://" + value[len("postgres://") :]

        for suffix in ("+asyncpg", "+aiosqlite"):
            scheme, sep, rest = value.partition("://")
            if sep and scheme.endswith(suffix):
                value = scheme[: -len(suffix)] + sep + rest

        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Pretty-print missing or invalid environment variables.

    The exception bubbles up during module import, which makes the faulty
    variable hard to spot in server logs. We print the structured payload
    before re-raising.
    """

    header = "Configuration error while loading environment variables:"
    print(header, file=sys.stderr)

    details = exc.errors()
    if details:
        for error in details:
            location = ".".join(str(part) for part in error.get("loc", ()))
            message = error.get("msg", "Unknown validation error")
            type_name = error.get("type")
            hint_parts = [message]
            if type_name:
                hint_parts.append(f"(type={type_name})")
            hint = " ".join(hint_parts)
            print(f"  - {location}: {hint}", file=sys.stderr)
    else:
        print(exc, file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
