import json
import re
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_list(raw: Any) -> list[str]:
    """Parse a JSON list or a comma/space separated string into a list."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    # Prefer JSON, but tolerate plain strings so a misconfigured deployment
    # does not crash at startup.
    if raw.startswith(("[", '"')):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()

    return [p for p in re.split(r"[,\s]+", raw) if p]


def _parse_cors_origins(raw: Any) -> list[str]:
    items = _parse_list(raw)
    if "*" in items:
        return ["*"]

    origins: list[str] = []
    for part in items:
        if "://" in part:
            origins.append(part)
            continue
        # Browsers include the scheme in the Origin header.
        origins.append(f"http://{part}")
        origins.append(f"https://{part}")

    seen: set[str] = set()
    result: list[str] = []
    for origin in origins:
        if origin in seen:
            continue
        seen.add(origin)
        result.append(origin)
    return result


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./restaurant.db"
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_pool_recycle: int = 300

    # Admin API (bearer token)
    admin_token: str = ""
    admin_email: str = ""
    restaurant_phone: str = ""

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Rate limiting settings
    rate_limit_enabled: bool = True
    rate_limit_ddos_enabled: bool = True
    rate_limit_cleanup_interval_seconds: int = 300
    rate_limit_fail_closed: bool = False  # If True, deny requests when the store fails
    rate_limit_whitelist: Annotated[list[str], NoDecode] = []
    # {"reservations": {"max_requests": 10}, ...}
    rate_limit_overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)

    # Redis settings (optional shared rate limit store)
    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "ratelimit"

    # Reservation capacity
    default_tables_per_slot: int = 20
    seats_per_table: int = 4
    max_days_ahead: int = 60
    same_day_lead_minutes: int = 120

    # Catering capacity
    catering_min_guests: int = 10
    catering_lead_time_days: int = 7
    catering_max_daily_capacity: int = 500

    # Notifications
    slack_webhook_url: str = ""
    notification_webhook_url: str = ""
    notification_timeout: float = 10.0

    # HTTP client settings
    httpx_timeout: float = 15.0
    httpx_connect_timeout: float = 5.0
    httpx_max_connections: int = 20
    httpx_max_keepalive_connections: int = 5

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("rate_limit_whitelist", mode="before")
    @classmethod
    def decode_whitelist(cls, v: Any) -> list[str]:
        return _parse_list(v)

    @field_validator("admin_token")
    @classmethod
    def strip_admin_token(cls, v: str) -> str:
        # Normalize accidental whitespace/newline from env/secret stores.
        return v.strip()

    @field_validator(
        "rate_limit_cleanup_interval_seconds",
        "default_tables_per_slot",
        "seats_per_table",
        "max_days_ahead",
        "catering_min_guests",
        "catering_max_daily_capacity",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate capacity and interval values are positive."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("httpx_timeout", "httpx_connect_timeout", "notification_timeout")
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
