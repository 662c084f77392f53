from dataclasses import dataclass
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


load_dotenv()


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    timezone: str
    item_prefix: str
    register_command: str
    action_timeout_seconds: float
    max_concurrent_actions: int
    store_max_retries: int
    store_retry_backoff_seconds: float
    schedule_hour: int
    schedule_minute: int


def _number(name: str, default: str, cast, *, minimum: float) -> int | float:
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {raw!r}")
    return value


def get_settings() -> Settings:
    timezone = os.getenv("TIMEZONE", "UTC")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"TIMEZONE {timezone!r} is not a known time zone") from exc

    register_command = os.getenv("REGISTER_COMMAND", "php bin/console app:remd:reg")
    if not register_command.strip():
        raise ConfigError("REGISTER_COMMAND must not be empty")

    schedule_hour = _number("SCHEDULE_HOUR", "23", int, minimum=0)
    schedule_minute = _number("SCHEDULE_MINUTE", "0", int, minimum=0)
    if schedule_hour > 23 or schedule_minute > 59:
        raise ConfigError(f"invalid schedule time {schedule_hour}:{schedule_minute:02d}")

    return Settings(
        app_name=os.getenv("APP_NAME", "referral-dispatch"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./clinic.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        timezone=timezone,
        item_prefix=os.getenv("ITEM_PREFIX", "n-"),
        register_command=register_command,
        action_timeout_seconds=_number("ACTION_TIMEOUT_SECONDS", "300", float, minimum=0.001),
        max_concurrent_actions=_number("MAX_CONCURRENT_ACTIONS", "1", int, minimum=1),
        store_max_retries=_number("STORE_MAX_RETRIES", "2", int, minimum=0),
        store_retry_backoff_seconds=_number("STORE_RETRY_BACKOFF_SECONDS", "1", float, minimum=0),
        schedule_hour=schedule_hour,
        schedule_minute=schedule_minute,
    )
