# backend/config.py
import os
from datetime import timedelta


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-jwt-secret-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "mysql+pymysql://root:@localhost/fitpet"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 🔐 JWT config
    JWT_TOKEN_LOCATION = ["headers"]     # where to look for tokens
    JWT_HEADER_NAME = "Authorization"    # header name
    JWT_HEADER_TYPE = "Bearer"           # expected prefix
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)  # dev: 7 days

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Clock: IANA zone used for "today"; empty = server local time
    TIMEZONE = os.environ.get("TIMEZONE", "Asia/Bahrain")

    # Background jobs (hours are in TIMEZONE)
    SCHEDULER_ENABLED = _bool_env("SCHEDULER_ENABLED", False)
    SKIP_CHECK_HOUR = int(os.environ.get("SKIP_CHECK_HOUR", "1"))
    DECAY_HOUR = int(os.environ.get("DECAY_HOUR", "3"))
    CLEANUP_WEEKDAY = os.environ.get("CLEANUP_WEEKDAY", "monday")
    CLEANUP_HOUR = int(os.environ.get("CLEANUP_HOUR", "2"))

    # user.created outbox
    OUTBOX_MAX_ATTEMPTS = int(os.environ.get("OUTBOX_MAX_ATTEMPTS", "5"))
    OUTBOX_DRAIN_INTERVAL_SECONDS = int(os.environ.get("OUTBOX_DRAIN_INTERVAL_SECONDS", "60"))

    # /api/debug time travel endpoints
    DEBUG_TIME_CONTROL = _bool_env("DEBUG_TIME_CONTROL", False)

    # Merge this week's temporary reschedules into GET /api/schedule
    SCHEDULE_VIEW_APPLIES_RESCHEDULES = _bool_env("SCHEDULE_VIEW_APPLIES_RESCHEDULES", True)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    TIMEZONE = ""
    SCHEDULER_ENABLED = False
    DEBUG_TIME_CONTROL = True
