# coursehub/core/config.py
from __future__ import annotations

import os

DEFAULT_SECRET = "change_me_for_prod"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


class Settings:
    """
    Runtime settings read from the environment.

    `main` loads .env files before the first `get_settings()` call, so values
    from the file are visible here.
    """

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Store / queue
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./coursehub.db")
        self.REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

        # Auth
        self.SECRET_KEY = os.getenv("SECRET_KEY", DEFAULT_SECRET)
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

        # Notification worker
        self.REMINDER_QUEUE = os.getenv("REMINDER_QUEUE", "facilitator_reminders")
        self.ALERT_QUEUE = os.getenv("ALERT_QUEUE", "manager_notifications")
        self.DEAD_LETTER_QUEUE = os.getenv("DEAD_LETTER_QUEUE", "notifications_dead_letter")
        self.QUEUE_POP_TIMEOUT_SECONDS = float(os.getenv("QUEUE_POP_TIMEOUT_SECONDS", "5"))
        self.DISPATCH_BACKOFF_SECONDS = float(os.getenv("DISPATCH_BACKOFF_SECONDS", "5"))
        self.SCAN_INTERVAL_HOURS = float(os.getenv("SCAN_INTERVAL_HOURS", "24"))
        self.APP_TIMEZONE = os.getenv("APP_TIMEZONE")

        # Bootstrap switches
        self.ENABLE_NOTIFICATION_WORKER = _env_bool("ENABLE_NOTIFICATION_WORKER", "1")
        self.ENABLE_CREATE_ALL = _env_bool("ENABLE_CREATE_ALL", "1")
        self.SEED_DEFAULT_ADMIN = _env_bool("SEED_DEFAULT_ADMIN", "1")
        self.SEED_SAMPLE_DATA = _env_bool("SEED_SAMPLE_DATA", "1")

        self._validate()

    def _validate(self):
        if self.ENV != "dev" and self.SECRET_KEY == DEFAULT_SECRET:
            raise RuntimeError("SECRET_KEY must be set to a non-default value in non-dev environments")
        if self.QUEUE_POP_TIMEOUT_SECONDS <= 0:
            raise RuntimeError("QUEUE_POP_TIMEOUT_SECONDS must be positive")


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
