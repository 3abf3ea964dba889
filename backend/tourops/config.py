# backend/tourops/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tourops.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///tourops.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Relational store pool (ignored for SQLite)
    DB_POOL_SIZE = int(os.environ.get("DB_POOL_SIZE", "10"))
    DB_CONNECT_TIMEOUT = int(os.environ.get("DB_CONNECT_TIMEOUT", "10"))

    # Outbound notification mail
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "465"))
    SMTP_SECURE = _env_bool("SMTP_SECURE", True)  # True for 465 (SSL), False for 587 (STARTTLS)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    MAIL_FROM = os.environ.get("MAIL_FROM")
    MAIL_TO = os.environ.get("MAIL_TO")
    MAIL_TIMEOUT_SECONDS = float(os.environ.get("MAIL_TIMEOUT_SECONDS", "5"))
    NOTIFICATION_EMAILS_ENABLED = _env_bool("NOTIFICATION_EMAILS_ENABLED", True)

    # Upcoming-events scanner
    UPCOMING_HORIZON_DAYS = int(os.environ.get("UPCOMING_HORIZON_DAYS", "30"))
    CRON_SECRET = os.environ.get("CRON_SECRET")

    @staticmethod
    def engine_options(database_uri: str, pool_size: int, connect_timeout: int) -> dict:
        """
        Pool settings for the query gateway.

        pool_timeout bounds how long a request waits for a connection; an
        exhausted pool raises sqlalchemy.exc.TimeoutError, which the route
        layer reports as a DB_TIMEOUT dependency error.
        """
        if database_uri.startswith("sqlite"):
            return {}
        options = {
            "pool_pre_ping": True,
            "pool_size": pool_size,
            "pool_timeout": connect_timeout,
            "pool_recycle": 300,
        }
        if database_uri.startswith(("mysql", "postgresql")):
            options["connect_args"] = {"connect_timeout": connect_timeout}
        return options
