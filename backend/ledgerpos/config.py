# backend/ledgerpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/ledgerpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///ledgerpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # SQLite waits this long on a locked database before raising OperationalError
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"timeout": float(os.environ.get("SQLITE_BUSY_TIMEOUT", "15"))},
    } if SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

    # Retry policy for deadlocks / lock timeouts / lost compare-and-set races
    DB_RETRY_ATTEMPTS = int(os.environ.get("DB_RETRY_ATTEMPTS", "5"))
    DB_RETRY_BACKOFF_SECONDS = float(os.environ.get("DB_RETRY_BACKOFF_SECONDS", "0.05"))

    # Upper bound on staleness for cached product/customer/staff views
    RECORD_CACHE_TTL_SECONDS = int(os.environ.get("RECORD_CACHE_TTL_SECONDS", "60"))

    # Set by the upstream authenticator (reverse proxy / gateway)
    STAFF_ID_HEADER = os.environ.get("STAFF_ID_HEADER", "X-Staff-Id")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
