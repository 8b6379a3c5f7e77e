# backend/backoffice/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///backoffice.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" persists through SQLAlchemy; "memory" keeps records in-process only
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "sql")

    # Calendar used for P&L period filters and month buckets
    REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", "UTC")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "0"))
    SALES_PAGE_SIZE = int(os.environ.get("SALES_PAGE_SIZE", "10"))

    # Placeholder single-operator login; generate the hash with `flask system hash-password`
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL")
    ADMIN_PASSWORD_HASH = os.environ.get("ADMIN_PASSWORD_HASH")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
