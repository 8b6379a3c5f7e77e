"""Lenient readers for store records.

Records come back from the store as plain dicts written by older versions of
the app or edited by hand; a missing or malformed numeric field reads as 0.
"""
from __future__ import annotations

from datetime import datetime

from ..time_utils import parse_iso_datetime


def int_field(record: dict, key: str, default: int = 0) -> int:
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def str_field(record: dict, key: str) -> str | None:
    value = record.get(key)
    if value is None:
        return None
    return str(value)


def datetime_field(record: dict, key: str) -> datetime | None:
    value = record.get(key)
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        return None
