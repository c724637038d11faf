"""Datetime helpers."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Current UTC time as a naive datetime.

    DATETIME columns are timezone-naive on MariaDB and SQLite, so every value
    written to or compared against the database goes through this helper.
    """
    return datetime.now(UTC).replace(tzinfo=None)
