# app/utils/datetime_utils.py
"""
Centralized date/time handling for the event pipeline.

Goals of this module:
1. Every timestamp the service produces is timezone-aware UTC
2. Firestore REST timestamps (RFC 3339, nanosecond precision) parse cleanly
3. Documents copied between collections keep Firestore-compatible values
"""

import logging
from datetime import datetime, date, timezone, time, timedelta
from typing import Any
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """Static helpers for UTC date/time conversion."""

    @staticmethod
    def now() -> datetime:
        """Current time as a UTC timezone-aware datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def days_from_now(days: int) -> datetime:
        """UTC datetime `days` days in the future (used for TTL fields)."""
        return DateTimeUtils.now() + timedelta(days=days)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        Parses an ISO 8601 / RFC 3339 string into a UTC datetime.

        Supported forms:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+05:30
        - 2024-01-15T10:30:00.123456789Z (Firestore nanoseconds, truncated to micros)
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("Cannot parse an empty string")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            # Firestore emits up to 9 fractional digits; datetime holds 6.
            if '.' in iso_string:
                head, _, rest = iso_string.partition('.')
                digits = ''
                while rest and rest[0].isdigit():
                    digits += rest[0]
                    rest = rest[1:]
                iso_string = f"{head}.{digits[:6]}{rest}"

            dt = dateutil_parser.isoparse(iso_string)

            # Naive values are assumed to be UTC.
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"Failed to parse ISO datetime: {iso_string} - {e}")
            raise ValueError(f"Invalid ISO datetime: {iso_string}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """Formats a datetime as ISO 8601 with a Z suffix."""
        try:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            else:
                dt = dt.astimezone(timezone.utc)

            return dt.isoformat().replace('+00:00', 'Z')

        except Exception as e:
            logger.error(f"Failed to format datetime: {dt} - {e}")
            raise ValueError(f"Cannot convert to ISO string: {dt}")

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Normalizes date/time values before a Firestore write.

        Rules:
        - date -> datetime (00:00:00 UTC)
        - naive datetime -> UTC datetime
        - dicts and lists are converted recursively
        """
        try:
            if isinstance(obj, date) and not isinstance(obj, datetime):
                return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)

            elif isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.for_firestore(item) for item in obj]

            else:
                return obj

        except Exception as e:
            logger.error(f"Firestore conversion failed: {obj} ({type(obj)}) - {e}")
            raise ValueError(f"Cannot convert to a Firestore-compatible value: {obj}")

    @staticmethod
    def to_timestamp_ms(dt: Any) -> int:
        """Converts a datetime (or Firestore timestamp) to Unix milliseconds."""
        try:
            if isinstance(dt, datetime):
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return int(dt.timestamp() * 1000)

            elif hasattr(dt, 'timestamp'):
                return int(dt.timestamp() * 1000)

            else:
                raise ValueError(f"Expected a datetime or Firestore timestamp: {type(dt)}")

        except Exception as e:
            logger.error(f"timestamp_ms conversion failed: {dt} - {e}")
            raise ValueError(f"Cannot convert to timestamp: {dt}")


# Module-level shortcuts
def now() -> datetime:
    return DateTimeUtils.now()

def parse_iso(iso_string: str) -> datetime:
    return DateTimeUtils.parse_iso_datetime(iso_string)

def to_iso(dt: datetime) -> str:
    return DateTimeUtils.to_iso_string(dt)

def for_firestore(obj: Any) -> Any:
    return DateTimeUtils.for_firestore(obj)
