# services/assessment-service/src/apps/core/models/base.py
"""
Wire Helpers

Conversions between portal API JSON values and Python values.
"""

from datetime import datetime, timezone as dt_timezone
from typing import Any, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from the portal API; naive values are UTC."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parse_datetime(str(value).replace('Z', '+00:00'))
        if parsed is None:
            raise ValueError(f"Invalid timestamp: {value!r}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime the way the portal API stores it (UTC, millisecond Z)."""
    if value is None:
        return None
    value = value.astimezone(dt_timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f'{value.microsecond // 1000:03d}Z'


def drop_none(data: dict) -> dict:
    return {key: value for key, value in data.items() if value is not None}
