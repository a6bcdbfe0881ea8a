"""Conversions between form date inputs (YYYY-MM-DD) and stored timestamps."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp(date_string: Optional[str]) -> Optional[datetime]:
    """Turn an HTML date input value into a UTC timestamp; blank or invalid -> None."""
    if not date_string:
        return None
    try:
        parsed = datetime.fromisoformat(str(date_string).strip())
    except ValueError:
        logger.warning("Could not convert %r to a timestamp", date_string)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def from_timestamp(value: Any) -> str:
    """Format a stored timestamp (datetime, date or ISO string) as YYYY-MM-DD."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return datetime.fromisoformat(str(value).strip()).date().isoformat()
    except ValueError:
        logger.warning("Could not read %r as a timestamp", value)
        return ""
