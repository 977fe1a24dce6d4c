"""
Utility helpers
"""

from typing import Optional
from datetime import datetime, timezone


def format_timestamp_with_timezone(timestamp: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as ISO-8601 with an explicit UTC marker"""
    if not timestamp:
        return None
    # SQLite hands back naive datetimes that are already UTC
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp.isoformat() + 'Z'


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what the database stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
