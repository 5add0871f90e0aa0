"""UTC timestamp helpers.

Every timestamp the service stores or logs is a timezone-aware UTC
datetime. SQLite hands naive datetimes back, so rows read from the store
pass through ensure_utc() before reaching callers.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime.

    Example:
        >>> utc_now().tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Make a datetime timezone-aware UTC.

    Naive values are taken to already be UTC; aware values are converted.

    Args:
        dt: Datetime to normalise (None passes through)

    Returns:
        Timezone-aware UTC datetime, or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)

