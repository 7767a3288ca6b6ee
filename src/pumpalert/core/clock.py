"""Clock abstraction and timestamp helpers.

Every component that reads the time takes a ``Clock`` so tests can move
time forward without sleeping.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current time in UTC."""
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an API timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix allowed), epoch milliseconds
    (DexScreener ``pairCreatedAt``) and datetimes.

    Returns:
        Parsed datetime, or None if the value is missing or unparsable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    if isinstance(value, (int, float)):
        if value <= 0:
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.isdigit():
            return parse_timestamp(int(text))
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)

    return None


def age_minutes(created_at: datetime, now: datetime) -> float:
    """Minutes elapsed between ``created_at`` and ``now``."""
    return (now - created_at).total_seconds() / 60
