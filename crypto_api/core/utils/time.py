"""
Time Utilities

Exchanges exchange time in different units: Binance and KuCoin use
milliseconds since epoch, others use seconds. Signed requests need a
millisecond nonce, and response formatters turn those numbers into
timezone-aware datetimes.
"""

import time
from datetime import datetime, timezone
from typing import Union


def to_utc_datetime(timestamp: Union[int, float, str]) -> datetime:
    """
    Convert a timestamp (seconds or milliseconds) to UTC datetime.

    Detection Logic:
        - If timestamp > 1e12: assumed to be milliseconds
        - Otherwise: assumed to be seconds

    Args:
        timestamp: Unix timestamp, numeric strings accepted ("1704110400000")

    Returns:
        datetime: Timezone-aware datetime in UTC

    Raises:
        ValueError: If the timestamp is negative or not a number

    Examples:
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    try:
        timestamp = float(timestamp)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid timestamp: {timestamp!r}") from None

    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """
    Current Unix timestamp, in milliseconds when asked.

    Millisecond precision is kept: signed endpoints reject reused nonces.
    """
    now = time.time()
    return int(now * 1000) if milliseconds else int(now)
