"""
Timeframe and timestamp utilities for fixed-interval candles

Exchange APIs speak epoch milliseconds, storage speaks UTC datetimes.
"""

from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

_TIMEFRAME_MINUTES = {
    "1m": 1,
    "3m": 3,
    "5m": 5,
    "15m": 15,
    "30m": 30,
    "1h": 60,
    "2h": 120,
    "4h": 240,
    "1d": 1440,
}


def parse_timeframe(timeframe: str) -> int:
    """
    Convert timeframe string to minutes

    Args:
        timeframe: Timeframe string (1m, 5m, 15m, 1h, 4h, 1d)

    Returns:
        Interval in minutes

    Raises:
        ValueError: If timeframe is not supported

    Example:
        >>> parse_timeframe("15m")
        15
    """
    if timeframe not in _TIMEFRAME_MINUTES:
        raise ValueError(f"Unsupported timeframe: {timeframe}")
    return _TIMEFRAME_MINUTES[timeframe]


def supported_timeframes() -> list[str]:
    return list(_TIMEFRAME_MINUTES)


def timeframe_to_millis(timeframe: str) -> int:
    """Interval length in milliseconds ("15m" -> 900000)"""
    return parse_timeframe(timeframe) * 60 * 1000


def millis_to_datetime(millis: int) -> datetime:
    """Epoch milliseconds -> aware UTC datetime"""
    return EPOCH + timedelta(milliseconds=millis)


def datetime_to_millis(value: datetime) -> int:
    """Aware (or naive UTC) datetime -> epoch milliseconds"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - EPOCH) // timedelta(milliseconds=1)


def close_time_for(open_time: datetime, timeframe: str) -> datetime:
    """Close time of a candle: open time + interval - 1 ms"""
    return open_time + timedelta(milliseconds=timeframe_to_millis(timeframe) - 1)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by drivers"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
