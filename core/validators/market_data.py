"""
Data quality validator for exchange candles

Validates:
- OHLC consistency
- Close time vs interval
- Timestamp validation
"""

from datetime import UTC, datetime, timedelta

from core.models.market_data import Candle
from core.utils.timeframe import close_time_for


class CandleValidator:
    """
    Closed-candle quality validation

    Features:
    - OHLC range checks (high is the max, low is the min)
    - close_time must equal open_time + interval - 1 ms
    - Timestamp validation (not in future)
    - Invalid-candle tracking
    """

    def __init__(self, timeframe: str = "15m", clock_skew_seconds: int = 5):
        """
        Initialize candle validator

        Args:
            timeframe: Candle interval the source is expected to deliver
            clock_skew_seconds: Allowed clock skew for future-timestamp check
        """
        self.timeframe = timeframe
        self.clock_skew = timedelta(seconds=clock_skew_seconds)
        self.checked_count = 0
        self.invalid_count = 0

    def validate_candle(self, candle: Candle) -> tuple[bool, str | None]:
        """
        Validate one candle

        Checks:
        1. High >= max(open, close, low)
        2. Low <= min(open, close)
        3. close_time = open_time + interval - 1 ms
        4. open_time not in future

        Non-negative prices and volume are enforced by the Candle model.

        Args:
            candle: Candle to validate

        Returns:
            (is_valid, error_message)
            - (True, None) if valid
            - (False, "error reason") if invalid

        Example:
            >>> validator = CandleValidator("15m")
            >>> is_valid, error = validator.validate_candle(candle)
            >>> if not is_valid:
            ...     logger.warning(f"Skipping candle: {error}")
        """
        self.checked_count += 1

        # 1-2. OHLC consistency
        if candle.high_price < max(candle.open_price, candle.close_price, candle.low_price):
            self.invalid_count += 1
            return False, f"High {candle.high_price} below open/close/low at {candle.open_time}"

        if candle.low_price > min(candle.open_price, candle.close_price):
            self.invalid_count += 1
            return False, f"Low {candle.low_price} above open/close at {candle.open_time}"

        # 3. Interval alignment
        expected_close = close_time_for(candle.open_time, self.timeframe)
        if candle.close_time != expected_close:
            self.invalid_count += 1
            return False, f"Close time {candle.close_time} != expected {expected_close}"

        # 4. Not in future (allow clock skew)
        now = datetime.now(UTC)
        if candle.open_time > now + self.clock_skew:
            self.invalid_count += 1
            return False, f"Future timestamp: {candle.open_time} (now: {now})"

        return True, None

    def get_stats(self) -> dict[str, int]:
        """
        Get validation statistics

        Returns:
            Dictionary with:
            - checked_count: Number of candles validated
            - invalid_count: Number of invalid candles rejected
        """
        return {
            "checked_count": self.checked_count,
            "invalid_count": self.invalid_count,
        }

    def reset_stats(self) -> None:
        """Reset statistics counters"""
        self.checked_count = 0
        self.invalid_count = 0
