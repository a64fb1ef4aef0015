from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from core.models.market_data import Candle, IndicatorRecord


class BaseTimeSeriesDB(ABC):
    """
    Abstract interface for time-series databases

    Implementations:
    - ClickHouseClient (OLAP, columnar)
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to database"""

    @abstractmethod
    async def execute(self, sql: str, params: Any = None) -> list[tuple]:
        """
        Execute a statement (insert rows, DDL, raw select)

        Args:
            sql: SQL statement
            params: Query parameters dict, or list of row tuples for INSERT

        Returns:
            Raw result rows
        """

    @abstractmethod
    async def query(self, sql: str, params: dict | None = None) -> list[dict]:
        """
        Execute raw SQL query

        Args:
            sql: SQL query string
            params: Query parameters

        Returns:
            List of result rows as dictionaries
        """

    @abstractmethod
    async def close(self) -> None:
        """Close connection"""


class BaseCandleStore(ABC):
    """
    Candle storage (one row per open_time)

    Reads are snapshot-consistent; writes are per-record atomic.
    All range queries return candles in ascending open_time order unless noted.
    """

    @abstractmethod
    async def exists(self, open_time: datetime) -> bool:
        """True if a candle with this open_time is stored"""

    @abstractmethod
    async def save(self, candle: Candle) -> None:
        """Insert one candle"""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored candles"""

    @abstractmethod
    async def find_max_open_time(self) -> datetime | None:
        """Latest open_time, or None if empty"""

    @abstractmethod
    async def find_min_open_time(self) -> datetime | None:
        """Earliest open_time, or None if empty"""

    @abstractmethod
    async def find_candles_after(self, after: datetime) -> list[Candle]:
        """All candles with open_time > after (ascending)"""

    @abstractmethod
    async def find_candles_after_limit(self, after: datetime, limit: int) -> list[Candle]:
        """At most `limit` candles with open_time > after (ascending)"""

    @abstractmethod
    async def find_first_n_candles(self, limit: int) -> list[Candle]:
        """The `limit` earliest candles (ascending)"""

    @abstractmethod
    async def find_last_n_candles(self, before_inclusive: datetime, limit: int) -> list[Candle]:
        """
        The `limit` candles with open_time <= before_inclusive

        Returns most-recent-first; callers reverse to chronological order.
        """

    @abstractmethod
    async def delete_all(self) -> None:
        """Set-based delete of every candle (no per-row loading)"""


class BaseIndicatorStore(ABC):
    """Indicator storage (one record per candle open_time)"""

    @abstractmethod
    async def save(self, record: IndicatorRecord) -> None:
        """Insert one indicator record"""

    @abstractmethod
    async def find_max_open_time(self) -> datetime | None:
        """open_time of the most recent record, or None if empty"""

    @abstractmethod
    async def find_by_id(self, open_time: datetime) -> IndicatorRecord | None:
        """Record for this open_time, or None"""

    @abstractmethod
    async def find_latest(self) -> IndicatorRecord | None:
        """Most recent record, or None if empty"""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored records"""

    @abstractmethod
    async def delete_all(self) -> None:
        """Set-based delete of every record (no per-row loading)"""
