"""
ClickHouse implementation of the candle and indicator stores

Tables (ReplacingMergeTree, ORDER BY open_time):
- btc_candle_15m: OHLCV, DECIMAL(18,8)
- btc_indicator_15m: EMA/RSI/ATR/Bollinger/AvgVolume, rsi_14 DECIMAL(10,4)

Reads use FINAL so replaced duplicates are never observed.
"""

import logging
from datetime import datetime
from typing import Any

from clickhouse_driver import Client

from config.settings import get_settings
from core.interfaces.database import BaseCandleStore, BaseIndicatorStore, BaseTimeSeriesDB
from core.models.market_data import Candle, IndicatorRecord
from core.utils.timeframe import ensure_utc

logger = logging.getLogger(__name__)

CANDLE_COLUMNS = [
    "open_time",
    "open_price",
    "high_price",
    "low_price",
    "close_price",
    "volume",
    "close_time",
]

# column name → IndicatorRecord field
INDICATOR_COLUMNS = {
    "open_time": "open_time",
    "ema_50": "ema50",
    "ema_200": "ema200",
    "rsi_14": "rsi14",
    "atr_14": "atr14",
    "bb_upper": "bb_upper",
    "bb_middle": "bb_middle",
    "bb_lower": "bb_lower",
    "avg_volume_20": "avg_volume20",
}


class ClickHouseClient(BaseTimeSeriesDB):
    """
    ClickHouse implementation

    Features:
    - Columnar storage (high compression)
    - Fast ordered range scans on open_time
    - ReplacingMergeTree deduplication by open_time
    """

    def __init__(self):
        self.settings = get_settings()
        self.client: Client | None = None

    async def connect(self) -> None:
        """Establish connection to ClickHouse"""
        try:
            self.client = Client(
                host=self.settings.CLICKHOUSE_HOST,
                port=self.settings.CLICKHOUSE_PORT,
                database=self.settings.CLICKHOUSE_DB,
                user=self.settings.CLICKHOUSE_USER,
                password=self.settings.CLICKHOUSE_PASSWORD,
            )
            # Test connection
            self.client.execute("SELECT 1")
            logger.info(
                f"✓ Connected to ClickHouse: "
                f"{self.settings.CLICKHOUSE_HOST}:{self.settings.CLICKHOUSE_PORT}"
            )
        except Exception as e:
            logger.error(f"✗ Failed to connect to ClickHouse: {e}")
            raise

    async def execute(self, sql: str, params: Any = None) -> list[tuple]:
        """
        Execute a statement (INSERT with row tuples, TRUNCATE, raw SELECT)

        Args:
            sql: SQL statement
            params: Row tuples for INSERT ... VALUES, or a parameter dict

        Returns:
            Raw result rows
        """
        if not self.client:
            raise RuntimeError("ClickHouse client not connected")

        try:
            if params is None:
                return self.client.execute(sql)
            return self.client.execute(sql, params)
        except Exception as e:
            logger.error(f"✗ ClickHouse execute error: {e}")
            raise

    async def query(self, sql: str, params: dict | None = None) -> list[dict]:
        """
        Execute raw SQL query

        Args:
            sql: SQL query string
            params: Query parameters

        Returns:
            List of result rows as dictionaries
        """
        if not self.client:
            raise RuntimeError("ClickHouse client not connected")

        try:
            # Only pass params if provided to avoid string formatting issues
            if params:
                result = self.client.execute(sql, params, with_column_types=True)
            else:
                result = self.client.execute(sql, with_column_types=True)

            # Convert to list of dicts
            if result and len(result) == 2:
                columns = [col[0] for col in result[1]]
                return [dict(zip(columns, row, strict=False)) for row in result[0]]

            return []

        except Exception as e:
            logger.error(f"✗ ClickHouse query error: {e}")
            raise

    async def close(self) -> None:
        """Close connection"""
        if self.client:
            self.client.disconnect()
            logger.info("✓ ClickHouse connection closed")


class _ClickHouseTable:
    """Shared open_time-keyed queries for one table"""

    def __init__(self, db: BaseTimeSeriesDB, table: str):
        self.db = db
        self.table = table

    async def _count(self) -> int:
        rows = await self.db.query(f"SELECT count() AS cnt FROM {self.table} FINAL")
        return int(rows[0]["cnt"]) if rows else 0

    async def _edge_open_time(self, direction: str) -> datetime | None:
        # ORDER BY + LIMIT instead of max(): max() on an empty table returns epoch
        rows = await self.db.query(
            f"SELECT open_time FROM {self.table} FINAL ORDER BY open_time {direction} LIMIT 1"
        )
        return ensure_utc(rows[0]["open_time"]) if rows else None

    async def _truncate(self) -> None:
        await self.db.execute(f"TRUNCATE TABLE {self.table}")
        logger.info(f"✓ Truncated {self.table}")


class ClickHouseCandleStore(_ClickHouseTable, BaseCandleStore):
    """Candle store over btc_candle_15m"""

    _select = f"SELECT {', '.join(CANDLE_COLUMNS)}"

    async def exists(self, open_time: datetime) -> bool:
        rows = await self.db.query(
            f"SELECT count() AS cnt FROM {self.table} FINAL WHERE open_time = %(open_time)s",
            {"open_time": ensure_utc(open_time)},
        )
        return bool(rows) and int(rows[0]["cnt"]) > 0

    async def save(self, candle: Candle) -> None:
        await self.db.execute(
            f"INSERT INTO {self.table} ({', '.join(CANDLE_COLUMNS)}) VALUES",
            [candle.to_row()],
        )

    async def count(self) -> int:
        return await self._count()

    async def find_max_open_time(self) -> datetime | None:
        return await self._edge_open_time("DESC")

    async def find_min_open_time(self) -> datetime | None:
        return await self._edge_open_time("ASC")

    async def find_candles_after(self, after: datetime) -> list[Candle]:
        rows = await self.db.query(
            f"{self._select} FROM {self.table} FINAL "
            f"WHERE open_time > %(after)s ORDER BY open_time ASC",
            {"after": ensure_utc(after)},
        )
        return [self._to_candle(row) for row in rows]

    async def find_candles_after_limit(self, after: datetime, limit: int) -> list[Candle]:
        rows = await self.db.query(
            f"{self._select} FROM {self.table} FINAL "
            f"WHERE open_time > %(after)s ORDER BY open_time ASC LIMIT %(limit)s",
            {"after": ensure_utc(after), "limit": limit},
        )
        return [self._to_candle(row) for row in rows]

    async def find_first_n_candles(self, limit: int) -> list[Candle]:
        rows = await self.db.query(
            f"{self._select} FROM {self.table} FINAL ORDER BY open_time ASC LIMIT %(limit)s",
            {"limit": limit},
        )
        return [self._to_candle(row) for row in rows]

    async def find_last_n_candles(self, before_inclusive: datetime, limit: int) -> list[Candle]:
        rows = await self.db.query(
            f"{self._select} FROM {self.table} FINAL "
            f"WHERE open_time <= %(before)s ORDER BY open_time DESC LIMIT %(limit)s",
            {"before": ensure_utc(before_inclusive), "limit": limit},
        )
        return [self._to_candle(row) for row in rows]

    async def delete_all(self) -> None:
        await self._truncate()

    @staticmethod
    def _to_candle(row: dict) -> Candle:
        return Candle(
            open_time=ensure_utc(row["open_time"]),
            open_price=row["open_price"],
            high_price=row["high_price"],
            low_price=row["low_price"],
            close_price=row["close_price"],
            volume=row["volume"],
            close_time=ensure_utc(row["close_time"]),
        )


class ClickHouseIndicatorStore(_ClickHouseTable, BaseIndicatorStore):
    """Indicator store over btc_indicator_15m"""

    _select = f"SELECT {', '.join(INDICATOR_COLUMNS)}"

    async def save(self, record: IndicatorRecord) -> None:
        await self.db.execute(
            f"INSERT INTO {self.table} ({', '.join(INDICATOR_COLUMNS)}) VALUES",
            [record.to_row()],
        )

    async def find_max_open_time(self) -> datetime | None:
        return await self._edge_open_time("DESC")

    async def find_by_id(self, open_time: datetime) -> IndicatorRecord | None:
        rows = await self.db.query(
            f"{self._select} FROM {self.table} FINAL WHERE open_time = %(open_time)s LIMIT 1",
            {"open_time": ensure_utc(open_time)},
        )
        return self._to_record(rows[0]) if rows else None

    async def find_latest(self) -> IndicatorRecord | None:
        rows = await self.db.query(
            f"{self._select} FROM {self.table} FINAL ORDER BY open_time DESC LIMIT 1"
        )
        return self._to_record(rows[0]) if rows else None

    async def count(self) -> int:
        return await self._count()

    async def delete_all(self) -> None:
        await self._truncate()

    @staticmethod
    def _to_record(row: dict) -> IndicatorRecord:
        values = {field: row[column] for column, field in INDICATOR_COLUMNS.items()}
        values["open_time"] = ensure_utc(values["open_time"])
        return IndicatorRecord(**values)
