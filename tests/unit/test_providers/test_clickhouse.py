"""
Unit tests for the ClickHouse client and stores

The driver is mocked; tests check the SQL contract (FINAL reads,
ORDER BY + LIMIT edge lookups, parameter binding) and row mapping.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.models.market_data import IndicatorRecord
from providers.opensource.clickhouse import (
    ClickHouseCandleStore,
    ClickHouseClient,
    ClickHouseIndicatorStore,
)
from tests.unit.fakes import make_candle

OPEN_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
NAIVE_OPEN_TIME = datetime(2024, 1, 1)


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.query = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value=[])
    return db


def candle_row(candle) -> dict:
    """Row as the driver returns it (naive datetimes)"""
    return {
        "open_time": candle.open_time.replace(tzinfo=None),
        "open_price": candle.open_price,
        "high_price": candle.high_price,
        "low_price": candle.low_price,
        "close_price": candle.close_price,
        "volume": candle.volume,
        "close_time": candle.close_time.replace(tzinfo=None),
    }


@pytest.mark.unit
class TestClickHouseClient:
    """Test connection handling and result mapping"""

    @pytest.mark.asyncio
    async def test_connect_uses_settings(self):
        with patch("providers.opensource.clickhouse.Client") as mock_client_class:
            with patch("providers.opensource.clickhouse.get_settings") as mock_settings:
                mock_settings.return_value.CLICKHOUSE_HOST = "clickhouse"
                mock_settings.return_value.CLICKHOUSE_PORT = 9000
                mock_settings.return_value.CLICKHOUSE_DB = "trading"
                mock_settings.return_value.CLICKHOUSE_USER = "trading_user"
                mock_settings.return_value.CLICKHOUSE_PASSWORD = "trading_pass"

                client = ClickHouseClient()
                await client.connect()

        mock_client_class.assert_called_once_with(
            host="clickhouse",
            port=9000,
            database="trading",
            user="trading_user",
            password="trading_pass",
        )
        mock_client_class.return_value.execute.assert_called_once_with("SELECT 1")

    @pytest.mark.asyncio
    async def test_connect_failure_raises(self):
        with patch("providers.opensource.clickhouse.Client") as mock_client_class:
            mock_client_class.return_value.execute.side_effect = Exception("Connection refused")

            with pytest.raises(Exception, match="Connection refused"):
                await ClickHouseClient().connect()

    @pytest.mark.asyncio
    async def test_query_returns_dicts(self):
        client = ClickHouseClient()
        client.client = MagicMock()
        client.client.execute.return_value = (
            [(1, "a"), (2, "b")],
            [("id", "UInt32"), ("name", "String")],
        )

        rows = await client.query("SELECT id, name FROM t WHERE id > %(id)s", {"id": 0})

        assert rows == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]
        client.client.execute.assert_called_once_with(
            "SELECT id, name FROM t WHERE id > %(id)s", {"id": 0}, with_column_types=True
        )

    @pytest.mark.asyncio
    async def test_not_connected_raises(self):
        client = ClickHouseClient()

        with pytest.raises(RuntimeError, match="not connected"):
            await client.query("SELECT 1")
        with pytest.raises(RuntimeError, match="not connected"):
            await client.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_close_disconnects(self):
        client = ClickHouseClient()
        driver = MagicMock()
        client.client = driver

        await client.close()

        driver.disconnect.assert_called_once()


@pytest.mark.unit
class TestClickHouseCandleStore:
    """Test candle store SQL and mapping"""

    @pytest.mark.asyncio
    async def test_save_inserts_row(self, mock_db):
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")
        candle = make_candle(0)

        await store.save(candle)

        sql, rows = mock_db.execute.call_args.args
        assert sql == (
            "INSERT INTO btc_candle_15m (open_time, open_price, high_price, low_price, "
            "close_price, volume, close_time) VALUES"
        )
        assert rows == [candle.to_row()]

    @pytest.mark.asyncio
    async def test_exists(self, mock_db):
        mock_db.query.return_value = [{"cnt": 1}]
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        assert await store.exists(OPEN_TIME) is True

        sql, params = mock_db.query.call_args.args
        assert "FINAL" in sql
        assert params == {"open_time": OPEN_TIME}

    @pytest.mark.asyncio
    async def test_max_open_time_empty_table(self, mock_db):
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        assert await store.find_max_open_time() is None

        sql = mock_db.query.call_args.args[0]
        assert sql.endswith("ORDER BY open_time DESC LIMIT 1")

    @pytest.mark.asyncio
    async def test_min_open_time_attaches_utc(self, mock_db):
        mock_db.query.return_value = [{"open_time": NAIVE_OPEN_TIME}]
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        assert await store.find_min_open_time() == OPEN_TIME

        assert "ORDER BY open_time ASC LIMIT 1" in mock_db.query.call_args.args[0]

    @pytest.mark.asyncio
    async def test_find_last_n_candles(self, mock_db):
        candles = [make_candle(1), make_candle(0)]
        mock_db.query.return_value = [candle_row(c) for c in candles]
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        result = await store.find_last_n_candles(candles[0].open_time, 201)

        assert result == candles
        sql, params = mock_db.query.call_args.args
        assert "WHERE open_time <= %(before)s ORDER BY open_time DESC LIMIT %(limit)s" in sql
        assert params == {"before": candles[0].open_time, "limit": 201}

    @pytest.mark.asyncio
    async def test_find_candles_after_limit(self, mock_db):
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        await store.find_candles_after_limit(OPEN_TIME, 1000)

        sql, params = mock_db.query.call_args.args
        assert "WHERE open_time > %(after)s ORDER BY open_time ASC LIMIT %(limit)s" in sql
        assert params == {"after": OPEN_TIME, "limit": 1000}

    @pytest.mark.asyncio
    async def test_count(self, mock_db):
        mock_db.query.return_value = [{"cnt": 42}]
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        assert await store.count() == 42
        assert mock_db.query.call_args.args[0] == "SELECT count() AS cnt FROM btc_candle_15m FINAL"

    @pytest.mark.asyncio
    async def test_delete_all_truncates(self, mock_db):
        store = ClickHouseCandleStore(mock_db, "btc_candle_15m")

        await store.delete_all()

        mock_db.execute.assert_awaited_once_with("TRUNCATE TABLE btc_candle_15m")


@pytest.mark.unit
class TestClickHouseIndicatorStore:
    """Test indicator store SQL and mapping"""

    @pytest.mark.asyncio
    async def test_save_column_names(self, mock_db):
        store = ClickHouseIndicatorStore(mock_db, "btc_indicator_15m")
        record = IndicatorRecord(open_time=OPEN_TIME, rsi14=Decimal("55.1234"))

        await store.save(record)

        sql, rows = mock_db.execute.call_args.args
        assert sql == (
            "INSERT INTO btc_indicator_15m (open_time, ema_50, ema_200, rsi_14, atr_14, "
            "bb_upper, bb_middle, bb_lower, avg_volume_20) VALUES"
        )
        assert rows == [record.to_row()]

    @pytest.mark.asyncio
    async def test_find_by_id_maps_columns(self, mock_db):
        mock_db.query.return_value = [
            {
                "open_time": NAIVE_OPEN_TIME,
                "ema_50": Decimal("1"),
                "ema_200": None,
                "rsi_14": Decimal("55.1234"),
                "atr_14": Decimal("2"),
                "bb_upper": Decimal("3"),
                "bb_middle": Decimal("4"),
                "bb_lower": Decimal("5"),
                "avg_volume_20": Decimal("6"),
            }
        ]
        store = ClickHouseIndicatorStore(mock_db, "btc_indicator_15m")

        record = await store.find_by_id(OPEN_TIME)

        assert record.open_time == OPEN_TIME
        assert record.ema50 == Decimal("1")
        assert record.ema200 is None
        assert record.rsi14 == Decimal("55.1234")
        assert record.avg_volume20 == Decimal("6")

    @pytest.mark.asyncio
    async def test_find_latest_empty(self, mock_db):
        store = ClickHouseIndicatorStore(mock_db, "btc_indicator_15m")

        assert await store.find_latest() is None
        assert await store.find_by_id(OPEN_TIME) is None
