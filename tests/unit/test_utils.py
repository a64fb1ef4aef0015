"""
Unit tests for timeframe helpers and the single-flight latch
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from core.utils.single_flight import SingleFlight
from core.utils.timeframe import (
    close_time_for,
    datetime_to_millis,
    ensure_utc,
    millis_to_datetime,
    parse_timeframe,
    timeframe_to_millis,
)

LISTING_MS = 1502942400000


@pytest.mark.unit
class TestTimeframe:
    """Test timeframe and timestamp conversion"""

    @pytest.mark.parametrize(
        "timeframe,minutes", [("1m", 1), ("15m", 15), ("1h", 60), ("4h", 240), ("1d", 1440)]
    )
    def test_parse_timeframe(self, timeframe, minutes):
        assert parse_timeframe(timeframe) == minutes

    def test_unsupported_timeframe(self):
        with pytest.raises(ValueError, match="Unsupported timeframe"):
            parse_timeframe("7m")

    def test_timeframe_to_millis(self):
        assert timeframe_to_millis("15m") == 900_000

    def test_millis_round_trip(self):
        value = millis_to_datetime(LISTING_MS)

        assert value == datetime(2017, 8, 17, 4, 0, tzinfo=timezone.utc)
        assert datetime_to_millis(value) == LISTING_MS

    def test_naive_datetime_treated_as_utc(self):
        assert datetime_to_millis(datetime(2017, 8, 17, 4, 0)) == LISTING_MS

    def test_close_time(self):
        open_time = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert close_time_for(open_time, "15m") == open_time + timedelta(
            minutes=15, milliseconds=-1
        )

    def test_ensure_utc(self):
        naive = datetime(2024, 1, 1)
        shifted = datetime(2024, 1, 1, 2, tzinfo=timezone(timedelta(hours=2)))

        assert ensure_utc(naive).tzinfo == timezone.utc
        assert ensure_utc(shifted) == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.unit
class TestSingleFlight:
    """Test the compare-and-set latch"""

    def test_second_acquire_rejected(self):
        latch = SingleFlight("test")

        assert latch.try_acquire() is True
        assert latch.try_acquire() is False
        assert latch.in_progress is True

        latch.release()

        assert latch.in_progress is False
        assert latch.try_acquire() is True

    def test_release_when_idle_is_noop(self):
        latch = SingleFlight("test")

        latch.release()

        assert latch.in_progress is False

    def test_only_one_thread_wins(self):
        latch = SingleFlight("test")
        barrier = threading.Barrier(8)
        wins = []

        def contend():
            barrier.wait()
            if latch.try_acquire():
                wins.append(threading.current_thread().name)

        threads = [threading.Thread(target=contend) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 1

    def test_repr(self):
        latch = SingleFlight("indicator-calc")

        assert repr(latch) == "SingleFlight(indicator-calc, idle)"
