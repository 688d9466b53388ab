"""Tests for the clock abstraction."""

import pytest
from datetime import date, datetime, timedelta, timezone

from payday_kernel.domain.clock import DeterministicClock, SequentialClock, SystemClock


class TestDeterministicClock:

    def test_fixed_until_advanced(self):
        t = datetime(2024, 3, 1, 23, 59, 30, tzinfo=timezone.utc)
        clock = DeterministicClock(t)
        assert clock.now() == clock.now() == t

        clock.advance(60)
        assert clock.now() == t + timedelta(seconds=60)
        assert clock.today() == date(2024, 3, 2)

    def test_tick_and_set_time(self):
        clock = DeterministicClock()
        start = clock.now()
        assert clock.tick() == start + timedelta(seconds=1)

        later = datetime(2025, 1, 1, tzinfo=timezone.utc)
        clock.set_time(later)
        assert clock.now() == later

    def test_today_uses_local_zone(self):
        manila = timezone(timedelta(hours=8))
        clock = DeterministicClock(datetime(2024, 3, 1, 20, 0, tzinfo=timezone.utc).astimezone(manila))
        assert clock.today() == date(2024, 3, 2)
        assert clock.now_utc().date() == date(2024, 3, 1)


class TestSequentialClock:

    def test_returns_in_order_then_repeats_last(self):
        times = [datetime(2024, 1, d, tzinfo=timezone.utc) for d in (1, 2)]
        clock = SequentialClock(times)
        assert [clock.now(), clock.now(), clock.now()] == [times[0], times[1], times[1]]

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            SequentialClock([])


class TestSystemClock:

    def test_aware_and_utc_by_default(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_fixed_offset_zone(self):
        plus8 = timezone(timedelta(hours=8))
        assert SystemClock(plus8).now().utcoffset() == timedelta(hours=8)
