"""Elapsed time, savings and the health timeline. Pure functions, no clock."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytz

from conftest import NOW
from quitcheck.core.models import InvalidSettings
from quitcheck.core.statistics import (
    HEALTH_MILESTONES,
    ElapsedTime,
    TimeUnit,
    build_health_timeline,
    calculate_elapsed,
    calculate_statistics,
    format_time_left,
)


class TestCalculateElapsed:
    def test_counts_independent_totals(self):
        elapsed = calculate_elapsed(NOW - timedelta(days=2, hours=3, minutes=15), NOW)
        assert elapsed == ElapsedTime(days=2, hours=51, minutes=51 * 60 + 15)

    def test_partial_day_is_zero_days(self):
        elapsed = calculate_elapsed(NOW - timedelta(hours=23, minutes=59), NOW)
        assert elapsed.days == 0
        assert elapsed.hours == 23
        assert elapsed.minutes == 23 * 60 + 59

    def test_start_after_now_is_clamped(self):
        elapsed = calculate_elapsed(NOW + timedelta(minutes=5), NOW)
        assert elapsed == ElapsedTime(0, 0, 0)
        assert elapsed.is_zero

    def test_same_instant(self):
        assert calculate_elapsed(NOW, NOW).is_zero

    def test_deterministic(self):
        start = NOW - timedelta(days=8, hours=1)
        assert calculate_elapsed(start, NOW) == calculate_elapsed(start, NOW + timedelta(0))

    def test_naive_now_is_read_in_the_start_zone(self):
        assert calculate_elapsed(NOW - timedelta(days=1), datetime(2026, 3, 2, 12, 0)).days == 1

    def test_naive_start_is_read_in_the_now_zone(self):
        assert calculate_elapsed(datetime(2026, 3, 1, 12, 0), NOW) == ElapsedTime(1, 24, 1440)

    def test_days_follow_real_hours_across_dst(self):
        new_york = pytz.timezone("America/New_York")
        start = new_york.localize(datetime(2026, 3, 7, 12, 0))
        now = new_york.localize(datetime(2026, 3, 8, 12, 0))
        elapsed = calculate_elapsed(start, now)
        assert elapsed.days == 0
        assert elapsed.hours == 23

    def test_days_never_decrease_as_time_advances(self):
        start = NOW - timedelta(days=3)
        previous = -1
        for step in range(0, 72 * 60, 37):
            days = calculate_elapsed(start, NOW + timedelta(minutes=step)).days
            assert days >= previous
            previous = days


class TestCalculateStatistics:
    def test_ten_day_example(self):
        stats = calculate_statistics(10, 20, Decimal("500"), 20)
        assert stats.cigarettes_avoided == 200
        assert stats.money_saved == Decimal("5000")

    def test_cigarettes_avoided_is_exact_product(self):
        for days in (0, 1, 7, 365):
            for per_day in (1, 13, 40):
                assert calculate_statistics(days, per_day, 500, 20).cigarettes_avoided == days * per_day

    def test_money_uses_price_per_cigarette(self):
        stats = calculate_statistics(3, 10, Decimal("600"), 25)
        assert stats.money_saved == Decimal("720")

    def test_float_price_is_accepted(self):
        assert calculate_statistics(1, 20, 500.0, 20).money_saved == Decimal("500")

    def test_zero_days_saves_nothing(self):
        stats = calculate_statistics(0, 20, 500, 20)
        assert stats.cigarettes_avoided == 0
        assert stats.money_saved == 0

    def test_zero_pack_size_rejected(self):
        with pytest.raises(InvalidSettings):
            calculate_statistics(5, 20, 500, 0)


class TestHealthTimeline:
    def test_ten_milestones(self):
        assert len(HEALTH_MILESTONES) == 10
        assert [m.title for m in HEALTH_MILESTONES][:2] == ["20分後", "12時間後"]

    def test_nothing_completed_at_start(self):
        timeline = build_health_timeline(ElapsedTime())
        assert not any(status.completed for status in timeline)
        assert timeline[0].time_left == "20分"

    def test_sub_day_milestones_use_minutes_and_hours(self):
        elapsed = calculate_elapsed(NOW - timedelta(hours=12, minutes=5), NOW)
        completed = [s.milestone.title for s in build_health_timeline(elapsed) if s.completed]
        assert completed == ["20分後", "12時間後"]

    def test_time_left_for_hour_milestone(self):
        elapsed = calculate_elapsed(NOW - timedelta(hours=10), NOW)
        by_title = {s.milestone.title: s for s in build_health_timeline(elapsed)}
        assert by_title["12時間後"].time_left == "2時間"
        assert by_title["72時間後"].time_left == "2日14時間"
        assert by_title["1年後"].time_left == "365日"

    def test_everything_completed_after_a_year(self):
        elapsed = calculate_elapsed(NOW - timedelta(days=366), NOW)
        assert all(status.completed for status in build_health_timeline(elapsed))


class TestFormatTimeLeft:
    def test_units(self):
        assert format_time_left(5, TimeUnit.MINUTE) == "5分"
        assert format_time_left(23, TimeUnit.HOUR) == "23時間"
        assert format_time_left(24, TimeUnit.HOUR) == "1日0時間"
        assert format_time_left(3, TimeUnit.DAY) == "3日"

    def test_negative_is_clamped(self):
        assert format_time_left(-4, TimeUnit.DAY) == "0日"
