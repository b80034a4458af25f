from datetime import datetime, timedelta

from conftest import NOW, TOKYO
from quitcheck.utils.datetime_utils import (
    DEFAULT_TZ,
    FixedClock,
    add_days,
    ensure_aware,
    get_timezone,
    parse_datetime,
)


class TestTimezones:
    def test_default_zone(self):
        assert get_timezone() is DEFAULT_TZ
        assert get_timezone("").zone == "Asia/Tokyo"

    def test_named_zone(self):
        assert get_timezone("Europe/Berlin").zone == "Europe/Berlin"

    def test_naive_is_localized(self):
        assert ensure_aware(datetime(2026, 3, 2, 12, 0)) == NOW

    def test_aware_is_kept(self):
        berlin = get_timezone("Europe/Berlin").localize(datetime(2026, 3, 2, 4, 0))
        assert ensure_aware(berlin, TOKYO) is berlin

    def test_parse_keeps_offset(self):
        assert parse_datetime(NOW.isoformat()).utcoffset() == timedelta(hours=9)


def test_add_days():
    assert add_days(NOW, 7) == NOW + timedelta(days=7)


def test_fixed_clock_moves_only_when_told():
    clock = FixedClock(datetime(2026, 3, 2, 12, 0), tz=TOKYO)
    assert clock.now() == NOW
    assert clock.advance(hours=2) == NOW + timedelta(hours=2)
    assert clock.now() == NOW + timedelta(hours=2)
