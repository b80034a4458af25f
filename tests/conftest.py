from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

import pytest
import pytz

from quitcheck.core.database import InMemoryRecordStore, StorageError
from quitcheck.core.models import TrackerSettings
from quitcheck.database.preferences import PreferencesStore
from quitcheck.services.notifications import Reminder, ReminderScheduler, SchedulingError
from quitcheck.services.tracker import TrackerController
from quitcheck.utils.datetime_utils import FixedClock

TOKYO = pytz.timezone("Asia/Tokyo")
NOW = TOKYO.localize(datetime(2026, 3, 2, 12, 0, 0))


class RecordingReminderScheduler(ReminderScheduler):
    """Keeps reminders in a dict instead of a real scheduler"""

    def __init__(self, granted: bool = True, fail_on: Optional[str] = None):
        self.granted = granted
        self.fail_on = fail_on
        self.scheduled: Dict[str, Reminder] = {}
        self.cancel_all_calls = 0

    def request_permission(self) -> bool:
        return self.granted

    def schedule(self, reminder_id, title, body, trigger_at):
        if reminder_id == self.fail_on:
            raise SchedulingError(f"cannot schedule {reminder_id}")
        self.scheduled[reminder_id] = Reminder(reminder_id, title, body, trigger_at)

    def cancel(self, reminder_id):
        self.scheduled.pop(reminder_id, None)

    def cancel_all(self):
        self.cancel_all_calls += 1
        self.scheduled.clear()


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose writes fail while ``failing`` is set"""

    def __init__(self):
        super().__init__()
        self.failing = False
        self.failing_reads = False
        self.write_attempts: List[str] = []

    def _check_write(self, name):
        self.write_attempts.append(name)
        if self.failing:
            raise StorageError(f"{name} failed")

    def _check_read(self):
        if self.failing_reads:
            raise StorageError("read failed")

    def get_active_record(self):
        self._check_read()
        return super().get_active_record()

    def list_achievements(self):
        self._check_read()
        return super().list_achievements()

    def save_record(self, record):
        self._check_write("save_record")
        super().save_record(record)

    def delete_all_records(self):
        self._check_write("delete_all_records")
        super().delete_all_records()

    def append_achievement(self, achievement):
        self._check_write("append_achievement")
        super().append_achievement(achievement)

    def delete_all_achievements(self):
        self._check_write("delete_all_achievements")
        super().delete_all_achievements()


def make_settings(days_ago: float = 0, now: datetime = NOW, **overrides) -> TrackerSettings:
    values = dict(
        start_date=now - timedelta(days=days_ago),
        cigarettes_per_day=20,
        price_per_pack=Decimal("500"),
        cigarettes_per_pack=20,
        currency="¥",
        goal="健康的な生活を取り戻す",
    )
    values.update(overrides)
    return TrackerSettings(**values)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW, tz=TOKYO)


@pytest.fixture
def store() -> FlakyRecordStore:
    return FlakyRecordStore()


@pytest.fixture
def reminders() -> RecordingReminderScheduler:
    return RecordingReminderScheduler()


@pytest.fixture
def preferences() -> PreferencesStore:
    return PreferencesStore()


@pytest.fixture
def controller(store, reminders, preferences, clock) -> TrackerController:
    tracker = TrackerController(store=store, reminders=reminders, preferences=preferences, clock=clock)
    tracker.load()
    return tracker
