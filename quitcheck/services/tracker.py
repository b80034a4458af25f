#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
QuitCheck v1.0 - Tracker Controller
Owns the active quit record, recomputes statistics and achievements and
keeps persistence and reminders in step with user edits.

Version: 1.0.0
Date: 2026-10-19
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
import logging

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from quitcheck.core.achievements import AchievementEngine, MilestoneProgress
from quitcheck.core.database import RecordStore, StorageError
from quitcheck.core.models import (
    Achievement,
    AchievementType,
    QuitRecord,
    TrackerSettings,
    TrackerState,
)
from quitcheck.core.statistics import (
    ElapsedTime,
    HealthMilestoneStatus,
    QuitStatistics,
    build_health_timeline,
    calculate_elapsed,
    calculate_statistics,
)
from quitcheck.database.preferences import PreferencesStore
from quitcheck.services.notifications import (
    ReminderScheduler,
    SchedulingError,
    plan_motivational_reminders,
)
from quitcheck.utils.datetime_utils import Clock, SystemClock, ensure_aware
from quitcheck.utils.validators import validate_settings

logger = logging.getLogger(__name__)

DEFAULT_RECOMPUTE_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class TrackerSnapshot:
    """Result of one recompute"""
    state: TrackerState
    computed_at: datetime
    elapsed: ElapsedTime = field(default_factory=ElapsedTime)
    statistics: QuitStatistics = field(default_factory=QuitStatistics)
    new_achievements: Tuple[Achievement, ...] = ()

    @property
    def days_since_quit(self) -> int:
        return self.elapsed.days

    @property
    def cigarettes_avoided(self) -> int:
        return self.statistics.cigarettes_avoided

    @property
    def money_saved(self):
        return self.statistics.money_saved


class TrackerController:
    """Single owner of the quit record and achievements.

    Every mutation runs under one re-entrant lock, so a timer tick and a user
    edit can never both detect and persist the same milestone.

    Writes are optimistic: memory is updated first, then the store. A failed
    write stays queued and is retried on the next write path; user-driven
    operations re-raise the StorageError, timer ticks only log it.
    """

    RECOMPUTE_JOB_ID = "quitcheck_recompute"

    def __init__(self, store: RecordStore, reminders: ReminderScheduler,
                 preferences: Optional[PreferencesStore] = None,
                 clock: Optional[Clock] = None,
                 engine: Optional[AchievementEngine] = None,
                 settings_factory: Optional[Callable[[datetime], TrackerSettings]] = None,
                 scheduler: Optional[BaseScheduler] = None,
                 recompute_interval_seconds: int = DEFAULT_RECOMPUTE_INTERVAL_SECONDS):
        self.store = store
        self.reminders = reminders
        self.preferences = preferences or PreferencesStore()
        self.clock = clock or SystemClock()
        self.engine = engine or AchievementEngine()
        self.settings_factory = settings_factory or TrackerSettings.defaults
        self.recompute_interval_seconds = recompute_interval_seconds

        self.scheduler = scheduler
        self._owns_scheduler = scheduler is None

        self._lock = threading.RLock()
        self._state = TrackerState.UNINITIALIZED
        self._record: Optional[QuitRecord] = None
        self._settings = self.settings_factory(self.clock.now())
        self._achievements: List[Achievement] = []
        self._snapshot = TrackerSnapshot(state=self._state, computed_at=self.clock.now())

        # Writes not yet confirmed by the store, flushed in this order
        self._first_launch_pending: Optional[bool] = None
        self._delete_records_pending = False
        self._clear_achievements_pending = False
        self._record_dirty = False
        self._unsaved_achievements: List[Achievement] = []

    # ===== PROPERTIES =====

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def record(self) -> Optional[QuitRecord]:
        return self._record

    @property
    def settings(self) -> TrackerSettings:
        return self._settings

    @property
    def achievements(self) -> List[Achievement]:
        """Newest first"""
        with self._lock:
            return list(self._achievements)

    @property
    def snapshot(self) -> TrackerSnapshot:
        return self._snapshot

    @property
    def has_pending_writes(self) -> bool:
        return bool(
            self._first_launch_pending is not None
            or self._delete_records_pending
            or self._clear_achievements_pending
            or self._record_dirty
            or self._unsaved_achievements
        )

    # ===== LIFECYCLE =====

    def load(self) -> TrackerSnapshot:
        """Startup: restore the stored record unless this is the first launch"""
        with self._lock:
            now = self.clock.now()
            self._reset_memory(now)

            if self.preferences.is_first_launch():
                logger.info("👋 First launch, showing setup defaults")
            else:
                try:
                    record = self.store.get_active_record()
                    achievements = self.store.list_achievements()
                except StorageError as e:
                    logger.error(f"❌ Failed to load stored data, starting from setup: {e}")
                    record, achievements = None, []

                if record is None:
                    logger.warning("⚠️ No stored quit record found, starting from setup")
                else:
                    self._record = record
                    self._settings = record.settings
                    self._achievements = list(achievements)
                    self._state = TrackerState.ACTIVE
                    logger.info(f"📂 Loaded quit record {record.record_id} with {len(achievements)} achievements")

            snapshot = self._recompute_locked(now)
            self._flush_quietly()
            return snapshot

    def save_new_record(self, settings: TrackerSettings) -> TrackerSnapshot:
        """Create the record on first setup; achievements start from scratch"""
        with self._lock:
            now = self.clock.now()
            settings = validate_settings(settings, now)

            self._record = QuitRecord.create(settings, now)
            self._settings = settings
            self._state = TrackerState.ACTIVE
            self._achievements = []
            self._unsaved_achievements = []
            self._clear_achievements_pending = True
            self._record_dirty = True
            self._first_launch_pending = False
            logger.info(f"🚭 New quit record {self._record.record_id} from {settings.start_date.isoformat()}")

            snapshot = self._recompute_locked(now)
            try:
                self._flush_writes()
            finally:
                # reminders follow the in-memory settings even when the write is queued
                self._reschedule_reminders(now)
            return snapshot

    def update_record(self, settings: TrackerSettings) -> TrackerSnapshot:
        """Edit the active record in place; creates it when there is none"""
        with self._lock:
            if self._record is None:
                return self.save_new_record(settings)

            now = self.clock.now()
            settings = validate_settings(settings, now)

            self._record.apply_settings(settings, now)
            self._settings = settings
            self._record_dirty = True
            logger.info(f"✏️ Quit record {self._record.record_id} updated")

            snapshot = self._recompute_locked(now)
            try:
                self._flush_writes()
            finally:
                # reminders follow the in-memory settings even when the write is queued
                self._reschedule_reminders(now)
            return snapshot

    def recompute(self, now: Optional[datetime] = None) -> TrackerSnapshot:
        """Periodic or on-demand refresh of statistics and achievements"""
        with self._lock:
            current = self.clock.now()
            now = ensure_aware(now, current.tzinfo) if now else current
            snapshot = self._recompute_locked(now)
            self._flush_quietly()
            return snapshot

    def reset(self) -> TrackerSnapshot:
        """Delete everything and return to the setup state"""
        with self._lock:
            now = self.clock.now()
            self._reset_memory(now)
            self._delete_records_pending = True
            self._clear_achievements_pending = True
            self._first_launch_pending = True

            try:
                self.reminders.cancel_all()
            except SchedulingError as e:
                logger.warning(f"⚠️ Failed to cancel reminders: {e}")

            logger.info("🧹 All tracker data reset")
            snapshot = self._recompute_locked(now)
            self._flush_writes()
            return snapshot

    # ===== DERIVED VIEWS =====

    def next_milestones(self) -> Dict[AchievementType, Optional[MilestoneProgress]]:
        with self._lock:
            snapshot = self._snapshot
            return self.engine.next_milestones(snapshot.statistics, snapshot.days_since_quit, self._achievements)

    def health_timeline(self) -> List[HealthMilestoneStatus]:
        return build_health_timeline(self._snapshot.elapsed)

    # ===== PERIODIC RECOMPUTE =====

    def start(self) -> None:
        """Recompute every ``recompute_interval_seconds`` in the background"""
        if self.scheduler is None:
            self.scheduler = BackgroundScheduler()
            self._owns_scheduler = True

        self.scheduler.add_job(
            self.recompute,
            IntervalTrigger(seconds=self.recompute_interval_seconds),
            id=self.RECOMPUTE_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"⏰ Recompute scheduled every {self.recompute_interval_seconds}s")

    def stop(self) -> None:
        if self.scheduler is None:
            return
        try:
            self.scheduler.remove_job(self.RECOMPUTE_JOB_ID)
        except JobLookupError:
            pass
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("⏹️ Recompute stopped")

    @property
    def is_running(self) -> bool:
        return (
            self.scheduler is not None
            and self.scheduler.running
            and self.scheduler.get_job(self.RECOMPUTE_JOB_ID) is not None
        )

    # ===== STORAGE =====

    def retry_pending_writes(self) -> bool:
        """Flush queued writes; False if the store is still failing"""
        with self._lock:
            return self._flush_quietly()

    # ===== INTERNALS =====

    def _reset_memory(self, now: datetime) -> None:
        """Drop the in-memory record together with its unflushed writes"""
        self._state = TrackerState.UNINITIALIZED
        self._record = None
        self._settings = self.settings_factory(now)
        self._achievements = []
        self._record_dirty = False
        self._unsaved_achievements = []

    def _recompute_locked(self, now: datetime) -> TrackerSnapshot:
        if self._state != TrackerState.ACTIVE or self._record is None:
            self._snapshot = TrackerSnapshot(state=self._state, computed_at=now)
            return self._snapshot

        record = self._record
        elapsed = calculate_elapsed(record.start_date, now)
        statistics = calculate_statistics(
            elapsed.days,
            record.cigarettes_per_day,
            record.price_per_pack,
            record.cigarettes_per_pack
        )

        new_achievements = self.engine.detect_new(statistics, elapsed.days, self._achievements, now)
        for achievement in new_achievements:
            self._achievements.insert(0, achievement)
            self._unsaved_achievements.append(achievement)

        self._snapshot = TrackerSnapshot(
            state=self._state,
            computed_at=now,
            elapsed=elapsed,
            statistics=statistics,
            new_achievements=tuple(new_achievements)
        )
        return self._snapshot

    def _reschedule_reminders(self, now: datetime) -> int:
        """Best effort; returns how many reminders were registered"""
        try:
            self.reminders.cancel_all()
            granted = self.reminders.request_permission()
        except SchedulingError as e:
            logger.warning(f"⚠️ Reminder scheduler unavailable: {e}")
            return 0

        if not granted:
            logger.warning("⚠️ Notification permission not granted, reminders skipped")
            return 0

        scheduled = 0
        for reminder in plan_motivational_reminders(self._settings, now):
            try:
                self.reminders.schedule(reminder.reminder_id, reminder.title, reminder.body, reminder.trigger_at)
                scheduled += 1
            except SchedulingError as e:
                logger.warning(f"⚠️ {e}")
        return scheduled

    def _flush_writes(self) -> None:
        """Push queued writes to storage; raises StorageError and keeps the rest queued"""
        try:
            if self._first_launch_pending is not None:
                self.preferences.set_first_launch(self._first_launch_pending)
                self._first_launch_pending = None

            if self._delete_records_pending:
                self.store.delete_all_records()
                self._delete_records_pending = False

            if self._clear_achievements_pending:
                self.store.delete_all_achievements()
                self._clear_achievements_pending = False

            if self._record_dirty and self._record is not None:
                self.store.save_record(self._record)
                self._record_dirty = False

            while self._unsaved_achievements:
                self.store.append_achievement(self._unsaved_achievements[0])
                self._unsaved_achievements.pop(0)
        except StorageError as e:
            logger.error(f"❌ Storage write failed, will retry on next save: {e}")
            raise

    def _flush_quietly(self) -> bool:
        try:
            self._flush_writes()
            return True
        except StorageError:
            return False
